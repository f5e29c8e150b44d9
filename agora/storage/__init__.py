"""Storage layer for PostgreSQL persistence."""

from agora.storage.database import STORE_EXCEPTIONS, Database, Executor, unit_of_work

__all__ = ["Database", "Executor", "STORE_EXCEPTIONS", "unit_of_work"]
