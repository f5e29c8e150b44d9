"""Time-sortable identifiers.

Components:
- IdGenerator: per-process generator (timestamp | node | sequence)
- IdentifierConfig: Pydantic settings for the node id and epoch
- encode / decode: public 13-character string form
"""

from agora.identifiers.config import IdentifierConfig
from agora.identifiers.generator import IdGenerator, decode, encode

__all__ = [
    "IdGenerator",
    "IdentifierConfig",
    "decode",
    "encode",
]
