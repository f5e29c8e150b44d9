"""HTTP API for the feedback board."""

from agora.api.app import create_app

__all__ = ["create_app"]
