"""Identifier generator configuration.

The node id must be unique per running instance. All settings can be
overridden via ``ID_*`` environment variables.
"""

from datetime import datetime, timezone

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdentifierConfig(BaseSettings):
    """Configuration for time-sortable identifier generation."""

    model_config = SettingsConfigDict(
        env_prefix="ID_",
        case_sensitive=False,
        extra="ignore",
    )

    node_id: int = Field(
        default=1,
        ge=0,
        le=1023,
        description=(
            "Node bits embedded in every id. The default is only safe for "
            "single-instance deployments; give each instance its own value."
        ),
    )
    epoch: datetime = Field(
        default=datetime(2025, 1, 1, tzinfo=timezone.utc),
        description="Custom epoch the timestamp bits are counted from",
    )
