"""Feedback board configuration.

Controls listing limits at the HTTP edge and in the core. All settings can
be overridden via ``FEEDBACK_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedbackConfig(BaseSettings):
    """Configuration for the feedback board."""

    model_config = SettingsConfigDict(
        env_prefix="FEEDBACK_",
        case_sensitive=False,
        extra="ignore",
    )

    api_default_page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Page size used when a list request omits pageSize",
    )
    api_max_page_size: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Largest pageSize accepted from HTTP clients",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Largest page size the service will return",
    )
