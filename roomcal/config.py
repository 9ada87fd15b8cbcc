"""Application configuration settings.

This module defines the ``Settings`` class using ``pydantic-settings`` to
load configuration from environment variables (and an optional ``.env``
file). It centralises runtime configuration for the availability service,
such as the seed calendar fixtures and default search parameters.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_FIXTURES_PATH = Path(__file__).parent / "data" / "rooms.json"


class Settings(BaseSettings):
    """Configuration values loaded from environment variables.

    Environment variable names map to fields by alias. Every value has a
    default so the service starts with the bundled demonstration rooms.
    """

    fixtures_path: Path = Field(
        default=DEFAULT_FIXTURES_PATH,
        alias="ROOMCAL_FIXTURES_PATH",
        description="JSON file holding the list of room calendars loaded at startup.",
    )

    # Availability search
    default_suggest_days: int = Field(
        default=2,
        alias="DEFAULT_SUGGEST_DAYS",
        description="Days either side of the requested window probed for alternatives.",
    )
    max_suggest_days: int = Field(
        default=14,
        alias="MAX_SUGGEST_DAYS",
        description="Upper bound accepted for the suggestDays query parameter.",
    )
    default_slot_step_minutes: int = Field(
        default=30,
        alias="DEFAULT_SLOT_STEP_MINUTES",
        description="Slot width used by the free slot listing when no step is given.",
    )

    # Service behaviour
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_cors: bool = Field(
        default=False,
        alias="ENABLE_CORS",
        description="Expose the API to other origins (the admin UI normally shares the origin).",
    )

    class Config:
        env_file = ".env"
        extra = "ignore"


# Instantiate settings at module import time. This allows other modules to
# import ``settings`` directly without repeatedly reading environment variables.
settings = Settings()
