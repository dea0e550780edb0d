"""
Library settings.

Controls how logpoint configures structlog. Uses Pydantic BaseSettings so every
field can be overridden with a LOGPOINT_* environment variable or a .env file.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logpoint.models import LogLevel


class Settings(BaseSettings):
    """
    Logging settings.

    Contains the threshold below which log points stay silent, the output
    renderer, and whether logpoint configures structlog at all (applications
    with their own structlog setup turn this off).
    """

    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = True
    configure_logging: bool = True

    model_config = SettingsConfigDict(
        env_prefix="LOGPOINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables not defined in this class
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v):
        """
        Accept level names in any case, including "WARNING".

        Args:
            v: The value provided

        Returns:
            The parsed LogLevel

        Raises:
            ValueError: For unknown names or DERIVED, which is not a threshold
        """
        level = LogLevel.parse(v)
        if level is LogLevel.DERIVED:
            raise ValueError("log_level must be a concrete level, not DERIVED")
        return level
