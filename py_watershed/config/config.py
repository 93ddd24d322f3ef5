from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings pulled from ``WATERSHED_`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WATERSHED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (console or json)")

    # Diagnostics
    strict_invariants: bool = Field(default=False, description="Raise on invariant violations")


# Instantiate singleton settings object
settings = Settings()
