"""Configuration for OpenSEPA.

Pydantic-based settings, overridable through environment variables with the
``OPENSEPA_`` prefix or a ``.env`` file.

Environment Variables:
- OPENSEPA_DEFAULT_CURRENCY: Currency used when a transaction names none (default: EUR)
- OPENSEPA_MINOR_UNITS_THRESHOLD: Dict-sourced amounts above this value are read as
  cents and divided by 100; empty disables the rescaling (default: 10000)
- OPENSEPA_PRETTY_PRINT_XML: Indent generated XML (default: true)
- OPENSEPA_LOG_LEVEL / OPENSEPA_JSON_LOGS / OPENSEPA_DEV_MODE: logging output
"""

from decimal import Decimal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """OpenSEPA settings.

    Example:
        >>> settings = Settings()
        >>> settings.minor_units_threshold
        Decimal('10000')
        >>>
        >>> # Disable the cents heuristic
        >>> os.environ["OPENSEPA_MINOR_UNITS_THRESHOLD"] = ""
        >>> reload_settings().minor_units_threshold is None
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="OPENSEPA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Payments
    default_currency: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency for transactions that do not name one",
    )

    minor_units_threshold: Decimal | None = Field(
        default=Decimal("10000"),
        description=(
            "Dict-sourced amounts strictly above this value are treated as minor "
            "units (cents) and divided by 100. None disables the rescaling."
        ),
    )

    # XML output
    pretty_print_xml: bool = Field(
        default=True,
        description="Indent generated XML documents",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")
    dev_mode: bool = Field(default=True, description="Colored console log output")

    @field_validator("minor_units_threshold", mode="before")
    @classmethod
    def _empty_threshold_disables(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("default_currency")
    @classmethod
    def _uppercase_currency(cls, value: str) -> str:
        return value.upper()


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the settings singleton."""
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """Rebuild settings from the environment."""
    global _settings

    _settings = Settings()
    return _settings
