from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger settings read from TOKEN_LEDGER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_LEDGER_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Applied to the token_ledger logger by configure_logging()
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    # When set, a LedgerService built without an explicit sink also logs events.
    log_events: bool = False

    # Base metadata URI for ledgers whose storage has none yet
    base_uri: str = ""

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, v: str) -> str:
        if isinstance(v, str):
            return v.upper()
        return v


@lru_cache
def get_settings() -> LedgerSettings:
    return LedgerSettings()
