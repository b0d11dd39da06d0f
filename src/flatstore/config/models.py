"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, flatstore.toml only contains
overrides. Each model maps one table of the file; FlatstoreSettings
composes them. A fresh store needs no config file at all.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

# --- flatstore.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    snapshot_path: str = ".flatstore/state.json"
    seed_on_init: bool = False


class HouseholdConfig(BaseModel):
    """[household] section."""

    model_config = {"frozen": True}

    default_currency: str = "USD"
    timezone: str = "UTC"
    note_limit: int = Field(default=50, ge=0)

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            msg = f"default_currency must be a three-letter code, got {v!r}"
            raise ValueError(msg)
        return code

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown timezone {v!r}"
            raise ValueError(msg) from exc
        return v

    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

