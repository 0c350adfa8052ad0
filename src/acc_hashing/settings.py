"""Environment-backed settings primitives for :mod:`acc_hashing`."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["AccHashingSettings", "get_settings"]


class AccHashingSettings(BaseSettings):
    """Expose environment-derived logging knobs for condition hashing.

    Settings only steer diagnostics. The digest algorithm and canonical
    rules are fixed and cannot be changed from the environment.

    Attributes:
        log_level: Level applied to the ``acc_hashing`` logger.
        log_format: ``text`` for plain records, ``json`` for structured lines.
        log_payloads: Log the pre-hash canonical text at DEBUG.
        trace_id: Static trace identifier attached to structured records.
    """

    log_level: str = Field(default="WARNING", alias="ACC_HASHING_LOG_LEVEL")
    log_format: Literal["text", "json"] = Field(
        default="text", alias="ACC_HASHING_LOG_FORMAT"
    )
    log_payloads: bool = Field(default=False, alias="ACC_HASHING_LOG_PAYLOADS")
    trace_id: str | None = Field(default=None, alias="ACC_HASHING_TRACE_ID")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_level(cls, value: object) -> str:
        """Normalise the level name, falling back to ``WARNING`` when unknown.

        Args:
            value: Raw environment value.

        Returns:
            An upper-case level name understood by :mod:`logging`.
        """

        if isinstance(value, str):
            name = value.strip().upper()
            if isinstance(logging.getLevelName(name), int):
                return name
        return "WARNING"

    @field_validator("log_format", mode="before")
    @classmethod
    def _parse_format(cls, value: object) -> str:
        """Normalise the format name, falling back to ``text`` when unknown."""

        if isinstance(value, str):
            name = value.strip().lower()
            if name in ("text", "json"):
                return name
        return "text"

    @property
    def level(self) -> int:
        """Return the numeric logging level."""

        return logging.getLevelName(self.log_level)


def get_settings() -> AccHashingSettings:
    """Return a :class:`AccHashingSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return AccHashingSettings()
