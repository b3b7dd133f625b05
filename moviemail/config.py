"""
Run configuration.

Settings come from environment variables (optionally via a `.env` file loaded
by `moviemail.utils.env.load_env`), with CLI overrides layered on top. The
pipeline receives a validated `MovieMailSettings` and never reads the
environment itself.
"""
from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from moviemail.errors import ConfigurationError
from moviemail.ingestion.fanout import FailurePolicy
from moviemail.notifications.dispatch import Envelope

ENV_FIELDS: dict[str, str] = {
    "MOVIEMAIL_ARCHIVE_PATH": "archive_path",
    "TMDB_API_KEY": "tmdb_api_key",
    "MOVIEMAIL_DIRECTORS_JSON": "directors",
    "MOVIEMAIL_DRY_RUN": "dry_run",
    "MOVIEMAIL_SMTP_HOST": "smtp_host",
    "MOVIEMAIL_SMTP_PORT": "smtp_port",
    "MOVIEMAIL_SMTP_USERNAME": "smtp_username",
    "MOVIEMAIL_SMTP_PASSWORD": "smtp_password",
    "MOVIEMAIL_SMTP_SECURITY": "smtp_security",
    "MOVIEMAIL_EMAIL_FROM": "email_from",
    "MOVIEMAIL_EMAIL_TO": "email_to",
    "MOVIEMAIL_EMAIL_SUBJECT": "email_subject",
    "MOVIEMAIL_TMDB_TIMEOUT_SECONDS": "tmdb_timeout_seconds",
    "MOVIEMAIL_TMDB_MAX_ATTEMPTS": "tmdb_max_attempts",
    "MOVIEMAIL_CONCURRENCY": "concurrency",
    "MOVIEMAIL_FAILURE_POLICY": "failure_policy",
    "MOVIEMAIL_MIN_RUNTIME_MINUTES": "min_runtime_minutes",
}


class MovieMailSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    archive_path: Path
    tmdb_api_key: str = Field(min_length=1)
    directors: dict[str, str]
    dry_run: bool = False

    smtp_host: str | None = None
    smtp_port: int = Field(587, gt=0, lt=65536)
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_security: Literal["starttls", "ssl", "none"] = "starttls"
    email_from: str | None = None
    email_to: str | None = None
    email_subject: str = "New movies"

    tmdb_timeout_seconds: float = Field(20.0, gt=0)
    tmdb_max_attempts: int = Field(3, ge=1, le=10)
    concurrency: int = Field(5, ge=1)
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    min_runtime_minutes: int = Field(60, ge=1)

    @field_validator("directors")
    @classmethod
    def _check_directors(cls, value: dict[str, str]) -> dict[str, str]:
        cleaned: dict[str, str] = {}
        for person_id, name in value.items():
            pid = str(person_id).strip()
            display = str(name).strip()
            if not pid.isdigit():
                raise ValueError(f"director id must be a numeric TMDb person id, got {person_id!r}")
            if not display:
                raise ValueError(f"director {pid} has an empty display name")
            cleaned[pid] = display
        if not cleaned:
            raise ValueError("at least one director is required")
        return cleaned

    @model_validator(mode="after")
    def _check_email(self) -> MovieMailSettings:
        if self.dry_run:
            return self
        missing = [
            name
            for name in ("smtp_host", "email_from", "email_to")
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise ValueError(f"{', '.join(missing)} required unless dry_run is set")
        return self

    @property
    def envelope(self) -> Envelope | None:
        if not (self.email_to and self.email_from):
            return None
        return Envelope(recipient=self.email_to, sender=self.email_from, subject=self.email_subject)


def _read_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_name, field_name in ENV_FIELDS.items():
        raw = (environ.get(env_name) or "").strip()
        if not raw:
            continue
        if field_name == "directors":
            try:
                parsed = json.loads(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{env_name} is not valid JSON: {exc}") from exc
            if not isinstance(parsed, dict):
                raise ConfigurationError(f"{env_name} must be a JSON object of person id -> name.")
            values[field_name] = parsed
            continue
        values[field_name] = raw
    return values


def parse_director_args(values: list[str]) -> dict[str, str]:
    """Parse repeatable `ID=NAME` CLI values into a roster."""

    roster: dict[str, str] = {}
    for raw in values:
        person_id, sep, name = str(raw).partition("=")
        if not sep or not person_id.strip() or not name.strip():
            raise ConfigurationError(f"Expected ID=NAME for a director, got {raw!r}.")
        roster[person_id.strip()] = name.strip()
    return roster


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "settings"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> MovieMailSettings:
    """
    Build settings from `environ` (default: `os.environ`) plus non-None `overrides`.

    Raises `ConfigurationError` with every validation problem in one message.
    """

    values = _read_env(os.environ if environ is None else environ)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    try:
        return MovieMailSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {_format_validation_error(exc)}") from exc
