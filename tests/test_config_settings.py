from __future__ import annotations

from pathlib import Path

import pytest

from moviemail.config import load_settings, parse_director_args
from moviemail.errors import ConfigurationError
from moviemail.ingestion.fanout import FailurePolicy


def _env(**extra: str) -> dict[str, str]:
    env = {
        "MOVIEMAIL_ARCHIVE_PATH": "/tmp/moviemail/archive.json",
        "TMDB_API_KEY": "abc123",
        "MOVIEMAIL_DIRECTORS_JSON": '{"138": "Quentin Tarantino", "525": "Christopher Nolan"}',
        "MOVIEMAIL_SMTP_HOST": "smtp.example.com",
        "MOVIEMAIL_EMAIL_FROM": "bot@example.com",
        "MOVIEMAIL_EMAIL_TO": "me@example.com",
    }
    env.update(extra)
    return env


def test_load_settings_from_env_with_defaults() -> None:
    settings = load_settings(_env())

    assert settings.archive_path == Path("/tmp/moviemail/archive.json")
    assert settings.directors == {"138": "Quentin Tarantino", "525": "Christopher Nolan"}
    assert settings.dry_run is False
    assert settings.smtp_port == 587
    assert settings.smtp_security == "starttls"
    assert settings.tmdb_timeout_seconds == 20.0
    assert settings.tmdb_max_attempts == 3
    assert settings.concurrency == 5
    assert settings.failure_policy is FailurePolicy.ABORT
    assert settings.min_runtime_minutes == 60
    assert settings.envelope is not None
    assert settings.envelope.subject == "New movies"


def test_env_values_are_coerced() -> None:
    settings = load_settings(
        _env(
            MOVIEMAIL_DRY_RUN="true",
            MOVIEMAIL_SMTP_PORT="465",
            MOVIEMAIL_SMTP_SECURITY="ssl",
            MOVIEMAIL_CONCURRENCY="2",
            MOVIEMAIL_FAILURE_POLICY="skip",
            MOVIEMAIL_TMDB_TIMEOUT_SECONDS="3.5",
            MOVIEMAIL_TMDB_MAX_ATTEMPTS="5",
        )
    )

    assert settings.dry_run is True
    assert settings.smtp_port == 465
    assert settings.smtp_security == "ssl"
    assert settings.concurrency == 2
    assert settings.failure_policy is FailurePolicy.SKIP
    assert settings.tmdb_timeout_seconds == 3.5
    assert settings.tmdb_max_attempts == 5


def test_overrides_win_and_none_is_ignored() -> None:
    settings = load_settings(
        _env(),
        overrides={"dry_run": True, "archive_path": "/other.json", "concurrency": None},
    )

    assert settings.dry_run is True
    assert settings.archive_path == Path("/other.json")
    assert settings.concurrency == 5


def test_dry_run_does_not_need_email_settings() -> None:
    env = _env(MOVIEMAIL_DRY_RUN="1")
    for key in ("MOVIEMAIL_SMTP_HOST", "MOVIEMAIL_EMAIL_FROM", "MOVIEMAIL_EMAIL_TO"):
        env.pop(key)

    settings = load_settings(env)

    assert settings.dry_run is True
    assert settings.envelope is None


@pytest.mark.parametrize(
    "env",
    [
        _env(TMDB_API_KEY=""),
        _env(MOVIEMAIL_DIRECTORS_JSON="{}"),
        _env(MOVIEMAIL_DIRECTORS_JSON="not json"),
        _env(MOVIEMAIL_DIRECTORS_JSON='["138"]'),
        _env(MOVIEMAIL_DIRECTORS_JSON='{"nolan": "Christopher Nolan"}'),
        _env(MOVIEMAIL_DIRECTORS_JSON='{"525": "  "}'),
        _env(MOVIEMAIL_EMAIL_TO=""),
        _env(MOVIEMAIL_CONCURRENCY="0"),
        _env(MOVIEMAIL_TMDB_MAX_ATTEMPTS="0"),
        _env(MOVIEMAIL_FAILURE_POLICY="retry"),
        _env(MOVIEMAIL_SMTP_SECURITY="tls13"),
    ],
)
def test_invalid_configuration_raises(env: dict[str, str]) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(env)


def test_missing_required_values_are_reported_together() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings({})
    message = str(excinfo.value)
    assert "archive_path" in message
    assert "tmdb_api_key" in message
    assert "directors" in message


def test_parse_director_args() -> None:
    assert parse_director_args(["138=Quentin Tarantino", " 525 = Christopher Nolan "]) == {
        "138": "Quentin Tarantino",
        "525": "Christopher Nolan",
    }
    with pytest.raises(ConfigurationError):
        parse_director_args(["138"])
