from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from moviemail.errors import ConfigurationError

ENV_FILE_VAR = "MOVIEMAIL_ENV_FILE"


def env_file_candidates(env_file: str | Path | None = None) -> list[Path]:
    explicit = env_file or os.getenv(ENV_FILE_VAR)
    if explicit:
        return [Path(explicit).expanduser()]
    repo_root = Path(__file__).resolve().parents[2]
    return [
        Path.cwd() / ".env",
        repo_root / ".env",
    ]


def load_env(env_file: str | Path | None = None, *, override: bool = False) -> Path | None:
    """
    Load moviemail settings from a `.env` file.

    An explicit `env_file` (or `$MOVIEMAIL_ENV_FILE`) must exist. Otherwise the
    current directory is tried before the repo root, and a missing `.env` is fine
    since the variables may already be exported.
    """

    candidates = env_file_candidates(env_file)
    explicit = env_file is not None or bool(os.getenv(ENV_FILE_VAR))
    for path in candidates:
        if path.is_file():
            load_dotenv(dotenv_path=path, override=override)
            return path
    if explicit:
        raise ConfigurationError(f"Env file not found: {candidates[0]}")
    return None
