from __future__ import annotations

import logging
import random
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Mapping, Protocol

import requests

from moviemail.errors import MetadataFetchError
from moviemail.models.works import Work, WorkDetails, work_details_from_tmdb_movie, work_from_tmdb_credit

logger = logging.getLogger(__name__)

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0


class TmdbClientError(MetadataFetchError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class MetadataClient(Protocol):
    def credits_for_person(self, person_id: str) -> list[Work]: ...

    def details_for_work(self, work_id: int) -> WorkDetails: ...


def _retry_delay(attempt: int, backoff_seconds: float, retry_after: str = "") -> float:
    delay = backoff_seconds * (2**attempt)
    retry_after = retry_after.strip()
    if retry_after.isdigit():
        delay = max(delay, float(retry_after))
    return delay + random.uniform(0.0, delay * 0.25)


def _request_json(
    session: requests.Session,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
) -> dict[str, Any]:
    """
    GET `url` and return the decoded JSON object.

    Network errors, HTTP 429 and 5xx are retried up to `max_attempts` in total;
    any other non-200 status fails at once.
    """

    max_attempts = max(1, int(max_attempts))
    headers = {"accept": "application/json"}

    for attempt in range(max_attempts):
        last_attempt = attempt == max_attempts - 1
        try:
            resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
        except requests.RequestException as exc:
            if last_attempt:
                raise TmdbClientError(f"TMDb request failed after {max_attempts} attempt(s): {exc}") from exc
            delay = _retry_delay(attempt, backoff_seconds)
            logger.debug(f"TMDb request error ({exc}); retrying in {delay:.2f}s")
            time.sleep(delay)
            continue

        if resp.status_code == 200:
            break

        retryable = resp.status_code == 429 or 500 <= resp.status_code < 600
        if retryable and not last_attempt:
            delay = _retry_delay(attempt, backoff_seconds, resp.headers.get("Retry-After") or "")
            logger.debug(f"TMDb HTTP {resp.status_code}; retrying in {delay:.2f}s")
            time.sleep(delay)
            continue

        raise TmdbClientError(
            f"TMDb request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise TmdbClientError(
            "TMDb returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise TmdbClientError("TMDb returned unexpected JSON shape (not an object).")
    return payload


def fetch_person_movie_credits(
    person_id: str | int,
    *,
    api_key: str,
    session: requests.Session | None = None,
    language: str = "en-US",
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> dict[str, Any]:
    """
    Fetch `/3/person/{id}/movie_credits`.

    The payload carries `cast` and `crew` arrays; directing credits are in `crew`.
    """

    session = session or requests.Session()
    url = f"{TMDB_API_BASE_URL}/person/{str(person_id).strip()}/movie_credits"
    return _request_json(
        session,
        url,
        params={"api_key": api_key, "language": language},
        timeout_seconds=timeout_seconds,
        max_attempts=max_attempts,
    )


def fetch_movie_details(
    movie_id: int,
    *,
    api_key: str,
    session: requests.Session | None = None,
    language: str = "en-US",
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> dict[str, Any]:
    """Fetch the `/3/movie/{id}` details payload (includes `imdb_id` and `runtime`)."""

    session = session or requests.Session()
    url = f"{TMDB_API_BASE_URL}/movie/{int(movie_id)}"
    return _request_json(
        session,
        url,
        params={"api_key": api_key, "language": language},
        timeout_seconds=timeout_seconds,
        max_attempts=max_attempts,
    )


class TmdbMetadataClient:
    """
    `MetadataClient` backed by the TMDb v3 API.

    Each lookup opens its own `requests.Session` unless one was injected, so
    worker threads of a fan-out never share connection state.
    """

    def __init__(
        self,
        api_key: str,
        *,
        session: requests.Session | None = None,
        language: str = "en-US",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("TMDb API key is empty.")
        self._api_key = api_key
        self._session = session
        self._language = language
        self._timeout_seconds = timeout_seconds
        self._max_attempts = max(1, int(max_attempts))

    @contextmanager
    def _session_scope(self) -> Iterator[requests.Session]:
        if self._session is not None:
            yield self._session
            return
        with requests.Session() as session:
            yield session

    def credits_for_person(self, person_id: str) -> list[Work]:
        with self._session_scope() as session:
            payload = fetch_person_movie_credits(
                person_id,
                api_key=self._api_key,
                session=session,
                language=self._language,
                timeout_seconds=self._timeout_seconds,
                max_attempts=self._max_attempts,
            )
        crew = payload.get("crew")
        if not isinstance(crew, list):
            raise TmdbClientError(f"TMDb credits for person {person_id} are missing the crew array.")

        works: list[Work] = []
        for item in crew:
            if not isinstance(item, dict):
                continue
            try:
                works.append(work_from_tmdb_credit(item))
            except ValueError as exc:
                raise TmdbClientError(f"TMDb credits for person {person_id} are malformed: {exc}") from exc
        return works

    def details_for_work(self, work_id: int) -> WorkDetails:
        with self._session_scope() as session:
            payload = fetch_movie_details(
                work_id,
                api_key=self._api_key,
                session=session,
                language=self._language,
                timeout_seconds=self._timeout_seconds,
                max_attempts=self._max_attempts,
            )
        return work_details_from_tmdb_movie(work_id, payload)
