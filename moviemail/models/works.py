from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

DIRECTOR_JOB = "Director"

IMDB_TITLE_URL = "https://www.imdb.com/title/{imdb_id}/"
TMDB_MOVIE_URL = "https://www.themoviedb.org/movie/{tmdb_id}"


@dataclass(frozen=True)
class Work:
    """
    A film credit as returned by TMDb `person/{id}/movie_credits` (crew entries).

    `director_name` is stamped during discovery, `imdb_id` during enrichment.
    """

    id: int
    title: str
    overview: str = ""
    poster_path: str | None = None
    release_date: str = ""  # "" when TMDb has no date yet
    job: str | None = None
    director_name: str | None = None
    imdb_id: str | None = None

    @property
    def is_eligible(self) -> bool:
        return self.job == DIRECTOR_JOB and self.release_date != ""

    @property
    def link(self) -> str:
        if self.imdb_id:
            return IMDB_TITLE_URL.format(imdb_id=self.imdb_id)
        return TMDB_MOVIE_URL.format(tmdb_id=self.id)

    def with_director(self, director_name: str) -> Work:
        return replace(self, director_name=director_name)

    def with_imdb_id(self, imdb_id: str) -> Work:
        return replace(self, imdb_id=imdb_id)


@dataclass(frozen=True)
class WorkDetails:
    """Subset of TMDb `movie/{id}` the pipeline cares about."""

    work_id: int
    runtime: int | None = None
    imdb_id: str | None = None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if raw.isdigit():
            return int(raw)
    return None


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s or None
    return None


def work_from_tmdb_credit(payload: Mapping[str, Any]) -> Work:
    work_id = _as_int(payload.get("id"))
    if work_id is None:
        raise ValueError(f"TMDb credit is missing a numeric id: {payload!r}")
    return Work(
        id=work_id,
        title=str(payload.get("title") or ""),
        overview=str(payload.get("overview") or ""),
        poster_path=_as_str(payload.get("poster_path")),
        release_date=str(payload.get("release_date") or ""),
        job=_as_str(payload.get("job")),
    )


def work_details_from_tmdb_movie(work_id: int, payload: Mapping[str, Any]) -> WorkDetails:
    return WorkDetails(
        work_id=int(work_id),
        runtime=_as_int(payload.get("runtime")),
        imdb_id=_as_str(payload.get("imdb_id")),
    )


def work_to_row(work: Work) -> dict[str, Any]:
    return {
        "id": work.id,
        "title": work.title,
        "overview": work.overview,
        "poster_path": work.poster_path,
        "release_date": work.release_date,
        "job": work.job,
        "director_name": work.director_name,
        "imdb_id": work.imdb_id,
    }


def work_from_row(row: Mapping[str, Any]) -> Work:
    """
    Inverse of `work_to_row`.

    Strings are kept verbatim (no stripping) so a saved archive reads back unchanged.
    """

    work_id = row.get("id")
    if isinstance(work_id, bool) or not isinstance(work_id, int):
        raise ValueError(f"Archive row has no integer id: {row!r}")

    def optional_str(key: str) -> str | None:
        value = row.get(key)
        if value is None or isinstance(value, str):
            return value
        raise ValueError(f"Archive row {work_id} has a non-string {key!r}: {value!r}")

    def required_str(key: str) -> str:
        value = row.get(key, "")
        if not isinstance(value, str):
            raise ValueError(f"Archive row {work_id} has a non-string {key!r}: {value!r}")
        return value

    return Work(
        id=work_id,
        title=required_str("title"),
        overview=required_str("overview"),
        poster_path=optional_str("poster_path"),
        release_date=required_str("release_date"),
        job=optional_str("job"),
        director_name=optional_str("director_name"),
        imdb_id=optional_str("imdb_id"),
    )
