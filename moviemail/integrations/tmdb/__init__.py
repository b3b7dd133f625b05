"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from moviemail.integrations.tmdb.client import (
        MetadataClient,
        TmdbClientError,
        TmdbMetadataClient,
        fetch_movie_details,
        fetch_person_movie_credits,
    )

__all__ = [
    "MetadataClient",
    "TmdbClientError",
    "TmdbMetadataClient",
    "fetch_movie_details",
    "fetch_person_movie_credits",
]


def __getattr__(name: str):
    if name in __all__:
        from moviemail.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
