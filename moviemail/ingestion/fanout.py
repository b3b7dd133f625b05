from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from moviemail.errors import MetadataFetchError

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class FailurePolicy(str, Enum):
    """What a fan-out stage does when one of its lookups fails."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass(frozen=True)
class FetchFailure:
    key: str
    label: str
    message: str


@dataclass(frozen=True)
class FetchOutcome(Generic[K, T]):
    key: K
    value: T | None = None
    error: MetadataFetchError | None = None


def fan_out(
    keys: Sequence[K],
    fetch: Callable[[K], T],
    *,
    concurrency: int = 5,
) -> dict[K, FetchOutcome[K, T]]:
    """
    Run `fetch` once per key on a thread pool and wait for all of them.

    Every key gets an outcome; lookup errors are captured rather than raised so
    the caller can apply its `FailurePolicy` after the join.
    """

    concurrency = max(1, int(concurrency or 1))

    def run_one(key: K) -> FetchOutcome[K, T]:
        try:
            return FetchOutcome(key=key, value=fetch(key))
        except MetadataFetchError as exc:
            return FetchOutcome(key=key, error=exc)

    outcomes: dict[K, FetchOutcome[K, T]] = {}
    if not keys:
        return outcomes

    with ThreadPoolExecutor(max_workers=min(concurrency, len(keys))) as pool:
        futures = {pool.submit(run_one, key): key for key in keys}
        for fut in as_completed(futures):
            outcome = fut.result()
            outcomes[outcome.key] = outcome
    return outcomes
