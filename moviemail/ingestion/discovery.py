from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from moviemail.errors import MetadataFetchError
from moviemail.ingestion.fanout import FailurePolicy, FetchFailure, fan_out
from moviemail.integrations.tmdb.client import MetadataClient
from moviemail.models.works import Work

logger = logging.getLogger(__name__)

DIRECTOR_NAME_SEPARATOR = ", "


@dataclass(frozen=True)
class DiscoverySummary:
    works: dict[int, Work]
    people_queried: int
    credits_seen: int
    failures: list[FetchFailure] = field(default_factory=list)


def merge_director_credits(
    roster: Mapping[str, str],
    credits_by_person: Mapping[str, list[Work]],
) -> tuple[dict[int, Work], int]:
    """
    Merge per-person credits into one mapping keyed by TMDb movie id.

    Only directing credits with a release date are kept. Roster order decides
    how names are joined when one movie is credited to several roster people,
    so the merge does not depend on which request finished first.
    """

    credits: dict[int, Work] = {}
    names: dict[int, list[str]] = {}
    credits_seen = 0
    for person_id, director_name in roster.items():
        for credit in credits_by_person.get(person_id, []):
            credits_seen += 1
            if not credit.is_eligible:
                continue
            credits.setdefault(credit.id, credit)
            credited = names.setdefault(credit.id, [])
            if director_name not in credited:
                credited.append(director_name)

    works = {
        work_id: credit.with_director(DIRECTOR_NAME_SEPARATOR.join(names[work_id]))
        for work_id, credit in credits.items()
    }
    return works, credits_seen


def discover_works(
    roster: Mapping[str, str],
    client: MetadataClient,
    *,
    concurrency: int = 5,
    failure_policy: FailurePolicy = FailurePolicy.ABORT,
) -> DiscoverySummary:
    person_ids = list(roster.keys())
    logger.info(f"Fetching directing credits for {len(person_ids)} people.")

    outcomes = fan_out(person_ids, client.credits_for_person, concurrency=concurrency)

    credits_by_person: dict[str, list[Work]] = {}
    failures: list[FetchFailure] = []
    for person_id in person_ids:
        outcome = outcomes[person_id]
        if outcome.error is None:
            credits_by_person[person_id] = outcome.value or []
            continue
        if failure_policy is FailurePolicy.ABORT:
            raise MetadataFetchError(
                f"Fetching credits for {roster[person_id]} ({person_id}) failed: {outcome.error}"
            ) from outcome.error
        logger.warning(f"Skipping {roster[person_id]} ({person_id}): {outcome.error}")
        failures.append(FetchFailure(key=person_id, label=roster[person_id], message=str(outcome.error)))

    works, credits_seen = merge_director_credits(roster, credits_by_person)
    logger.info(f"Discovered {len(works)} eligible works from {credits_seen} credits.")
    return DiscoverySummary(
        works=works,
        people_queried=len(person_ids),
        credits_seen=credits_seen,
        failures=failures,
    )
