from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from moviemail.errors import MetadataFetchError
from moviemail.ingestion.fanout import FailurePolicy, FetchFailure, fan_out
from moviemail.integrations.tmdb.client import MetadataClient
from moviemail.models.works import Work, WorkDetails

logger = logging.getLogger(__name__)

DEFAULT_MIN_RUNTIME_MINUTES = 60


class Verdict(str, Enum):
    NOTIFY = "notify"
    SHORT = "short"  # archived, not announced
    NO_IMDB_ID = "no_imdb_id"  # dropped from the archive
    NO_RUNTIME = "no_runtime"  # dropped from the archive
    FAILED = "failed"  # dropped from the archive, retried next run


@dataclass(frozen=True)
class EnrichSummary:
    works: dict[int, Work]
    notify: list[Work]
    verdicts: dict[int, Verdict] = field(default_factory=dict)
    failures: list[FetchFailure] = field(default_factory=list)

    def count(self, verdict: Verdict) -> int:
        return sum(1 for v in self.verdicts.values() if v is verdict)


def judge_work(details: WorkDetails, *, min_runtime_minutes: int = DEFAULT_MIN_RUNTIME_MINUTES) -> Verdict:
    """
    Decide what happens to a new work once its details are known.

    Checks run in a fixed order: IMDb id, then missing/zero runtime, then the
    short-film threshold.
    """

    if not details.imdb_id:
        return Verdict.NO_IMDB_ID
    if not details.runtime:
        return Verdict.NO_RUNTIME
    if details.runtime < min_runtime_minutes:
        return Verdict.SHORT
    return Verdict.NOTIFY


def _notify_order(work: Work) -> tuple[str, str, int]:
    return (work.release_date, work.title.casefold(), work.id)


def enrich_new_works(
    works: Mapping[int, Work],
    new_works: Mapping[int, Work],
    client: MetadataClient,
    *,
    concurrency: int = 5,
    failure_policy: FailurePolicy = FailurePolicy.ABORT,
    min_runtime_minutes: int = DEFAULT_MIN_RUNTIME_MINUTES,
) -> EnrichSummary:
    """
    Fetch details for every new work and fold the result into the archive-bound mapping.

    `works` is not mutated; the returned summary carries the filtered copy.
    """

    work_ids = sorted(new_works.keys())
    logger.info(f"Fetching details for {len(work_ids)} new works.")

    outcomes = fan_out(work_ids, client.details_for_work, concurrency=concurrency)

    result = dict(works)
    notify: list[Work] = []
    verdicts: dict[int, Verdict] = {}
    failures: list[FetchFailure] = []

    for work_id in work_ids:
        work = new_works[work_id]
        outcome = outcomes[work_id]
        if outcome.error is not None:
            if failure_policy is FailurePolicy.ABORT:
                raise MetadataFetchError(
                    f"Fetching details for {work.title!r} ({work_id}) failed: {outcome.error}"
                ) from outcome.error
            logger.warning(f"Skipping {work.title!r} ({work_id}): {outcome.error}")
            failures.append(FetchFailure(key=str(work_id), label=work.title, message=str(outcome.error)))
            verdicts[work_id] = Verdict.FAILED
            result.pop(work_id, None)
            continue

        details = outcome.value
        assert details is not None
        verdict = judge_work(details, min_runtime_minutes=min_runtime_minutes)
        verdicts[work_id] = verdict

        if verdict in (Verdict.NO_IMDB_ID, Verdict.NO_RUNTIME):
            logger.debug(f"Dropping {work.title!r} ({work_id}): {verdict.value}")
            result.pop(work_id, None)
        elif verdict is Verdict.SHORT:
            logger.debug(f"Not announcing {work.title!r} ({work_id}): runtime {details.runtime} min")
        else:
            enriched = work.with_imdb_id(details.imdb_id or "")
            result[work_id] = enriched
            notify.append(enriched)

    notify.sort(key=_notify_order)
    summary = EnrichSummary(works=result, notify=notify, verdicts=verdicts, failures=failures)
    logger.info(
        f"Enrichment: {len(notify)} to announce, {summary.count(Verdict.SHORT)} short, "
        f"{summary.count(Verdict.NO_IMDB_ID) + summary.count(Verdict.NO_RUNTIME)} dropped, "
        f"{len(failures)} failed."
    )
    return summary
