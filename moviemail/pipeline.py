"""
One moviemail run: discover -> reconcile -> enrich -> notify -> commit.

Each stage finishes (all of its requests joined) before the next starts. The
archive is read once at the start and written once at the end, after the
notification was sent or skipped; any fatal error before that leaves the
previous archive in place so the run can simply be retried.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from moviemail.config import MovieMailSettings
from moviemail.ingestion.discovery import discover_works
from moviemail.ingestion.enrichment import Verdict, enrich_new_works
from moviemail.ingestion.fanout import FetchFailure
from moviemail.ingestion.reconciliation import reconcile
from moviemail.integrations.tmdb.client import MetadataClient, TmdbMetadataClient
from moviemail.models.works import Work
from moviemail.notifications.dispatch import dispatch_notification
from moviemail.notifications.smtp import NotificationTransport, SmtpTransport
from moviemail.repositories.archive import archived_ids, load_archive, save_archive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    discovered: int
    new: int
    notified: list[Work]
    archived: int
    short: int
    dropped: int
    carried_forward: int = 0
    sent: bool = False
    failures: list[FetchFailure] = field(default_factory=list)


def carry_forward(works: Mapping[int, Work], previous: list[Work]) -> tuple[dict[int, Work], int]:
    """Add previously archived works that are missing from `works`."""

    merged = dict(works)
    added = 0
    for work in previous:
        if work.id not in merged:
            merged[work.id] = work
            added += 1
    return merged, added


def commit_archive(path: Path, works: Mapping[int, Work]) -> int:
    save_archive(path, works.values())
    return len(works)


def build_metadata_client(settings: MovieMailSettings) -> TmdbMetadataClient:
    return TmdbMetadataClient(
        settings.tmdb_api_key,
        timeout_seconds=settings.tmdb_timeout_seconds,
        max_attempts=settings.tmdb_max_attempts,
    )


def build_transport(settings: MovieMailSettings) -> SmtpTransport | None:
    if settings.dry_run or not settings.smtp_host:
        return None
    return SmtpTransport(
        settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        security=settings.smtp_security,
    )


def run_pipeline(
    settings: MovieMailSettings,
    *,
    client: MetadataClient | None = None,
    transport: NotificationTransport | None = None,
) -> PipelineResult:
    client = client or build_metadata_client(settings)
    if transport is None:
        transport = build_transport(settings)

    previous = load_archive(settings.archive_path)
    seen_ids = archived_ids(previous)

    discovery = discover_works(
        settings.directors,
        client,
        concurrency=settings.concurrency,
        failure_policy=settings.failure_policy,
    )
    reconciliation = reconcile(
        discovery.works,
        seen_ids,
        previous={work.id: work for work in previous},
    )
    logger.info(
        f"{len(reconciliation.new_works)} new works, {len(reconciliation.archived)} already archived."
    )

    enrichment = enrich_new_works(
        reconciliation.works,
        reconciliation.new_works,
        client,
        concurrency=settings.concurrency,
        failure_policy=settings.failure_policy,
        min_runtime_minutes=settings.min_runtime_minutes,
    )

    archive_works = enrichment.works
    carried = 0
    if discovery.failures:
        # Credits we could not fetch this run must not look "new" next run.
        archive_works, carried = carry_forward(archive_works, previous)
        logger.warning(f"Discovery was partial; carrying {carried} archived works forward.")

    dispatch = dispatch_notification(
        enrichment.notify,
        envelope=settings.envelope,
        transport=transport,
        dry_run=settings.dry_run,
    )

    archived = commit_archive(settings.archive_path, archive_works)

    return PipelineResult(
        discovered=len(discovery.works),
        new=len(reconciliation.new_works),
        notified=list(enrichment.notify),
        archived=archived,
        short=enrichment.count(Verdict.SHORT),
        dropped=enrichment.count(Verdict.NO_IMDB_ID) + enrichment.count(Verdict.NO_RUNTIME),
        carried_forward=carried,
        sent=dispatch.sent,
        failures=[*discovery.failures, *enrichment.failures],
    )
