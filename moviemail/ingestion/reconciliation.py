from __future__ import annotations

from collections.abc import Mapping, Set
from dataclasses import dataclass, field

from moviemail.models.works import Work


@dataclass(frozen=True)
class Reconciliation:
    new_works: dict[int, Work]
    archived: dict[int, Work]
    works: dict[int, Work] = field(default_factory=dict)


def _keep_archived_imdb_id(work: Work, previous: Work | None) -> Work:
    if previous is None or work.imdb_id or not previous.imdb_id:
        return work
    return work.with_imdb_id(previous.imdb_id)


def reconcile(
    works: Mapping[int, Work],
    archived_ids: Set[int],
    *,
    previous: Mapping[int, Work] | None = None,
) -> Reconciliation:
    """
    Split discovered works by archive membership (by id only; content changes are ignored).

    Archived works are not enriched again, so the imdb id recorded for them in
    `previous` is copied onto the fresh credit. `works` on the result is the
    full discovered mapping with those ids restored.
    """

    previous = previous or {}
    new_works: dict[int, Work] = {}
    archived: dict[int, Work] = {}
    merged: dict[int, Work] = {}
    for work_id, work in works.items():
        if work_id in archived_ids:
            work = _keep_archived_imdb_id(work, previous.get(work_id))
            archived[work_id] = work
        else:
            new_works[work_id] = work
        merged[work_id] = work
    return Reconciliation(new_works=new_works, archived=archived, works=merged)
