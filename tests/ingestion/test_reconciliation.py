from __future__ import annotations

from moviemail.ingestion.reconciliation import reconcile
from moviemail.models.works import Work


def test_reconcile_splits_by_archive_membership() -> None:
    works = {
        1: Work(id=1, title="Old", job="Director", release_date="2020-01-01"),
        2: Work(id=2, title="New", job="Director", release_date="2025-01-01"),
    }

    result = reconcile(works, frozenset({1, 99}))

    assert list(result.new_works) == [2]
    assert list(result.archived) == [1]
    assert list(works) == [1, 2]


def test_reconcile_matches_by_id_not_content() -> None:
    works = {1: Work(id=1, title="Renamed", job="Director", release_date="2026-03-03")}
    assert reconcile(works, {1}).new_works == {}


def test_reconcile_is_idempotent() -> None:
    works = {i: Work(id=i, title=str(i), job="Director", release_date="2024-01-01") for i in range(5)}
    archived = {0, 2, 4}

    assert reconcile(works, archived) == reconcile(works, archived)


def test_reconcile_restores_archived_imdb_id() -> None:
    fresh = Work(id=1, title="Old", job="Director", release_date="2020-01-01", director_name="D")
    new = Work(id=2, title="New", job="Director", release_date="2025-01-01", director_name="D")
    previous = {1: fresh.with_imdb_id("tt1")}

    result = reconcile({1: fresh, 2: new}, {1}, previous=previous)

    assert result.archived == {1: fresh.with_imdb_id("tt1")}
    assert result.works == {1: fresh.with_imdb_id("tt1"), 2: new}
    assert result.new_works == {2: new}


def test_reconcile_without_previous_records_keeps_credit_as_is() -> None:
    work = Work(id=1, title="Old", job="Director", release_date="2020-01-01")

    assert reconcile({1: work}, {1}).works == {1: work}
