from __future__ import annotations

import pytest

from moviemail.errors import MetadataFetchError
from moviemail.ingestion.enrichment import Verdict, enrich_new_works, judge_work
from moviemail.ingestion.fanout import FailurePolicy
from moviemail.models.works import Work, WorkDetails


class _FakeClient:
    def __init__(self, details: dict[int, WorkDetails], *, fail: set[int] | None = None) -> None:
        self._details = details
        self._fail = fail or set()

    def credits_for_person(self, person_id: str) -> list[Work]:
        raise AssertionError("enrichment must not fetch credits")

    def details_for_work(self, work_id: int) -> WorkDetails:
        if work_id in self._fail:
            raise MetadataFetchError(f"timeout for {work_id}")
        return self._details[work_id]


def _work(work_id: int, release_date: str = "2024-01-01") -> Work:
    return Work(id=work_id, title=f"Work {work_id}", job="Director", release_date=release_date, director_name="D")


@pytest.mark.parametrize(
    ("details", "expected"),
    [
        (WorkDetails(work_id=1, imdb_id=None, runtime=90), Verdict.NO_IMDB_ID),
        (WorkDetails(work_id=1, imdb_id=None, runtime=None), Verdict.NO_IMDB_ID),
        (WorkDetails(work_id=1, imdb_id="tt1", runtime=None), Verdict.NO_RUNTIME),
        (WorkDetails(work_id=1, imdb_id="tt1", runtime=0), Verdict.NO_RUNTIME),
        (WorkDetails(work_id=1, imdb_id="tt1", runtime=30), Verdict.SHORT),
        (WorkDetails(work_id=1, imdb_id="tt1", runtime=59), Verdict.SHORT),
        (WorkDetails(work_id=1, imdb_id="tt1", runtime=60), Verdict.NOTIFY),
    ],
)
def test_judge_work(details: WorkDetails, expected: Verdict) -> None:
    assert judge_work(details) is expected


def test_enrichment_applies_verdicts_to_archive_and_notify_list() -> None:
    archived = Work(id=100, title="Already seen", job="Director", release_date="2019-01-01", director_name="D")
    new = {i: _work(i) for i in (1, 2, 3, 4)}
    works = {100: archived, **new}
    client = _FakeClient(
        {
            1: WorkDetails(work_id=1, imdb_id="tt1", runtime=120),
            2: WorkDetails(work_id=2, imdb_id="tt2", runtime=20),
            3: WorkDetails(work_id=3, imdb_id=None, runtime=95),
            4: WorkDetails(work_id=4, imdb_id="tt4", runtime=0),
        }
    )

    summary = enrich_new_works(works, new, client)

    assert sorted(summary.works) == [1, 2, 100]
    assert summary.works[1].imdb_id == "tt1"
    assert summary.works[2].imdb_id is None
    assert summary.works[100] is archived
    assert [w.id for w in summary.notify] == [1]
    assert summary.verdicts == {
        1: Verdict.NOTIFY,
        2: Verdict.SHORT,
        3: Verdict.NO_IMDB_ID,
        4: Verdict.NO_RUNTIME,
    }
    assert sorted(works) == [1, 2, 3, 4, 100]


def test_notify_list_is_ordered_by_release_date_then_title() -> None:
    new = {
        1: _work(1, "2025-05-01"),
        2: _work(2, "2024-02-01"),
        3: _work(3, "2025-05-01"),
    }
    client = _FakeClient({i: WorkDetails(work_id=i, imdb_id=f"tt{i}", runtime=100) for i in new})

    summary = enrich_new_works(new, new, client, concurrency=3)

    assert [w.id for w in summary.notify] == [2, 1, 3]


def test_custom_runtime_threshold() -> None:
    new = {1: _work(1)}
    client = _FakeClient({1: WorkDetails(work_id=1, imdb_id="tt1", runtime=45)})

    summary = enrich_new_works(new, new, client, min_runtime_minutes=40)

    assert [w.id for w in summary.notify] == [1]


def test_enrichment_aborts_on_failure_by_default() -> None:
    new = {1: _work(1), 2: _work(2)}
    client = _FakeClient({1: WorkDetails(work_id=1, imdb_id="tt1", runtime=100)}, fail={2})

    with pytest.raises(MetadataFetchError, match="Work 2"):
        enrich_new_works(new, new, client)


def test_enrichment_skip_policy_excludes_failed_work() -> None:
    new = {1: _work(1), 2: _work(2)}
    client = _FakeClient({1: WorkDetails(work_id=1, imdb_id="tt1", runtime=100)}, fail={2})

    summary = enrich_new_works(new, new, client, failure_policy=FailurePolicy.SKIP)

    assert sorted(summary.works) == [1]
    assert [w.id for w in summary.notify] == [1]
    assert summary.verdicts[2] is Verdict.FAILED
    assert [f.key for f in summary.failures] == ["2"]


def test_no_new_works_makes_no_requests() -> None:
    works = {1: _work(1)}
    summary = enrich_new_works(works, {}, _FakeClient({}))

    assert summary.works == works
    assert summary.notify == []
