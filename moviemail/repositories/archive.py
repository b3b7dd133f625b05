from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from moviemail.errors import ArchiveReadError, ArchiveWriteError
from moviemail.models.works import Work, work_from_row, work_to_row

logger = logging.getLogger(__name__)


def load_archive(path: str | Path) -> list[Work]:
    """
    Read the archive written by `save_archive`.

    A missing file is an empty archive. Anything else that cannot be read back
    as a JSON array of work rows raises `ArchiveReadError`.
    """

    archive_path = Path(path)
    try:
        raw = archive_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info(f"No archive at {archive_path}; starting empty.")
        return []
    except UnicodeDecodeError as exc:
        raise ArchiveReadError(f"Archive {archive_path} is not UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise ArchiveReadError(f"Unable to read archive {archive_path}: {exc}") from exc

    try:
        rows = json.loads(raw)
    except ValueError as exc:
        raise ArchiveReadError(f"Archive {archive_path} is not valid JSON: {exc}") from exc

    if not isinstance(rows, list):
        raise ArchiveReadError(f"Archive {archive_path} must contain a JSON array.")

    works: list[Work] = []
    seen: set[int] = set()
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ArchiveReadError(f"Archive {archive_path} entry {index} is not an object.")
        try:
            work = work_from_row(row)
        except ValueError as exc:
            raise ArchiveReadError(f"Archive {archive_path} entry {index}: {exc}") from exc
        if work.id in seen:
            continue
        seen.add(work.id)
        works.append(work)

    logger.info(f"Loaded {len(works)} archived works from {archive_path}.")
    return works


def archived_ids(works: Iterable[Work]) -> frozenset[int]:
    return frozenset(work.id for work in works)


def save_archive(path: str | Path, works: Iterable[Work]) -> None:
    """
    Replace the archive with `works`.

    Written to a sibling temp file and moved into place, so a failed write
    leaves the previous archive untouched.
    """

    archive_path = Path(path)
    rows = [work_to_row(work) for work in sorted(works, key=lambda w: w.id)]
    payload = json.dumps(rows, ensure_ascii=False, indent=2)

    tmp_name: str | None = None
    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{archive_path.name}.", suffix=".tmp", dir=archive_path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
            handle.write("\n")
        os.replace(tmp_name, archive_path)
        tmp_name = None
    except OSError as exc:
        raise ArchiveWriteError(f"Unable to write archive {archive_path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.warning(f"Could not remove temp archive file {tmp_name}")

    logger.info(f"Wrote {len(rows)} works to {archive_path}.")
