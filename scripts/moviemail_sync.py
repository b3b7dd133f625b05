#!/usr/bin/env python3
"""Check the director roster on TMDb, announce new films, and update the archive."""

from __future__ import annotations

import argparse
import logging
import sys

from moviemail.config import load_settings, parse_director_args
from moviemail.errors import ConfigurationError, MovieMailError
from moviemail.ingestion.fanout import FailurePolicy
from moviemail.pipeline import PipelineResult, run_pipeline
from moviemail.utils.env import load_env

logger = logging.getLogger("moviemail")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="moviemail_sync",
        description="Announce new films by the configured directors and update the archive.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Print new films instead of emailing them (archive is still updated).",
    )
    parser.add_argument(
        "--archive-path",
        default=None,
        help="Archive JSON file (overrides MOVIEMAIL_ARCHIVE_PATH).",
    )
    parser.add_argument(
        "--director",
        action="append",
        default=[],
        help="TMDb person id and display name as ID=NAME. Repeatable; replaces MOVIEMAIL_DIRECTORS_JSON.",
    )
    parser.add_argument(
        "--failure-policy",
        choices=[p.value for p in FailurePolicy],
        default=None,
        help="abort: any failed lookup aborts the run. skip: drop the failed lookup and continue.",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Concurrent TMDb requests per stage.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Load settings from this .env file (overrides MOVIEMAIL_ENV_FILE).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )
    return parser.parse_args(argv)


def _print_summary(result: PipelineResult) -> None:
    print(
        f"discovered={result.discovered} new={result.new} notified={len(result.notified)} "
        f"short={result.short} dropped={result.dropped} archived={result.archived}"
        + (f" carried_forward={result.carried_forward}" if result.carried_forward else "")
    )
    for failure in result.failures:
        print(f"  failed: {failure.label} ({failure.key}): {failure.message}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        load_env(args.env_file)
        settings = load_settings(
            overrides={
                "dry_run": args.dry_run,
                "archive_path": args.archive_path,
                "directors": parse_director_args(args.director) if args.director else None,
                "failure_policy": args.failure_policy,
                "concurrency": args.concurrency,
            }
        )
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    try:
        result = run_pipeline(settings)
    except MovieMailError as exc:
        logger.error(f"Run aborted: {exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    _print_summary(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
