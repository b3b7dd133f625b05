"""
Pipeline stages: discover credits, reconcile against the archive, enrich new works.
"""

from moviemail.ingestion.discovery import DiscoverySummary, discover_works
from moviemail.ingestion.enrichment import EnrichSummary, Verdict, enrich_new_works
from moviemail.ingestion.fanout import FailurePolicy, FetchFailure
from moviemail.ingestion.reconciliation import Reconciliation, reconcile

__all__ = [
    "DiscoverySummary",
    "EnrichSummary",
    "FailurePolicy",
    "FetchFailure",
    "Reconciliation",
    "Verdict",
    "discover_works",
    "enrich_new_works",
    "reconcile",
]
