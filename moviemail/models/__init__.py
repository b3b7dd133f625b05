"""
Domain models shared across the pipeline stages and scripts.
"""

from moviemail.models.works import Work, WorkDetails

__all__ = [
    "Work",
    "WorkDetails",
]
