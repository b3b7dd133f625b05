"""
Persistence for the seen-works archive.
"""

from moviemail.repositories.archive import archived_ids, load_archive, save_archive

__all__ = [
    "archived_ids",
    "load_archive",
    "save_archive",
]
