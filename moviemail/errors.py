from __future__ import annotations


class MovieMailError(RuntimeError):
    """Base class for fatal pipeline errors."""


class ConfigurationError(MovieMailError):
    pass


class ArchiveReadError(MovieMailError):
    pass


class ArchiveWriteError(MovieMailError):
    pass


class MetadataFetchError(MovieMailError):
    pass


class NotificationDispatchError(MovieMailError):
    pass
