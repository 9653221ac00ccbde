"""Error taxonomy shared by the cache, the session broker and the API."""


class CreativeCacheError(Exception):
    """Base class for all errors raised by this package."""

    status_code = 500


class InvalidInputError(CreativeCacheError):
    """Malformed or missing request fields. Raised before any side effect."""

    status_code = 400


class NotFoundError(CreativeCacheError):
    """Referenced campaign or session does not exist (or has expired)."""

    status_code = 404


class UpstreamError(CreativeCacheError):
    """The datastore or object storage failed."""

    status_code = 502


__all__ = [
    "CreativeCacheError",
    "InvalidInputError",
    "NotFoundError",
    "UpstreamError",
]
