"""Errors raised by the storage and content layers.

Each error carries a machine-readable ``kind`` and a human message so the
HTTP layer can turn it into a response without inspecting internals.
"""


class SiteError(Exception):
    """Base class for errors surfaced to the request boundary."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreUnavailable(SiteError):
    """The document store could not be read or written."""

    kind = "store_unavailable"
    status_code = 503


class UniquenessViolation(SiteError):
    """A create-only write hit an existing key (slug, subscriber email).

    Retryable by the caller; never retried internally.
    """

    kind = "uniqueness_violation"
    status_code = 409


class SlugAssignmentExhausted(StoreUnavailable):
    """Even the timestamp-suffixed fallback slug is already taken."""

    kind = "slug_assignment_exhausted"
