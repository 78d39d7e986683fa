"""Custom exception hierarchy for presencerelay."""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for all presencerelay errors."""


class RelayConfigError(RelayError):
    """Invalid or missing configuration."""


class ValidationError(RelayError):
    """A required field is missing/empty, or an argument is out of range.

    Raised synchronously by the state store before any mutation happens,
    so the collections are always left in their prior state.
    """

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class DuplicateMessageError(ValidationError):
    """A caller-supplied message id is already held in the message log."""

    def __init__(self, message_id: str) -> None:
        self.message_id = message_id
        super().__init__(f"message id {message_id!r} already exists", field="id")


class NotFoundError(RelayError):
    """Lookup of a single record by id failed.

    Reserved for lookup-by-id operations; the list-style reads never raise it.
    """


class RelayRequestError(RelayError):
    """An HTTP request could not be decoded (bad JSON, wrong content type, too large)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 400,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
