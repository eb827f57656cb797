"""
Error taxonomy for the script archive.

Each error carries the HTTP status the API translates it to.
"""


class ScriptSnipError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "An unexpected internal server error occurred"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ScriptSnipError):
    """Malformed caller input (page, limit, count, ids)."""

    status_code = 400
    default_message = "Invalid input data"


class NotFoundError(ScriptSnipError):
    """The requested record does not exist, or there is nothing to return."""

    status_code = 404
    default_message = "Resource not found"


class EmptyPopulationError(ScriptSnipError):
    """
    Random sampling was asked for several records but the collection is empty.

    Rendered with a ``message`` key instead of ``error``, unlike NotFoundError.
    """

    status_code = 404
    default_message = "No scripts available in the database."


class InternalError(ScriptSnipError):
    """An anomaly that should not happen, e.g. a row vanishing mid-read."""

    status_code = 500


class StoreError(ScriptSnipError):
    """A query against the store failed. The driver message is passed through."""

    status_code = 500
    default_message = "Database request failed"
