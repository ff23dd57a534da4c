"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; the app factory registers a single handler that
renders them as ``{"error": code, "message": ..., "field": ...}`` with the
status code carried by the class.
"""

from typing import Any, Dict, Optional


class HandbookError(Exception):
    status_code = 500
    code = "handbook_error"

    def __init__(self, message: str, field: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        data = {"error": self.code, "message": self.message}
        if self.field is not None:
            data["field"] = self.field
        return data


class ValidationError(HandbookError):
    status_code = 400
    code = "validation_error"


class NotFound(HandbookError):
    status_code = 404
    code = "not_found"


class Conflict(HandbookError):
    status_code = 409
    code = "conflict"


class TransactionAborted(HandbookError):
    """The store rejected a write; the transaction was rolled back in full."""

    status_code = 503
    code = "transaction_aborted"


class PartialResultWarning(UserWarning):
    """An optional branch of a composed read failed.

    Carried in results instead of being raised.
    """

    def __init__(self, branch: str, cause: BaseException):
        super().__init__(f"{branch} unavailable: {cause}")
        self.branch = branch
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {"branch": self.branch, "cause": str(self.cause)}
