# errors.py - intake error taxonomy and the status/payload classifier
import traceback
from typing import Any, Dict, List, Tuple

TIMEOUT_MESSAGE = "Database operation timed out. Please try again."


class IntakeError(Exception):
    """Base class for every failure the submission pipeline reports."""

    error_type = "IntakeError"


class EmptyBodyError(IntakeError):
    error_type = "EmptyBodyError"

    def __init__(self, message: str = "Request body cannot be empty"):
        super().__init__(message)


class MalformedBodyError(IntakeError):
    error_type = "MalformedBodyError"

    def __init__(self, message: str = "Request body is not valid JSON"):
        super().__init__(message)


class PayloadTooLargeError(IntakeError):
    error_type = "PayloadTooLargeError"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Request body exceeds {limit} bytes")


class SchemaValidationError(IntakeError):
    """One message per offending field, reported as a single comma-joined string.

    Raised both for payloads rejected before the store and for rows the store's
    own schema rejects, so callers see the same shape either way.
    """

    error_type = "ValidationError"

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class StoreError(IntakeError):
    error_type = "StoreError"


class SubmitTimeoutError(StoreError):
    error_type = "TimeoutError"

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Save operation timed out after {timeout:g} seconds")


def classify(exc: BaseException, debug: bool = False) -> Tuple[int, Dict[str, Any]]:
    """Map a pipeline failure to an HTTP status and a JSON error payload."""
    if isinstance(exc, EmptyBodyError):
        status, message = 400, str(exc)
    elif isinstance(exc, (SchemaValidationError, MalformedBodyError)):
        status, message = 400, str(exc)
    elif isinstance(exc, PayloadTooLargeError):
        status, message = 413, str(exc)
    elif isinstance(exc, SubmitTimeoutError):
        status, message = 500, TIMEOUT_MESSAGE
    elif isinstance(exc, StoreError):
        status, message = 500, str(exc)
    else:
        status, message = 500, str(exc) or type(exc).__name__

    body: Dict[str, Any] = {"success": False, "message": message}
    if not isinstance(exc, EmptyBodyError):
        body["errorType"] = getattr(exc, "error_type", type(exc).__name__)
    if debug:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return status, body
