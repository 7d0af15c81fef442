# intake.py - submission validation and the timed write path
import asyncio
import logging
from collections.abc import Mapping
from typing import Any
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from db import RecordStore
from errors import EmptyBodyError, SchemaValidationError, StoreError, SubmitTimeoutError
from schemas import LamaranIn, LamaranOut

logger = logging.getLogger("lamaran-intake")

# Field order of the record; error messages are reported in this order.
REQUIRED_FIELDS = ("fullName", "email", "phone")
# Record field -> column holding it
FIELD_COLUMNS = {"fullName": "full_name", "email": "email", "phone": "phone"}
_MISSING_TYPES = {"missing", "string_too_short", "string_type"}


def _field_message(field: str, err_type: str, value: Any) -> str:
    if err_type in _MISSING_TYPES and (value is None or value == ""):
        return f"Path `{field}` is required."
    return f"Path `{field}` must be a string."


def validate(payload: Any) -> LamaranIn:
    """Check a decoded request body and coerce it into a LamaranIn.

    Raises EmptyBodyError for a missing or empty body and SchemaValidationError
    listing every missing or unusable field otherwise.
    """
    if not payload:
        raise EmptyBodyError()
    if not isinstance(payload, Mapping):
        payload = {}

    try:
        return LamaranIn.model_validate(dict(payload))
    except ValidationError as exc:
        failed = {}
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else ""
            if field in REQUIRED_FIELDS and field not in failed:
                failed[field] = _field_message(field, err["type"], payload.get(field))
        raise SchemaValidationError([failed[f] for f in REQUIRED_FIELDS if f in failed]) from None


def _missing_fields(document):
    """Fields whose NOT NULL columns the store refused."""
    return [f for f in REQUIRED_FIELDS if document.get(FIELD_COLUMNS[f]) in (None, "")]


def _to_out(row) -> LamaranOut:
    return LamaranOut(id=row.id, full_name=row.full_name, email=row.email,
                      phone=row.phone, created_at=row.created_at)


class LamaranWriter:
    """Saves validated submissions through the record store with a bounded wait.

    The store call runs on the loop's default executor. When ``timeout``
    elapses the caller gets SubmitTimeoutError, but the write itself keeps
    running and may still land; its late outcome is only logged.
    """

    def __init__(self, store: RecordStore, timeout: float = 15.0):
        self.store = store
        self.timeout = timeout

    def _save(self, record: LamaranIn):
        document = record.to_document()
        try:
            return self.store.create(document)
        except IntegrityError as e:
            missing = _missing_fields(document)
            if missing:
                raise SchemaValidationError([f"Path `{f}` is required." for f in missing]) from e
            raise StoreError(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    async def submit(self, record: LamaranIn) -> LamaranOut:
        loop = asyncio.get_running_loop()
        pending = loop.run_in_executor(None, self._save, record)
        try:
            row = await asyncio.wait_for(asyncio.shield(pending), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("[SUBMIT] Save still pending after %ss; abandoning wait", self.timeout)
            pending.add_done_callback(_log_late_outcome)
            raise SubmitTimeoutError(self.timeout) from None

        logger.info("[SUBMIT] Saved lamaran %s", row.id)
        return _to_out(row)


def _log_late_outcome(fut):
    if fut.cancelled():
        return
    exc = fut.exception()
    if exc is not None:
        logger.error("[SUBMIT] Abandoned save failed: %s", exc)
    else:
        logger.warning("[SUBMIT] Abandoned save completed later as %s", fut.result().id)
