# app.py - FastAPI server
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from config import Settings
from db import RecordStore
from errors import MalformedBodyError, PayloadTooLargeError, classify
from intake import LamaranWriter, validate
import schemas

logger = logging.getLogger("lamaran-backend")

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

router = APIRouter()


# Dependencies
def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_writer(request: Request) -> LamaranWriter:
    return request.app.state.writer


async def read_payload(request: Request, max_bytes: int) -> Any:
    """Decode a JSON or form body; None when there is nothing to decode."""
    body = await request.body()
    if len(body) > max_bytes:
        raise PayloadTooLargeError(max_bytes)
    if not body.strip():
        return None

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        return {k: v for k, v in form.items()}
    if "json" not in content_type:
        return None
    try:
        return json.loads(body)
    except ValueError:
        raise MalformedBodyError() from None


@router.get("/health", response_model=schemas.HealthResponse)
def health(store: RecordStore = Depends(get_store)):
    return schemas.HealthResponse(
        timestamp=datetime.now(timezone.utc),
        database=store.status,
        dbHost=store.host,
        dbName=store.name,
    )


@router.post("/submit-lamaran", status_code=201, response_model=schemas.SubmitResponse)
async def submit_lamaran(request: Request, writer: LamaranWriter = Depends(get_writer)):
    settings: Settings = request.app.state.settings
    try:
        payload = await read_payload(request, settings.max_body_bytes)
        keys = list(payload.keys()) if isinstance(payload, dict) else type(payload).__name__
        logger.info("[SUBMIT] Received submission; keys=%s", keys)

        record = validate(payload)
        saved = await writer.submit(record)
    except Exception as e:
        status_code, body = classify(e, debug=settings.debug)
        if status_code >= 500:
            logger.error("[SUBMIT] Error saving lamaran: %s", e, exc_info=True)
        else:
            logger.warning("[SUBMIT] Rejected submission: %s", e)
        return JSONResponse(status_code=status_code, content=body)

    response = schemas.SubmitResponse(data=saved)
    return JSONResponse(status_code=201, content=response.model_dump(by_alias=True, mode="json"))


def create_app(settings: Optional[Settings] = None, store: Optional[RecordStore] = None) -> FastAPI:
    """Build the API around one shared record store.

    The store is started when the app starts serving and stopped at shutdown;
    route prefix and CORS policy come from ``settings``.
    """
    settings = settings or Settings.from_env()
    if store is None:
        store = RecordStore(settings.database_url, retry_interval=settings.retry_interval,
                            pool_size=settings.pool_size, connect_timeout=settings.connect_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.start()
        logger.info("[STARTUP] Lamaran API ready; health=%s/health submit=%s/submit-lamaran",
                    settings.api_prefix, settings.api_prefix)
        try:
            yield
        finally:
            store.stop()
            logger.info("[SHUTDOWN] Lamaran API stopped")

    app = FastAPI(title="Lamaran Intake API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.writer = LamaranWriter(store, timeout=settings.submit_timeout)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    async def server_error(request: Request, exc: Exception):
        logger.error("Server error on %s: %s", request.url.path, exc, exc_info=exc)
        body = {"success": False, "message": "Internal server error"}
        if settings.debug:
            body["error"] = str(exc)
        return JSONResponse(status_code=500, content=body)

    app.add_exception_handler(Exception, server_error)
    app.include_router(router, prefix=settings.api_prefix)
    return app


_settings = Settings.from_env()
logging.basicConfig(level=_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=_settings.host, port=_settings.port)
