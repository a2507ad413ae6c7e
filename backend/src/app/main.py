"""FastAPI backend for the Messaging API."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import conversations as conversations_routes
from .routes import messages as messages_routes
from .. import config
from ..services.errors import MessagingError, ServerError
from ..services.supabase_client import SupabaseClientProvider
from ..utils.redact import redact_secrets

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The client itself is built on first use so missing credentials only fail requests.
    provider = SupabaseClientProvider(config.SUPABASE_URL, config.SUPABASE_KEY, schema=config.SUPABASE_SCHEMA)
    app.state.supabase = provider
    logger.info("Messaging API starting (env=%s, store=%s)", config.ENV, "postgres" if config.DATABASE_URL else "supabase")
    try:
        yield
    finally:
        app.state.supabase = None
        await provider.aclose()


app = FastAPI(
    title="Messaging API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api-docs",
    redoc_url=None,
)

_cors_origins = config.cors_allow_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=False if _cors_origins == ["*"] else True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_response(status_code: int, error_code: str, request_id: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content={"detail": error_code, "request_id": request_id, "error_code": error_code},
    )
    resp.headers["X-Request-ID"] = request_id
    return resp


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Messaging API"}


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def _log_error(exc: MessagingError, request_id: str) -> None:
    if exc.status_code >= 500:
        cause = exc.cause if exc.cause is not None else exc
        logger.error(
            "%s request_id=%s: %s",
            exc.kind,
            request_id,
            redact_secrets(exc.message),
            exc_info=(type(cause), cause, cause.__traceback__),
        )
    else:
        logger.info("%s request_id=%s: %s", exc.kind, request_id, exc.message)


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError):
    request_id = _request_id(request)
    _log_error(exc, request_id)
    return _error_response(exc.status_code, exc.error_code, request_id)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = _request_id(request)
    logger.info("Invalid request request_id=%s errors=%s", request_id, exc.errors())
    return _error_response(400, "invalid_request", request_id)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    error = ServerError(f"Unhandled {type(exc).__name__}: {exc}", cause=exc)
    _log_error(error, request_id)
    return _error_response(error.status_code, error.error_code, request_id)


app.include_router(messages_routes.router)
app.include_router(conversations_routes.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
