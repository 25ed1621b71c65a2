"""
FastAPI endpoints for the ephemeral secret service.

Payloads arrive already encrypted by the client and are stored as opaque strings.
Every /api/* request except CORS preflight passes the two-window rate limiter first.
Error bodies are always {"error": "<message>"}; internal exception text is logged,
never returned.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as aioredis
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from ESS_Backend.ess_db import connection
from ESS_Backend.ess_db.allocator import IdAllocator
from ESS_Backend.ess_db.limiter import WindowLimiter
from ESS_Backend.ess_db.store import SecretStore
from ESS_Backend.ess_server.admission import AdmissionController
from ESS_Backend.ess_server.service import SecretService
from ESS_Backend.ess_shared import errors
from ESS_Backend.ess_shared.config import Settings
from ESS_Backend.ess_shared.fingerprint import client_identity, fingerprint
from ESS_Backend.ess_shared.types import SCOPE_LONG, SCOPE_SHORT

logger = logging.getLogger(__name__)


# ── Pydantic response models ──


class CreateResponse(BaseModel):
    secretId: str


class MetadataOut(BaseModel):
    readOnce: bool
    creationTime: int
    userExpiryOption: Optional[str] = None


class SecretResponse(BaseModel):
    encryptedPayload: str
    metadata: MetadataOut


class HealthResponse(BaseModel):
    status: str
    redis_connected: bool
    key_count: int = 0
    uptime_seconds: float = 0.0


# ── Wiring ──


def _wire(app: FastAPI, client: aioredis.Redis, limiters: Optional[tuple] = None) -> None:
    settings: Settings = app.state.settings

    if limiters is None:
        limiters = (
            WindowLimiter(client, SCOPE_SHORT, settings.short_window_limit, settings.short_window_seconds),
            WindowLimiter(client, SCOPE_LONG, settings.long_window_limit, settings.long_window_seconds),
        )

    store = SecretStore(client)
    allocator = IdAllocator(
        store,
        length=settings.id_length,
        max_attempts=settings.id_max_attempts,
        alphabet=settings.id_alphabet,
    )

    app.state.redis = client
    app.state.service = SecretService(store, allocator, settings)
    app.state.admission = AdmissionController(*limiters)


@asynccontextmanager
async def lifespan(app: FastAPI):
    owns_client = app.state.redis is None
    if owns_client:
        client = connection.create_secret_client(app.state.settings)
        try:
            await connection.ping(client)
        except errors.StorageError:
            logger.warning("Redis not reachable at startup; requests will fail until it is")
        _wire(app, client)
    yield
    if owns_client:
        await connection.close(app.state.redis)


def _error_response(exc: errors.SecretServiceError) -> JSONResponse:
    return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)


def _get_service(request: Request) -> SecretService:
    service = request.app.state.service
    if service is None:
        raise errors.ConfigurationError()
    return service


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[aioredis.Redis] = None,
    limiters: Optional[tuple] = None,
) -> FastAPI:
    """Build the application.

    Tests pass a fakeredis ``client`` (and optionally stub ``limiters``); in that case
    everything is wired immediately and the lifespan leaves the client alone.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(title="Ephemeral Secret Service", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.redis = None
    app.state.service = None
    app.state.admission = None
    if client is not None:
        _wire(app, client, limiters)

    # ── Middleware (last added runs first: CORS, then admission) ──

    @app.middleware("http")
    async def admission_middleware(request: Request, call_next):
        if request.method == "OPTIONS" or not request.url.path.startswith("/api/"):
            return await call_next(request)

        admission: Optional[AdmissionController] = request.app.state.admission
        if admission is None:
            logger.error("Rate limiter is not configured")
            return _error_response(errors.ConfigurationError())

        ip, user_agent = client_identity(request, settings.client_ip_header)
        try:
            await admission.enforce(fingerprint(ip, user_agent))
        except errors.RateLimitedError as e:
            return _error_response(e)
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=list(settings.allowed_methods),
        allow_headers=list(settings.allowed_headers),
        max_age=settings.cors_max_age,
    )

    # ── Error handlers ──

    @app.exception_handler(errors.SecretServiceError)
    async def service_error_handler(request: Request, exc: errors.SecretServiceError):
        return _error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Not Found" if exc.status_code == 404 else exc.detail
        return JSONResponse({"error": message}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal Server Error"}, status_code=500)

    # ── Endpoints ──

    @app.post("/api/create", response_model=CreateResponse)
    async def create_secret(request: Request):
        service = _get_service(request)
        try:
            body = await request.json()
        except ValueError:
            raise errors.ValidationError("Invalid JSON")

        try:
            secret_id = await service.create(body)
        except (errors.ValidationError, errors.ServiceBusyError):
            raise
        except Exception as e:
            logger.exception("Create failed")
            raise errors.InternalError("Failed to create secret") from e
        return CreateResponse(secretId=secret_id)

    @app.get("/api/secret/{secret_id}", response_model=SecretResponse)
    async def read_secret(secret_id: str, request: Request, background_tasks: BackgroundTasks):
        service = _get_service(request)
        try:
            record = await service.read(secret_id, background_tasks)
        except (errors.ValidationError, errors.SecretNotFoundError):
            raise
        except Exception as e:
            logger.exception("Retrieve failed")
            raise errors.InternalError("Failed to retrieve secret") from e
        return SecretResponse(
            encryptedPayload=record.payload,
            metadata=MetadataOut(**record.metadata.to_public()),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request):
        client = request.app.state.redis
        if client is None:
            return HealthResponse(status="degraded", redis_connected=False)
        status = await connection.health_check(client)
        return HealthResponse(
            status="ok" if status.redis_connected else "degraded",
            redis_connected=status.redis_connected,
            key_count=status.key_count,
            uptime_seconds=status.uptime_seconds,
        )

    return app
