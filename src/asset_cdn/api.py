"""
HTTP surface for the asset CDN.

Routes:
- GET  /                              health
- POST /asset/{asset_id}              register (or replace) an asset
- GET  /asset/{asset_id}[/{path}]     stream the asset; the first path
                                      segment selects a variant when it names
                                      one, otherwise it is a vanity filename

Every AssetError is turned into a JSON body with the status from
``errors.status_code_for``.
"""
from __future__ import annotations

import json
import logging
import uuid
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from . import SERVICE_NAME, __version__
from .errors import (
    AssetError,
    AssetIntegrityError,
    AssetNotFound,
    AssetValidationError,
    UpstreamUnavailable,
    error_body,
    status_code_for,
)
from .log_config import request_scope
from .models import HealthStatus
from .service import AssetService
from .settings import Settings, create_settings_from_env
from .storage.factory import make_stores

__all__ = ["create_app", "get_service"]

logger = logging.getLogger(__name__)

FEATURES = ["variants", "internal-key", "url-storage"]

EXPOSED_HEADERS = [
    "X-Asset-Id",
    "X-Variant",
    "X-Requested-Variant",
    "X-Variant-Dimensions",
    "X-Original-Dimensions",
    "X-Request-Id",
]


def get_service(request: Request) -> AssetService:
    return request.app.state.service


def _log_asset_error(request: Request, exc: AssetError) -> None:
    where = f"{request.method} {request.url.path}"
    if isinstance(exc, AssetIntegrityError):
        logger.error(f"{where}: corrupt asset metadata: {exc}")
    elif isinstance(exc, UpstreamUnavailable):
        logger.warning(f"{where}: upstream unavailable ({exc.url}): {exc}")
    elif isinstance(exc, AssetNotFound):
        logger.info(f"{where}: not found at {exc.layer} layer: {exc}")
    else:
        logger.info(f"{where}: rejected: {exc}")


def create_app(
    service: Optional[AssetService] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Preassembled service (tests inject one backed by fakes)
        settings: Settings to build stores from when ``service`` is None;
            loaded from the environment when also None

    Returns:
        Configured FastAPI app
    """
    if service is None:
        settings = settings or create_settings_from_env()
        stores = make_stores(settings)
        service = AssetService(
            metadata=stores.metadata,
            objects=stores.objects,
            fetcher=stores.fetcher,
            settings=settings,
        )
    settings = service.settings

    app = FastAPI(
        title=SERVICE_NAME,
        description="Stable URLs for assets stored anywhere",
        version=__version__,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=EXPOSED_HEADERS,
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        with request_scope(request_id):
            response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    @app.exception_handler(AssetError)
    async def asset_error_handler(request: Request, exc: AssetError) -> JSONResponse:
        _log_asset_error(request, exc)
        return JSONResponse(status_code=status_code_for(exc), content=error_body(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"{request.method} {request.url.path}: unhandled error")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc)},
        )

    @app.get("/", response_model=HealthStatus)
    def health() -> HealthStatus:
        return HealthStatus(
            service=SERVICE_NAME,
            status="healthy",
            version=__version__,
            features=FEATURES,
        )

    @app.post("/asset/{asset_id}", status_code=201)
    async def register_asset(
        asset_id: str,
        request: Request,
        svc: AssetService = Depends(get_service),
    ) -> JSONResponse:
        """Register an asset from a JSON body, replacing any previous record."""
        raw = await request.body()
        try:
            body = json.loads(raw or b"null")
        except ValueError as e:
            raise AssetValidationError(f"Request body is not valid JSON: {e}", kind="malformed_body") from e

        result = await run_in_threadpool(svc.register, asset_id, body)
        return JSONResponse(status_code=201, content=result.model_dump(mode="json", exclude_none=True))

    def _stream(asset_id: str, path: Optional[str], svc: AssetService) -> StreamingResponse:
        response = svc.retrieve(asset_id, path)
        return StreamingResponse(
            iter(response.stream),
            headers=response.headers,
            background=BackgroundTask(response.stream.close),
        )

    @app.get("/asset/{asset_id}")
    def get_asset(asset_id: str, svc: AssetService = Depends(get_service)) -> StreamingResponse:
        return _stream(asset_id, None, svc)

    @app.get("/asset/{asset_id}/{path:path}")
    def get_asset_path(asset_id: str, path: str, svc: AssetService = Depends(get_service)) -> StreamingResponse:
        return _stream(asset_id, path, svc)

    return app
