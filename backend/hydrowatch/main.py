from __future__ import annotations

import asyncio
import logging
import math
import time
import uuid
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from hydrowatch.api.router import api_router
from hydrowatch.api.ws import router as ws_router
from hydrowatch.core.errors import AppHTTPException, error_payload, http_error_from
from hydrowatch.core.logging import setup_logging
from hydrowatch.core.rate_limit import rate_limiter
from hydrowatch.core.realtime import ConnectionManager
from hydrowatch.core.request_id import ensure_request_id, get_request_id, set_request_id
from hydrowatch.core.settings import settings
from hydrowatch.ml.errors import InferenceError
from hydrowatch.ml.inference import InferenceService, build_inference_service

"""
Application FastAPI (entrypoint).

Rôle (fonctionnel) :
- Racine de composition : construit l’InferenceService (registry + allocateur) au démarrage
  et le range dans app.state ; lance le warm-up des modèles en tâche de fond.
- Configure CORS, middlewares (request_id, timing, rate limit) et routers.
- Uniformise les erreurs côté client (format error_payload), y compris les erreurs d’inférence.

Ce fichier ne contient pas de logique métier :
- prédictions : hydrowatch.ml
- vues tableau de bord : hydrowatch.services
- routes : hydrowatch.api
"""


class UTF8JSONResponse(JSONResponse):
    """Réponse JSON avec charset UTF-8 explicite (cohérent sur tous les endpoints)."""
    media_type = "application/json; charset=utf-8"


setup_logging(settings.LOG_LEVEL)

log = logging.getLogger("hydrowatch")

# logger dédié observabilité HTTP (séparé du métier)
http_log = logging.getLogger("hydrowatch.http")


def _split_origins(value: str) -> list[str]:
    """Parse une liste d’origines CORS depuis une string 'a,b,c'."""
    if not value:
        return []
    return [o.strip() for o in value.split(",") if o.strip()]


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or uuid.uuid4().hex


def _error_response(request: Request, exc: AppHTTPException) -> UTF8JSONResponse:
    detail = exc.detail if isinstance(exc.detail, dict) else {}
    return UTF8JSONResponse(
        status_code=exc.status_code,
        content=error_payload(
            code=str(detail.get("code", "HTTP_ERROR")),
            message=str(detail.get("message", "HTTP error")),
            status=exc.status_code,
            request_id=_rid(request),
            details=detail.get("details"),
        ),
    )


def create_app(inference: Optional[InferenceService] = None, *, warmup: Optional[bool] = None) -> FastAPI:
    """
    Construit l’application.

    - inference : service injecté (tests) ; sinon construit depuis les settings au démarrage.
    - warmup    : force/désactive le pré-chargement des modèles (défaut : WARMUP_ON_STARTUP).
    """
    do_warmup = settings.WARMUP_ON_STARTUP if warmup is None else warmup

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "inference", None) is None:
            app.state.inference = build_inference_service(settings)

        warmup_task = None
        if do_warmup:
            # fire-and-forget : l’API répond pendant le chargement
            warmup_task = asyncio.create_task(app.state.inference.ensure_models_loaded())

        yield

        if warmup_task is not None and not warmup_task.done():
            warmup_task.cancel()
            with suppress(asyncio.CancelledError):
                await warmup_task
        await app.state.inference.registry.aclose()
        await app.state.ws_manager.close_all()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        default_response_class=UTF8JSONResponse,
        lifespan=lifespan,
    )

    app.state.inference = inference
    app.state.ws_manager = ConnectionManager()

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_split_origins(settings.CORS_ORIGINS) or ["http://localhost:3000"],
        allow_credentials=False,  # pas de cookies (API stateless)
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", "X-Request-Id"],
    )

    app.include_router(api_router)
    app.include_router(ws_router)

    # --- Middlewares ---
    # Déclaré en premier = exécuté en dernier : le rate limit voit le request_id déjà posé
    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        """Rate-limit optionnel : jamais sur les préflights CORS, seulement sur les préfixes limités."""
        if request.method == "OPTIONS" or not rate_limiter.applies_to(request.url.path):
            return await call_next(request)
        try:
            rate_limiter.check(request)
        except AppHTTPException as exc:
            return _error_response(request, exc)
        return await call_next(request)

    @app.middleware("http")
    async def request_observability(request: Request, call_next):
        rid = ensure_request_id(request.headers.get("X-Request-Id"))
        request.state.request_id = rid

        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            if response is not None:
                response.headers["X-Request-Id"] = rid

            # Slow request => WARNING, sinon INFO
            level = logging.WARNING if duration_ms >= settings.SLOW_REQUEST_MS else logging.INFO
            http_log.log(
                level,
                "request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "duration_ms": duration_ms,
                    "client_ip": request.client.host if request.client else None,
                },
            )
            set_request_id(None)

    # --- Error handlers : format standard, pas de stacktrace côté client ---
    @app.exception_handler(InferenceError)
    async def inference_exception_handler(request: Request, exc: InferenceError):
        http_exc = http_error_from(exc)
        log_fn = log.error if http_exc.status_code >= 500 else log.info
        log_fn("inference error: %s", exc, extra={"error": exc.code})
        return _error_response(request, http_exc)

    @app.exception_handler(AppHTTPException)
    async def app_http_exception_handler(request: Request, exc: AppHTTPException):
        return _error_response(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Erreurs HTTP natives (404, 405, etc.) -> payload standard."""
        if isinstance(exc.detail, dict):
            code = str(exc.detail.get("code", "HTTP_ERROR"))
            message = str(exc.detail.get("message", "HTTP error"))
            details = exc.detail.get("details")
        else:
            code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
            message = str(exc.detail)
            details = None

        return UTF8JSONResponse(
            status_code=exc.status_code,
            content=error_payload(code=code, message=message, status=exc.status_code, request_id=_rid(request), details=details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Erreurs de validation Pydantic -> 422 + details=exc.errors()."""
        return UTF8JSONResponse(
            status_code=422,
            content=error_payload(
                code="VALIDATION_ERROR",
                message="Invalid request",
                status=422,
                request_id=_rid(request),
                details=jsonable_errors(exc),
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Fallback : toute exception non gérée -> 500 + log serveur."""
        log.exception("Unhandled error: %s", exc)
        return UTF8JSONResponse(
            status_code=500,
            content=error_payload(
                code="INTERNAL_ERROR",
                message="Internal server error",
                status=500,
                request_id=_rid(request),
            ),
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    # exc.errors() peut contenir des objets non sérialisables (ctx.error = ValueError)
    # ou des entrées NaN / inf refusées par le rendu JSON strict
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str, float: _finite_or_str})


def _finite_or_str(value: float) -> object:
    return value if math.isfinite(value) else str(value)


app = create_app()
