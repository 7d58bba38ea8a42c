# This file builds the FastAPI application and registers all API routers.
# It exists so startup behavior, middleware, and error handling are configured in one place.
# The app adds request IDs, timing and security headers, per-IP rate limits, and Prometheus metrics.
# Keeping bootstrap logic centralized makes deployment and testing more predictable.

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import RequestResponseEndpoint

from src.api.api_config import ApiConfig, get_api_config
from src.api.dependencies import client_ip, get_database_client
from src.api.error_handlers import RateLimitExceeded, api_error_response, register_error_handlers
from src.api.rate_limiter import FixedWindowRateLimiter
from src.api.routers.auth import router as auth_router
from src.api.routers.clientes import router as clientes_router
from src.api.routers.configuracion import router as configuracion_router
from src.api.routers.empleados import router as empleados_router
from src.api.routers.health import router as health_router
from src.api.routers.servicios import router as servicios_router
from src.api.routers.sucursales import router as sucursales_router
from src.api.routers.tipos_servicios import router as tipos_servicios_router
from src.api.routers.users import router as users_router
from src.api.routers.vehiculos import router as vehiculos_router
from src.common.logging import configure_logging, handle_event_loop_exception, install_fatal_exception_hooks

logger = logging.getLogger(__name__)

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

API_HTTP_REQUESTS_TOTAL = Counter(
    "api_http_requests_total",
    "Total number of HTTP requests processed by the API.",
    ["method", "path", "status_code"],
)
API_HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "api_http_request_duration_seconds",
    "API request duration in seconds.",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)
API_HTTP_INFLIGHT_REQUESTS = Gauge(
    "api_http_inflight_requests",
    "Number of API requests currently being processed.",
    ["method"],
)
API_RATE_LIMITED_TOTAL = Counter(
    "api_rate_limited_requests_total",
    "Requests rejected by the per-IP rate limiter.",
    ["limiter"],
)


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return str(getattr(route, "path", request.url.path))


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if app.state.config.exit_on_fatal_error:
        install_fatal_exception_hooks()
        asyncio.get_running_loop().set_exception_handler(handle_event_loop_exception)
    db_factory = app.dependency_overrides.get(get_database_client, get_database_client)
    try:
        app.state.db_connected_at_startup = db_factory().can_connect()
    except Exception:
        logger.exception("Database check failed at startup")
        app.state.db_connected_at_startup = False
    if app.state.db_connected_at_startup:
        logger.info("Database reachable at startup")
    else:
        logger.error("Database unreachable at startup; requests touching storage will fail")
    yield


def create_app(config: ApiConfig | None = None) -> FastAPI:
    """Create configured FastAPI application instance."""

    configure_logging()
    config = config or get_api_config()

    app = FastAPI(
        title=config.api_name,
        description=(
            "Backend for a lubricant and vehicle-service shop: clients, vehicles, service records, "
            "employees, branches, service types, configuration, and users."
        ),
        version=config.app_version,
        lifespan=_lifespan,
        openapi_tags=[
            {"name": "health", "description": "Service liveness and version metadata."},
            {"name": "auth", "description": "Login, logout, profile, and password management."},
            {"name": "servicios", "description": "Service records with employees, items, and products."},
            {"name": "clientes", "description": "Clients and their vehicles."},
            {"name": "vehiculos", "description": "Vehicles and mileage."},
            {"name": "users", "description": "Admin-only user management."},
        ],
    )
    app.state.config = config
    app.state.general_limiter = FixedWindowRateLimiter(
        limit=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
    )
    app.state.login_limiter = FixedWindowRateLimiter(
        limit=config.login_rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
    )
    login_path = f"{config.api_prefix}/auth/login"

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        )

    def rate_limit_rejection(request: Request) -> Response | None:
        if not config.enable_rate_limiting or not request.url.path.startswith(config.api_prefix):
            return None
        key = client_ip(request, trust_proxy=config.trust_proxy) or "unknown"
        checks = [("general", app.state.general_limiter)]
        if request.url.path == login_path:
            checks.append(("login", app.state.login_limiter))
        for name, limiter in checks:
            decision = limiter.hit(key)
            if not decision.allowed:
                API_RATE_LIMITED_TOTAL.labels(limiter=name).inc()
                logger.warning("Rate limit (%s) exceeded for %s on %s", name, key, request.url.path)
                message = (
                    "Demasiados intentos de login, intente nuevamente más tarde" if name == "login" else None
                )
                return api_error_response(
                    request,
                    RateLimitExceeded(retry_after_seconds=decision.retry_after_seconds, message=message),
                )
        return None

    @app.middleware("http")
    async def request_context_middleware(
        request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        method_label = request.method
        started = time.perf_counter()
        status_code = 500
        API_HTTP_INFLIGHT_REQUESTS.labels(method=method_label).inc()
        try:
            response = rate_limit_rejection(request)
            if response is None:
                response = await call_next(request)
            status_code = response.status_code
            duration_ms = (time.perf_counter() - started) * 1000.0

            response.headers["x-request-id"] = request_id
            response.headers["x-response-time-ms"] = f"{duration_ms:.2f}"
            for header, value in SECURITY_HEADERS.items():
                response.headers[header] = value

            if config.enable_request_logging:
                logger.info(
                    "%s %s -> %s in %.2fms request_id=%s",
                    request.method,
                    request.url.path,
                    response.status_code,
                    duration_ms,
                    request_id,
                )
            return response
        finally:
            duration_s = time.perf_counter() - started
            path_label = _route_label(request)
            API_HTTP_REQUESTS_TOTAL.labels(
                method=method_label,
                path=path_label,
                status_code=str(status_code),
            ).inc()
            API_HTTP_REQUEST_DURATION_SECONDS.labels(
                method=method_label,
                path=path_label,
            ).observe(duration_s)
            API_HTTP_INFLIGHT_REQUESTS.labels(method=method_label).dec()

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    register_error_handlers(app)

    for router in (
        health_router,
        auth_router,
        users_router,
        clientes_router,
        vehiculos_router,
        servicios_router,
        empleados_router,
        sucursales_router,
        tipos_servicios_router,
        configuracion_router,
    ):
        app.include_router(router, prefix=config.api_prefix)

    return app


app = create_app()
