"""FastAPI application demonstrating three ways to call the forecast service."""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest

from app.core.config import settings
from app.core.errors import ConfigurationError, UpstreamError
from app.core.logging import configure_logging, get_logger
from app.core.tls import load_transport_profile
from app.models.forecast import Forecast, HealthResponse
from app.models.problem import ProblemDetail
from app.services.forecasts import ForecastService
from app.services.problems import (
    PROBLEM_MEDIA_TYPE,
    unexpected_error_handler,
    upstream_error_handler,
)

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "forecast_client_requests_total",
    "Total number of requests",
    ["method", "endpoint", "status"],
)
REQUEST_DURATION = Histogram(
    "forecast_client_request_duration_seconds",
    "Request duration in seconds",
    ["method", "endpoint"],
)

FORECASTS_PREFIX = "/demoservice/client/v1/forecasts"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    # Startup
    logger.info("application_starting", version=settings.app_version)

    try:
        profile = load_transport_profile(settings)
    except ConfigurationError as e:
        logger.error("startup_failed", error=str(e))
        raise

    app.state.forecast_service = ForecastService.from_settings(profile, settings)
    logger.info("application_started", upstream=profile.base_url)

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await app.state.forecast_service.close()
    logger.info("application_stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Calls a mutual-TLS secured forecast service with three different HTTP clients",
    lifespan=lifespan,
)

app.add_exception_handler(UpstreamError, upstream_error_handler)
app.add_exception_handler(Exception, unexpected_error_handler)


def get_forecast_service(request: Request) -> ForecastService:
    """Dependency returning the service created at startup."""
    return request.app.state.forecast_service


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    """Add correlation ID to each request for tracing."""
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))

    # Bind correlation ID to structlog context
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id

    return response


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Track request metrics."""
    method = request.method
    path = request.url.path

    with REQUEST_DURATION.labels(method=method, endpoint=path).time():
        response = await call_next(request)

    REQUEST_COUNT.labels(method=method, endpoint=path, status=response.status_code).inc()

    return response


def _problem(description: str) -> dict:
    return {
        "model": ProblemDetail,
        "description": description,
        "content": {PROBLEM_MEDIA_TYPE: {}},
    }


FORECAST_RESPONSES = {
    400: _problem("Upstream forecasts violate field constraints"),
    404: _problem("Upstream forecast endpoint not found"),
    500: _problem("Upstream unreachable, TLS failure or unexpected upstream status"),
}


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns service status and the configured upstream",
    tags=["Health"],
)
async def health_check(request: Request):
    """Health check endpoint.

    Reports ``degraded`` until the transport profile has been loaded.
    """
    ready = hasattr(request.app.state, "forecast_service")

    logger.info("health_check", ready=ready)

    return HealthResponse(
        status="healthy" if ready else "degraded",
        version=settings.app_version,
        upstream=settings.upstream_base_url,
    )


@app.get(
    "/health/live",
    summary="Liveness probe",
    description="Kubernetes liveness probe - checks if application is running",
    tags=["Health"],
    status_code=200,
)
async def liveness():
    """Liveness probe for Kubernetes."""
    return {"status": "alive"}


@app.get(
    f"{FORECASTS_PREFIX}/use-web-client",
    response_model=list[Forecast],
    summary="Forecasts via the non-blocking client",
    description="Calls the upstream service with an asynchronous httpx client and validates the result.",
    tags=["Forecasts"],
    responses=FORECAST_RESPONSES,
)
async def get_forecasts_via_web_client(
    service: ForecastService = Depends(get_forecast_service),
):
    """Forecasts fetched with the web client."""
    return await service.via_web_client()


@app.get(
    f"{FORECASTS_PREFIX}/use-feign-client",
    response_model=list[Forecast],
    summary="Forecasts via the declarative client",
    description="Calls the upstream service with a declared client that validates its own result.",
    tags=["Forecasts"],
    responses=FORECAST_RESPONSES,
)
def get_forecasts_via_feign_client(
    service: ForecastService = Depends(get_forecast_service),
):
    """Forecasts fetched with the declarative client."""
    return service.via_declarative_client()


@app.get(
    f"{FORECASTS_PREFIX}/use-rest-template",
    response_model=list[Forecast],
    summary="Forecasts via the blocking template client",
    description="Calls the upstream service with a synchronous httpx client and validates the result.",
    tags=["Forecasts"],
    responses=FORECAST_RESPONSES,
)
def get_forecasts_via_rest_template(
    service: ForecastService = Depends(get_forecast_service),
):
    """Forecasts fetched with the template client."""
    return service.via_template_client()


@app.get(
    "/metrics",
    response_class=PlainTextResponse,
    summary="Prometheus metrics",
    description="Exposes application metrics in Prometheus format for monitoring and alerting",
    tags=["Monitoring"],
)
async def metrics():
    """Prometheus metrics endpoint."""
    return generate_latest()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
