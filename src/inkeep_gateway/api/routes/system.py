"""System routes: health, model listing and metrics.

Endpoints:
    ANY /health (every method but OPTIONS)
        - Response: HealthResponse
        - Rate Limited: No
    GET /v1/models
        - Response: ModelListResponse built from the model mapping table
    GET /metrics
        - Response: MetricsResponse (in-memory request metrics)
        - Query Params: window_minutes (optional, default: all time)
    OPTIONS /{path}
        - Empty 200 with CORS method/header hints
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Response

from inkeep_gateway.api.dependencies import get_app_settings
from inkeep_gateway.api.models import (
    HealthResponse,
    MetricsResponse,
    ModelCard,
    ModelListResponse,
)
from inkeep_gateway.core.config import Settings
from inkeep_gateway.telemetry.metrics import MetricsCollector

router = APIRouter()

HEALTH_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


@router.api_route(
    "/health",
    methods=HEALTH_METHODS,
    response_model=HealthResponse,
    tags=["Health"],
)
async def health_check(
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> HealthResponse:
    """Liveness check. Does not contact the upstream."""
    return HealthResponse(
        timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        models=len(settings.inkeep.model_mapping),
    )


@router.get("/v1/models", response_model=ModelListResponse, tags=["Models"])
async def list_models(
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> ModelListResponse:
    """List the caller-facing model names the gateway accepts."""
    return ModelListResponse(
        data=[ModelCard.for_model(model_id) for model_id in settings.inkeep.model_mapping]
    )


@router.get("/metrics", response_model=MetricsResponse, tags=["Metrics"])
async def get_metrics(window_minutes: int | None = None) -> MetricsResponse:
    """Aggregated request metrics, optionally limited to the last N minutes."""
    return MetricsResponse.model_validate(MetricsCollector.get_metrics_json(window_minutes))


@router.options("/{path:path}", include_in_schema=False)
async def options_any(path: str) -> Response:
    """Answer any OPTIONS request, including ones that are not CORS preflights.

    Real preflights are answered earlier by CORSMiddleware.
    """
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)
