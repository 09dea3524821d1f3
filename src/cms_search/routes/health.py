"""Health check endpoints for liveness and readiness probes."""
from typing import Literal

from elasticsearch import ApiError, Elasticsearch, TransportError
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe."""

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


def _check_elasticsearch(client: Elasticsearch) -> ReadinessCheck:
    """Ping the cluster.

    Args:
        client: Elasticsearch client from app state.

    Returns:
        Check result with status and optional error message.
    """
    try:
        if client.ping():
            return ReadinessCheck(name="elasticsearch", status="ok")
        return ReadinessCheck(
            name="elasticsearch",
            status="failed",
            message="Cluster did not answer ping",
        )
    except (ApiError, TransportError) as e:
        return ReadinessCheck(name="elasticsearch", status="failed", message=str(e))


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns immediate success if the process is running.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Returns 200 when Elasticsearch answers a ping, 503 otherwise.
    """
    checks = [_check_elasticsearch(request.app.state.es_client)]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
