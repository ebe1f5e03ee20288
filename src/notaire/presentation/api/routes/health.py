"""
Health check endpoints.
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


def _report_response(report, ok: bool) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=report.to_dict(),
    )


@router.get("/health")
async def health_check(req: Request):
    """
    Overall health check.

    Returns:
        Readiness report; 503 only when unhealthy
    """
    report = req.app.state.health_checker.check_readiness()
    return _report_response(report, report.is_ready)


@router.get("/health/live")
async def liveness_probe(req: Request):
    """Kubernetes liveness probe."""
    report = req.app.state.health_checker.check_liveness()
    return _report_response(report, report.is_healthy)


@router.get("/health/ready")
async def readiness_probe(req: Request):
    """
    Kubernetes readiness probe.

    Degraded (e.g. blockchain disabled) still counts as ready.
    """
    report = req.app.state.health_checker.check_readiness()
    return _report_response(report, report.is_ready)
