"""Algorithm endpoints: grade transitions, drift checks, maintenance jobs, stats and health."""

from fastapi import APIRouter, HTTPException

from feedrank.errors import UserNotFoundError
from feedrank.stages.drift import DriftAnalysis
from feedrank.stages.maintenance import JOBS, MaintenanceReport
from feedrank.utils.clock import utc_now

from ..models import (
    AlgorithmStatsResponse,
    DriftCheckRequest,
    GradeTransitionRequest,
    GradeTransitionResponse,
    HealthResponse,
)
from ..state import get_state

router = APIRouter()


@router.post("/grade-transition", response_model=GradeTransitionResponse)
async def grade_transition(request: GradeTransitionRequest):
    if request.old_grade == request.new_grade:
        raise HTTPException(status_code=400, detail="old_grade and new_grade must differ")
    try:
        vector = await get_state().engine.on_grade_transition(
            request.user_id, request.old_grade, request.new_grade
        )
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return GradeTransitionResponse(
        user_id=request.user_id,
        grades=vector.grades,
        subjects_kept=len(vector.subjects),
    )


@router.post("/drift-check", response_model=DriftAnalysis)
async def drift_check(request: DriftCheckRequest):
    try:
        return await get_state().engine.check_drift(request.user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/maintenance/{job}", response_model=MaintenanceReport)
async def run_maintenance(job: str):
    """Run the daily or weekly maintenance job now."""
    if job not in JOBS:
        raise HTTPException(status_code=400, detail=f"Unknown job '{job}'. Expected one of: {', '.join(JOBS)}")
    return await get_state().engine.run_maintenance(job)


@router.get("/stats", response_model=AlgorithmStatsResponse)
async def algorithm_stats():
    stats = await get_state().engine.stats()
    return AlgorithmStatsResponse(**stats, timestamp=utc_now())


@router.get("/health", response_model=HealthResponse)
async def algorithm_health():
    engine = get_state().engine
    report = engine.health()
    cfg = engine.config
    return HealthResponse(
        status="degraded" if report["alerts"] or report["breaker_state"] != "CLOSED" else "healthy",
        alerts=report["alerts"],
        metrics=report["metrics"],
        coalescer=report["coalescer"],
        breaker_state=report["breaker_state"],
        background_pending=report["background_pending"],
        config={
            "vector_freshness_hours": cfg.freshness_window_hours,
            "feed_cache_ttl_seconds": cfg.feed_cache_ttl_seconds,
            "quality_level": cfg.quality_level,
        },
    )
