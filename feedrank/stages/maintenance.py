"""
Scheduled maintenance jobs for the ranking engine.

Daily: delete interactions past the retention window, run drift detection for
recently active users (drifted vectors are rebuilt) and prune stored vectors
that grew past top-K. Weekly: expire stored vectors nobody refreshed within
the vector retention window, then rebuild the vectors of the mature peer
population collaborative filtering draws on.

Per-user failures are logged and listed in the report; the job carries on.
"""

import logging
import time
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..errors import UserNotFoundError
from ..models.vector import InterestVector
from ..utils.clock import hours_since, utc_now
from .interest_vector import diversity_score, prune_weights, renormalize

logger = logging.getLogger(__name__)

JOB_DAILY = "daily"
JOB_WEEKLY = "weekly"
JOBS = (JOB_DAILY, JOB_WEEKLY)


class MaintenanceReport(BaseModel):
    job: str
    interactions_deleted: int = 0
    users_checked: int = 0
    drift_detected: int = 0
    vectors_pruned: int = 0
    vectors_expired: int = 0
    peers_refreshed: int = 0
    failures: List[str] = Field(default_factory=list)
    duration_ms: float = 0.0


def prune_vector(
    vector: InterestVector,
    top_k: int,
    renormalize_after_prune: bool = True,
) -> Optional[InterestVector]:
    """Copy of the vector cut back to top_k subjects and grades, or None when it already fits."""
    if len(vector.subjects) <= top_k and len(vector.grades) <= top_k:
        return None
    subjects = prune_weights(vector.subjects, top_k)
    grades = prune_weights(vector.grades, top_k)
    if renormalize_after_prune:
        subjects = renormalize(subjects)
        grades = renormalize(grades)
    metadata = vector.metadata.model_copy(update={"diversity_score": diversity_score(subjects)})
    return vector.model_copy(update={"subjects": subjects, "grades": grades, "metadata": metadata})


async def run_daily_maintenance(engine) -> MaintenanceReport:
    cfg = engine.config
    start = time.perf_counter()
    report = MaintenanceReport(job=JOB_DAILY)

    report.interactions_deleted = await engine.interaction_store.delete_older_than(
        cfg.interaction_retention_days
    )
    logger.info(
        "[maintenance] INTERACTIONS_DELETED count=%d older_than_days=%d",
        report.interactions_deleted, cfg.interaction_retention_days,
    )

    active = await engine.interaction_store.active_user_ids(cfg.active_user_window_days)
    for user_id in sorted(active):
        try:
            analysis = await engine.check_drift(user_id)
        except UserNotFoundError:
            logger.debug("[maintenance] DRIFT_SKIPPED user=%s reason=unknown_user", user_id)
            continue
        except Exception:
            logger.exception("[maintenance] DRIFT_FAILED user=%s", user_id)
            report.failures.append(f"drift:{user_id}")
            continue
        report.users_checked += 1
        if analysis.has_drift:
            report.drift_detected += 1
    logger.info(
        "[maintenance] DRIFT_SWEEP checked=%d drifted=%d", report.users_checked, report.drift_detected
    )

    store = engine.vectors.vector_store
    for user_id in await store.user_ids():
        try:
            vector = await store.get(user_id)
            pruned = prune_vector(vector, cfg.vector_top_k, cfg.renormalize_after_prune) if vector else None
            if pruned is not None:
                await engine.vectors.put_vector(user_id, pruned)
                report.vectors_pruned += 1
        except Exception:
            logger.exception("[maintenance] PRUNE_FAILED user=%s", user_id)
            report.failures.append(f"prune:{user_id}")

    report.duration_ms = (time.perf_counter() - start) * 1000.0
    logger.info(
        "[maintenance] DAILY_DONE pruned=%d failures=%d duration_ms=%.1f",
        report.vectors_pruned, len(report.failures), report.duration_ms,
    )
    return report


async def run_weekly_maintenance(engine, now: Optional[datetime] = None) -> MaintenanceReport:
    cfg = engine.config
    now = now or utc_now()
    start = time.perf_counter()
    report = MaintenanceReport(job=JOB_WEEKLY)

    store = engine.vectors.vector_store
    max_age_hours = cfg.vector_retention_days * 24
    for user_id in await store.user_ids():
        vector = await store.get(user_id)
        if vector is None or hours_since(vector.metadata.last_updated, now) > max_age_hours:
            await engine.vectors.invalidate(user_id)
            report.vectors_expired += 1

    # Blank id: no user is excluded from the peer population.
    peers = await engine.user_store.mature_peers(
        "", cfg.peer_min_account_age_days, cfg.peer_min_interactions
    )
    for peer in peers:
        try:
            profile = await engine.user_store.get_profile(peer.id)
            await engine.vectors.force_recompute(peer.id, profile.grade if profile else None)
        except Exception:
            logger.exception("[maintenance] PEER_REFRESH_FAILED user=%s", peer.id)
            report.failures.append(f"peer:{peer.id}")
            continue
        report.peers_refreshed += 1

    report.duration_ms = (time.perf_counter() - start) * 1000.0
    logger.info(
        "[maintenance] WEEKLY_DONE expired=%d peers=%d failures=%d duration_ms=%.1f",
        report.vectors_expired, report.peers_refreshed, len(report.failures), report.duration_ms,
    )
    return report
