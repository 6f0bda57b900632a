"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from qsys.core.settings import settings
from qsys.models.ticket import GROUPS
from qsys.models.wait_stat import BUCKETS

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "queue": {
            "timezone": settings.queue_timezone,
            "numberWidth": settings.queue_number_width,
            "defaultBranch": settings.default_branch_code,
            "groups": list(GROUPS),
        },
        "eta": {
            "buckets": list(BUCKETS),
            "emaAlpha": settings.wait_time_ema_alpha,
            "clampMinutes": [settings.wait_time_min_clamp_min, settings.wait_time_min_clamp_max],
            "minSamplesForBucket": settings.min_samples_for_bucket,
            "minStatsSample": settings.min_stats_sample,
            "fallbackMinutes": {group: settings.fallback_wait_minutes(group) for group in GROUPS},
        },
    }
