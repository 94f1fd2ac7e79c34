from __future__ import annotations

from fastapi import APIRouter, Depends

from profitlens.api.deps import get_app_settings
from profitlens.core.config import Settings


router = APIRouter(tags=["health"])


@router.get("/health")
def health(settings: Settings = Depends(get_app_settings)) -> dict:
    return {
        "ok": True,
        "service": settings.app_name,
        "defaults": {
            "anomaly_iqr_multiplier": settings.anomaly_iqr_multiplier,
            "forecast_periods": settings.forecast_periods,
            "forecast_max_periods": settings.forecast_max_periods,
            "clv_default_margin": settings.clv_default_margin,
            "dso_days_per_month": settings.dso_days_per_month,
        },
    }
