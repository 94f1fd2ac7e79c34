from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from profitlens.api.deps import bad_request, get_app_settings, scoped_sales
from profitlens.core.config import Settings
from profitlens.schemas.scoring import SalesFilterRequest
from profitlens.schemas.timeseries import (
    AnomalyRequest,
    AnomalyResponse,
    CohortResponse,
    ForecastRequest,
    ForecastResponse,
)
from profitlens.services.anomaly import detect_enhanced_sales_anomalies
from profitlens.services.cohort import calc_cohort_analysis
from profitlens.services.forecast import forecast_sales


router = APIRouter(tags=["timeseries"])


@router.post("/timeseries/anomalies", response_model=AnomalyResponse)
def get_sales_anomalies(
    payload: AnomalyRequest,
    settings: Settings = Depends(get_app_settings),
) -> AnomalyResponse:
    multiplier = settings.anomaly_iqr_multiplier if payload.multiplier is None else payload.multiplier
    try:
        result = detect_enhanced_sales_anomalies(
            scoped_sales(payload),
            group_by=payload.group_by,
            multiplier=multiplier,
            top_n=payload.top_n,
        )
    except ValueError as exc:
        raise bad_request(exc) from exc
    return AnomalyResponse.model_validate(result)


@router.post("/timeseries/forecast", response_model=ForecastResponse)
def get_sales_forecast(
    payload: ForecastRequest,
    settings: Settings = Depends(get_app_settings),
) -> ForecastResponse:
    periods = settings.forecast_periods if payload.periods is None else payload.periods
    if periods > settings.forecast_max_periods:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"periods must be <= {settings.forecast_max_periods}.",
        )
    try:
        result = forecast_sales(scoped_sales(payload), periods)
    except ValueError as exc:
        raise bad_request(exc) from exc
    return ForecastResponse.model_validate(result)


@router.post("/timeseries/cohorts", response_model=CohortResponse)
def get_cohorts(payload: SalesFilterRequest) -> CohortResponse:
    analysis = calc_cohort_analysis(scoped_sales(payload))
    return CohortResponse.model_validate(
        {
            "cells": analysis.cells,
            "cohorts": analysis.cohorts,
            "avg_retention_by_period": analysis.avg_retention_by_period,
            "matrix": analysis.matrix(),
        },
        from_attributes=True,
    )
