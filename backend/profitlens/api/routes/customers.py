from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from profitlens.api.deps import bad_request, get_app_settings, scoped_sales, to_records
from profitlens.core.config import Settings
from profitlens.schemas.scoring import (
    ChurnResponse,
    ClvRequest,
    ClvResponse,
    CostEfficiencyOut,
    CostEfficiencyRequest,
    CustomerHHIOut,
    CustomerHHIRequest,
    PerformanceRequest,
    PerformanceScoresResponse,
    RepTrendOut,
    RepTrendRequest,
    RfmResponse,
    SalesFilterRequest,
)
from profitlens.services.churn import predict_churn
from profitlens.services.clv import calc_clv, summarize_clv
from profitlens.services.rfm import calc_rfm_scores, summarize_rfm_segments
from profitlens.services.scoring import (
    calc_cost_efficiency,
    calc_customer_hhi,
    calc_performance_scores,
    calc_rep_trend,
)


router = APIRouter(tags=["customers"])


@router.post("/scoring/performance", response_model=PerformanceScoresResponse)
def get_performance_scores(payload: PerformanceRequest) -> PerformanceScoresResponse:
    try:
        result = calc_performance_scores(
            to_records(payload.sales),
            to_records(payload.orders),
            to_records(payload.collections),
            to_records(payload.team_contrib),
            aging=to_records(payload.aging) if payload.aging is not None else None,
            weights=payload.weights,
        )
    except ValueError as exc:
        raise bad_request(exc) from exc
    return PerformanceScoresResponse.model_validate(result)


@router.post("/scoring/cost-efficiency", response_model=list[CostEfficiencyOut])
def get_cost_efficiency(payload: CostEfficiencyRequest) -> list[CostEfficiencyOut]:
    rows = calc_cost_efficiency(to_records(payload.team_contrib))
    return [CostEfficiencyOut.model_validate(row) for row in rows]


@router.post("/scoring/customer-hhi", response_model=dict[str, CustomerHHIOut])
def get_customer_hhi(payload: CustomerHHIRequest) -> dict[str, CustomerHHIOut]:
    concentration = calc_customer_hhi(scoped_sales(payload), person_field=payload.person_field)
    return {person: CustomerHHIOut.model_validate(item) for person, item in concentration.items()}


@router.post("/scoring/rep-trend", response_model=RepTrendOut)
def get_rep_trend(payload: RepTrendRequest) -> RepTrendOut:
    trend = calc_rep_trend(
        to_records(payload.sales),
        to_records(payload.orders),
        to_records(payload.collections),
        payload.person_id,
        person_name=payload.person_name,
    )
    if trend is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No monthly activity for sales rep {payload.person_id}.",
        )
    return RepTrendOut.model_validate(trend)


@router.post("/customers/rfm", response_model=RfmResponse)
def get_rfm(payload: SalesFilterRequest) -> RfmResponse:
    scores = calc_rfm_scores(scoped_sales(payload))
    return RfmResponse.model_validate(
        {"scores": scores, "segments": summarize_rfm_segments(scores)},
        from_attributes=True,
    )


@router.post("/customers/churn", response_model=ChurnResponse)
def get_churn(payload: SalesFilterRequest) -> ChurnResponse:
    return ChurnResponse.model_validate(predict_churn(scoped_sales(payload)))


@router.post("/customers/clv", response_model=ClvResponse)
def get_clv(payload: ClvRequest, settings: Settings = Depends(get_app_settings)) -> ClvResponse:
    margin = settings.clv_default_margin if payload.default_margin is None else payload.default_margin
    try:
        results = calc_clv(
            scoped_sales(payload),
            to_records(payload.org_profit),
            years_in_data=payload.years_in_data,
            default_margin=margin,
        )
    except ValueError as exc:
        raise bad_request(exc) from exc
    return ClvResponse.model_validate(
        {"customers": results, "summary": summarize_clv(results)},
        from_attributes=True,
    )
