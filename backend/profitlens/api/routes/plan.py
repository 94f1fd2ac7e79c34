from __future__ import annotations

from fastapi import APIRouter

from profitlens.api.deps import bad_request, to_records
from profitlens.schemas.plan import (
    PlanAchievementRequest,
    PlanAchievementResponse,
    PlanQuadrantRequest,
    PlanQuadrantResponse,
)
from profitlens.services.filters import filter_by_org
from profitlens.services.plan_achievement import (
    QUADRANT_LABELS,
    calc_margin_drift,
    calc_org_achievement,
    calc_org_gap_contribution,
    calc_plan_achievement_quadrants,
    calc_plan_vs_actual_summary,
    calc_top_contributors,
    check_plan_data_quality,
    generate_plan_insight,
)


router = APIRouter(tags=["plan"])


@router.post("/plan/achievement", response_model=PlanAchievementResponse)
def get_plan_achievement(payload: PlanAchievementRequest) -> PlanAchievementResponse:
    records = filter_by_org(to_records(payload.records), payload.org_names, field="team")
    try:
        top, bottom = calc_top_contributors(records, top_n=payload.top_n)
        drift = calc_margin_drift(records, top_n=payload.drift_top_n)
    except ValueError as exc:
        raise bad_request(exc) from exc

    summary = calc_plan_vs_actual_summary(records)
    orgs = calc_org_achievement(records)
    quality = check_plan_data_quality(records)
    return PlanAchievementResponse.model_validate(
        {
            "summary": summary,
            "orgs": orgs,
            "quality": quality,
            "margin_drift": drift,
            "gap_contribution": calc_org_gap_contribution(records),
            "top_contributors": top,
            "bottom_contributors": bottom,
            "insight": generate_plan_insight(summary, orgs, quality),
        },
        from_attributes=True,
    )


@router.post("/plan/quadrants", response_model=PlanQuadrantResponse)
def get_plan_quadrants(payload: PlanQuadrantRequest) -> PlanQuadrantResponse:
    items = calc_plan_achievement_quadrants(filter_by_org(to_records(payload.items), payload.org_names, field="team"))
    counts = {quadrant: 0 for quadrant in QUADRANT_LABELS}
    for item in items:
        counts[item.quadrant] += 1
    return PlanQuadrantResponse.model_validate({"items": items, "counts": counts}, from_attributes=True)
