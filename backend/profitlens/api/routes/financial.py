from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from profitlens.api.deps import bad_request, get_app_settings, to_records
from profitlens.core.config import Settings
from profitlens.schemas.financial import (
    AgingRequest,
    AgingResponse,
    BreakevenChartPointOut,
    BreakevenChartRequest,
    BreakevenOut,
    BreakevenRequest,
    BreakevenResponse,
    ItemCostRequest,
    ItemCostResponse,
    WorkingCapitalRequest,
    WorkingCapitalResponse,
)
from profitlens.services.aging import (
    assess_aging_risk,
    calc_aging_by_org,
    calc_aging_by_person,
    calc_aging_summary,
    calc_credit_summary_by_org,
    calc_credit_utilization,
    calc_person_receivable_health,
)
from profitlens.services.breakeven import (
    calc_breakeven_chart,
    calc_org_breakeven,
    calc_org_breakeven_from_team,
    calc_team_breakeven,
    chart_max_revenue,
)
from profitlens.services.cost_variance import (
    calc_contribution_waterfall,
    calc_cost_bucket_breakdown,
    calc_cost_category_variance,
    calc_cost_driver_analysis,
    calc_item_cost_summary,
    calc_product_contribution_ranking,
)
from profitlens.services.filters import filter_by_org
from profitlens.services.working_capital import (
    calc_ccc_analysis,
    calc_ccc_by_org,
    calc_dso_by_org,
    calc_dso_trend,
    calc_overall_dso,
    classify_dso,
    estimate_dpo,
)


router = APIRouter(tags=["financial"])
logger = logging.getLogger(__name__)


@router.post("/financial/item-cost", response_model=ItemCostResponse)
def get_item_cost_analysis(payload: ItemCostRequest) -> ItemCostResponse:
    items = filter_by_org(to_records(payload.items), payload.org_names, field="team")
    return ItemCostResponse.model_validate(
        {
            "summary": calc_item_cost_summary(items),
            "variance": calc_cost_category_variance(items),
            "waterfall": calc_contribution_waterfall(items),
            "drivers": calc_cost_driver_analysis(items),
            "buckets": calc_cost_bucket_breakdown(items),
            "ranking": calc_product_contribution_ranking(items),
        },
        from_attributes=True,
    )


@router.post("/financial/breakeven", response_model=BreakevenResponse)
def get_breakeven(payload: BreakevenRequest) -> BreakevenResponse:
    try:
        if payload.mode == "org":
            results = calc_org_breakeven(to_records(payload.org_profit))
        elif payload.mode == "org_from_team":
            results = calc_org_breakeven_from_team(to_records(payload.team_contrib))
        else:
            results = calc_team_breakeven(to_records(payload.team_contrib))
    except ValueError as exc:
        raise bad_request(exc) from exc

    items: list[BreakevenOut] = []
    for result in results:
        item = BreakevenOut.model_validate(result)
        if payload.include_chart:
            chart = calc_breakeven_chart(result.fixed_costs, result.variable_cost_ratio, chart_max_revenue(result))
            item.chart = [BreakevenChartPointOut.model_validate(point) for point in chart]
        items.append(item)
    unreachable = sum(1 for result in results if not result.can_break_even)
    if unreachable:
        logger.info("%s of %s break-even rows have no reachable break-even point.", unreachable, len(results))
    return BreakevenResponse(mode=payload.mode, items=items)


@router.post("/financial/breakeven/chart", response_model=list[BreakevenChartPointOut])
def get_breakeven_chart(payload: BreakevenChartRequest) -> list[BreakevenChartPointOut]:
    try:
        chart = calc_breakeven_chart(
            payload.fixed_costs,
            payload.variable_cost_ratio,
            payload.max_revenue,
            points=payload.points,
        )
    except ValueError as exc:
        raise bad_request(exc) from exc
    return [BreakevenChartPointOut.model_validate(point) for point in chart]


@router.post("/financial/working-capital", response_model=WorkingCapitalResponse)
def get_working_capital(
    payload: WorkingCapitalRequest,
    settings: Settings = Depends(get_app_settings),
) -> WorkingCapitalResponse:
    aging = to_records(payload.aging)
    sales = to_records(payload.sales)
    team_contrib = to_records(payload.team_contrib)
    days = settings.dso_days_per_month

    overall_dso = calc_overall_dso(aging, sales, days)
    dso_by_org = calc_dso_by_org(aging, sales, days)
    ccc_metrics = calc_ccc_by_org(dso_by_org, team_contrib)
    return WorkingCapitalResponse.model_validate(
        {
            "overall_dso": overall_dso,
            "overall_dso_grade": classify_dso(overall_dso),
            "overall_dpo": estimate_dpo(team_contrib),
            "dso_by_org": dso_by_org,
            "dso_trend": calc_dso_trend(aging, sales, days),
            "ccc": calc_ccc_analysis(ccc_metrics),
        },
        from_attributes=True,
    )


@router.post("/financial/aging", response_model=AgingResponse)
def get_aging_analysis(payload: AgingRequest) -> AgingResponse:
    records = filter_by_org(to_records(payload.aging), payload.org_names)
    return AgingResponse.model_validate(
        {
            "summary": calc_aging_summary(records),
            "by_org": calc_aging_by_org(records),
            "by_person": calc_aging_by_person(records),
            "risk": assess_aging_risk(records),
            "credit": calc_credit_utilization(records, payload.credit_limits),
            "credit_by_org": calc_credit_summary_by_org(records, payload.credit_limits),
            "person_health": calc_person_receivable_health(records),
        },
        from_attributes=True,
    )
