from __future__ import annotations

from fastapi import APIRouter, Depends

from profitlens.api.deps import bad_request, get_app_settings, scoped_sales, to_records
from profitlens.core.config import Settings
from profitlens.schemas.kpi import (
    DashboardRequest,
    DashboardResponse,
    InsightRequest,
    InsightResponse,
    ProfitabilityRequest,
    ProfitabilityResponse,
)
from profitlens.services.filters import filter_by_date_range, filter_by_org
from profitlens.services.insights import InsightInput, generate_insights
from profitlens.services.kpi import calc_monthly_trends, calc_org_ranking, calc_overview_kpis, calc_top_customers
from profitlens.services.profitability import (
    calc_customer_profitability,
    calc_pareto,
    calc_product_profitability,
    calc_profitability_matrix,
)
from profitlens.services.working_capital import calc_ccc, calc_overall_dso, estimate_dpo
from profitlens.utils.months import extract_month
from profitlens.utils.numbers import safe_pct


router = APIRouter(tags=["kpi"])


def _scoped_flows(payload: DashboardRequest) -> tuple[list, list, list]:
    sales = scoped_sales(payload)
    date_from = extract_month(payload.date_from) or None
    date_to = extract_month(payload.date_to) or None
    orders = filter_by_date_range(filter_by_org(to_records(payload.orders), payload.org_names), date_from, date_to)
    collections = filter_by_date_range(
        filter_by_org(to_records(payload.collections), payload.org_names), date_from, date_to
    )
    return sales, orders, collections


@router.post("/kpi/dashboard", response_model=DashboardResponse)
def get_dashboard(payload: DashboardRequest) -> DashboardResponse:
    sales, orders, collections = _scoped_flows(payload)
    org_profit = filter_by_org(to_records(payload.org_profit), payload.org_names, field="team")
    try:
        top_customers = calc_top_customers(sales, top_n=payload.top_n)
    except ValueError as exc:
        raise bad_request(exc) from exc
    return DashboardResponse.model_validate(
        {
            "kpis": calc_overview_kpis(sales, orders, collections, org_profit),
            "monthly_trends": calc_monthly_trends(sales, orders, collections),
            "org_ranking": calc_org_ranking(sales),
            "top_customers": top_customers,
        },
        from_attributes=True,
    )


@router.post("/kpi/insights", response_model=InsightResponse)
def get_insights(payload: InsightRequest, settings: Settings = Depends(get_app_settings)) -> InsightResponse:
    sales, orders, collections = _scoped_flows(payload)
    org_profit = filter_by_org(to_records(payload.org_profit), payload.org_names, field="team")
    kpis = calc_overview_kpis(sales, orders, collections, org_profit)

    dso = ccc = None
    aging = filter_by_org(to_records(payload.aging), payload.org_names)
    if aging:
        dso = calc_overall_dso(aging, sales, settings.dso_days_per_month)
        team_contrib = to_records(payload.team_contrib)
        if team_contrib:
            ccc = calc_ccc(dso, estimate_dpo(team_contrib))

    contribution_rate = None
    profit_sales = sum(record.sales.actual for record in org_profit)
    if profit_sales > 0:
        contribution_rate = safe_pct(sum(record.contribution_margin.actual for record in org_profit), profit_sales)

    insights = generate_insights(
        InsightInput(
            kpis=kpis,
            net_collection_rate=payload.net_collection_rate,
            dso=dso,
            ccc=ccc,
            forecast_accuracy=payload.forecast_accuracy,
            contribution_margin_rate=contribution_rate,
        )
    )
    return InsightResponse.model_validate({"kpis": kpis, "insights": insights}, from_attributes=True)


@router.post("/kpi/profitability", response_model=ProfitabilityResponse)
def get_profitability(payload: ProfitabilityRequest) -> ProfitabilityResponse:
    records = filter_by_org(to_records(payload.records), payload.org_names, field="team")
    products = calc_product_profitability(records)
    customers = calc_customer_profitability(records)
    return ProfitabilityResponse.model_validate(
        {
            "products": products,
            "customers": customers,
            "matrix": calc_profitability_matrix(records),
            "product_pareto": calc_pareto((item.product, item.sales) for item in products),
            "customer_pareto": calc_pareto((item.customer, item.sales) for item in customers),
        },
        from_attributes=True,
    )
