from __future__ import annotations

from typing import Literal

from pydantic import Field

from profitlens.models.enums import (
    CostDirection,
    CreditStatus,
    CycleGrade,
    ParetoGrade,
    RiskLevel,
    WaterfallBarType,
)
from profitlens.schemas.common import Amount, ApiModel, ResultModel
from profitlens.schemas.records import AgingIn, ItemCostIn, OrgProfitIn, SalesIn, TeamContributionIn


# ── item cost ──


class ItemCostRequest(ApiModel):
    items: list[ItemCostIn] = Field(default_factory=list)
    org_names: list[str] = Field(default_factory=list)


class ItemCostSummaryOut(ResultModel):
    product_count: int
    total_sales: Amount
    total_cost: Amount
    avg_gross_margin: Amount
    avg_contribution_rate: Amount
    top_cost_category: str
    top_cost_amount: Amount
    top_cost_ratio: Amount


class CostCategoryVarianceOut(ResultModel):
    category: str
    plan: Amount
    actual: Amount
    variance: Amount
    variance_pct: Amount
    is_over_budget: bool
    is_subtotal: bool
    contribution_to_total: Amount


class CostVarianceSummaryOut(ResultModel):
    categories: list[CostCategoryVarianceOut]
    total_plan_cost: Amount
    total_actual_cost: Amount
    total_variance: Amount
    total_variance_pct: Amount
    over_budget_count: int


class WaterfallBarOut(ResultModel):
    name: str
    base: Amount
    value: Amount
    type: WaterfallBarType


class CostDriverOut(ResultModel):
    category: str
    plan: Amount
    actual: Amount
    cost_share: Amount
    variance_pct: Amount
    impact_score: Amount
    direction: CostDirection


class CostBucketOut(ResultModel):
    name: str
    plan: Amount
    actual: Amount
    variance: Amount
    ratio: Amount


class ProductContributionOut(ResultModel):
    rank: int
    product: str
    org: str
    sales: Amount
    variable_cost: Amount
    fixed_cost: Amount
    contribution_margin: Amount
    contribution_rate: Amount
    gross_profit: Amount
    gross_margin: Amount
    cumulative_share: Amount
    grade: ParetoGrade


class ItemCostResponse(ResultModel):
    summary: ItemCostSummaryOut
    variance: CostVarianceSummaryOut
    waterfall: list[WaterfallBarOut]
    drivers: list[CostDriverOut]
    buckets: list[CostBucketOut]
    ranking: list[ProductContributionOut]


# ── break-even ──


class BreakevenRequest(ApiModel):
    mode: Literal["team", "org", "org_from_team"] = "team"
    include_chart: bool = False
    team_contrib: list[TeamContributionIn] = Field(default_factory=list)
    org_profit: list[OrgProfitIn] = Field(default_factory=list)


class BreakevenChartPointOut(ResultModel):
    revenue: Amount
    total_cost: Amount
    fixed_cost: Amount
    variable_cost: Amount


class BreakevenOut(ResultModel):
    org: str
    person: str | None
    sales: Amount
    variable_costs: Amount
    fixed_costs: Amount
    variable_cost_ratio: Amount
    contribution_margin_ratio: Amount
    bep_sales: Amount
    safety_margin_rate: Amount
    operating_leverage: Amount
    can_break_even: bool
    chart: list[BreakevenChartPointOut] = Field(default_factory=list)


class BreakevenResponse(ResultModel):
    mode: str
    items: list[BreakevenOut]


class BreakevenChartRequest(ApiModel):
    fixed_costs: float
    variable_cost_ratio: float
    max_revenue: float
    points: int = Field(default=21, ge=2, le=201)


# ── working capital ──


class WorkingCapitalRequest(ApiModel):
    aging: list[AgingIn] = Field(default_factory=list)
    sales: list[SalesIn] = Field(default_factory=list)
    team_contrib: list[TeamContributionIn] = Field(default_factory=list)


class DsoMetricOut(ResultModel):
    org: str
    dso: Amount
    total_receivables: Amount
    avg_monthly_sales: Amount
    classification: CycleGrade


class DsoTrendPointOut(ResultModel):
    month: str
    dso: Amount
    total_receivables: Amount
    monthly_sales: Amount
    is_synthetic: bool


class CccMetricOut(ResultModel):
    org: str
    dso: Amount
    dpo: Amount
    ccc: Amount
    classification: CycleGrade
    recommendation: str


class CccAnalysisOut(ResultModel):
    avg_ccc: Amount
    avg_dso: Amount
    avg_dpo: Amount
    metrics: list[CccMetricOut]


class WorkingCapitalResponse(ResultModel):
    overall_dso: Amount
    overall_dso_grade: CycleGrade
    overall_dpo: Amount
    dso_by_org: list[DsoMetricOut]
    dso_trend: list[DsoTrendPointOut]
    ccc: CccAnalysisOut


# ── aging / credit ──


class AgingRequest(ApiModel):
    aging: list[AgingIn] = Field(default_factory=list)
    credit_limits: dict[str, float] | None = None
    org_names: list[str] = Field(default_factory=list)


class AgingSummaryOut(ResultModel):
    month1: Amount
    month2: Amount
    month3: Amount
    month4: Amount
    month5: Amount
    month6: Amount
    overdue: Amount
    total: Amount


class GroupedAgingOut(ResultModel):
    key: str
    summary: AgingSummaryOut


class AgingRiskOut(ResultModel):
    customer: str
    customer_name: str
    org: str
    person: str
    total_receivables: Amount
    overdue_ratio: Amount
    risk: RiskLevel


class CreditUtilizationOut(ResultModel):
    customer: str
    customer_name: str
    org: str
    person: str
    total_receivables: Amount
    credit_limit: Amount
    utilization: Amount
    status: CreditStatus


class CreditSummaryByOrgOut(ResultModel):
    org: str
    total_limit: Amount
    total_used: Amount
    utilization_rate: Amount
    danger_count: int
    warning_count: int


class PersonReceivableHealthOut(ResultModel):
    person: str
    customer_count: int
    total_receivables: Amount
    normal: Amount
    caution: Amount
    overdue: Amount
    normal_pct: Amount
    caution_pct: Amount
    overdue_pct: Amount
    high_risk_count: int
    hhi: Amount
    top_customer: str
    top_customer_share: Amount
    efficiency_grade: str


class AgingResponse(ResultModel):
    summary: AgingSummaryOut
    by_org: list[GroupedAgingOut]
    by_person: list[GroupedAgingOut]
    risk: list[AgingRiskOut]
    credit: list[CreditUtilizationOut]
    credit_by_org: list[CreditSummaryByOrgOut]
    person_health: list[PersonReceivableHealthOut]
