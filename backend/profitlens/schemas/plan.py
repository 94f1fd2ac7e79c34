from __future__ import annotations

from pydantic import Field

from profitlens.models.enums import PlanDataQuality
from profitlens.schemas.common import Amount, ApiModel, ResultModel
from profitlens.schemas.records import ItemCostIn, ProfitabilityIn


class PlanAchievementRequest(ApiModel):
    records: list[ProfitabilityIn] = Field(default_factory=list)
    org_names: list[str] = Field(default_factory=list)
    top_n: int = 10
    drift_top_n: int = 15


class PlanAchievementSummaryOut(ResultModel):
    sales_plan: Amount
    sales_actual: Amount
    sales_achievement: Amount
    sales_gap: Amount
    gp_plan: Amount
    gp_actual: Amount
    gp_achievement: Amount
    op_plan: Amount
    op_actual: Amount
    op_achievement: Amount
    planned_gp_rate: Amount
    actual_gp_rate: Amount
    margin_drift: Amount
    planned_op_rate: Amount
    actual_op_rate: Amount
    op_margin_drift: Amount


class OrgAchievementOut(ResultModel):
    org: str
    sales_plan: Amount
    sales_actual: Amount
    sales_achievement: Amount
    sales_gap: Amount
    gp_plan: Amount
    gp_actual: Amount
    gp_achievement: Amount
    planned_gp_rate: Amount
    actual_gp_rate: Amount
    margin_drift: Amount
    op_plan: Amount
    op_actual: Amount
    op_achievement: Amount


class CustomerContributorOut(ResultModel):
    customer: str
    sales_plan: Amount
    sales_actual: Amount
    sales_gap: Amount
    gp_actual: Amount
    gp_margin: Amount
    op_actual: Amount
    op_margin: Amount


class MarginDriftItemOut(ResultModel):
    customer: str
    sales_actual: Amount
    planned_gp_rate: Amount
    actual_gp_rate: Amount
    margin_drift: Amount
    drift_impact: Amount


class MarginDriftOut(ResultModel):
    worsened: list[MarginDriftItemOut]
    improved: list[MarginDriftItemOut]
    total_worsened_impact: Amount
    total_improved_impact: Amount
    net_impact: Amount


class PlanDataQualityOut(ResultModel):
    total_records: int
    records_with_sales_plan: int
    sales_plan_coverage: Amount
    has_meaningful_plan: bool
    level: PlanDataQuality


class OrgGapContributionOut(ResultModel):
    org: str
    sales_gap: Amount
    gp_gap: Amount
    op_gap: Amount
    sales_plan: Amount
    sales_actual: Amount
    sales_gap_share: Amount
    gp_gap_share: Amount


class PlanAchievementResponse(ResultModel):
    summary: PlanAchievementSummaryOut
    orgs: list[OrgAchievementOut]
    quality: PlanDataQualityOut
    margin_drift: MarginDriftOut
    gap_contribution: list[OrgGapContributionOut]
    top_contributors: list[CustomerContributorOut]
    bottom_contributors: list[CustomerContributorOut]
    insight: str


class PlanQuadrantRequest(ApiModel):
    items: list[ItemCostIn] = Field(default_factory=list)
    org_names: list[str] = Field(default_factory=list)


class PlanQuadrantItemOut(ResultModel):
    product: str
    org: str
    sales_achievement: Amount
    profit_achievement: Amount
    quadrant: int
    label: str
    sales_plan: Amount
    sales_actual: Amount
    profit_plan: Amount
    profit_actual: Amount


class PlanQuadrantResponse(ResultModel):
    items: list[PlanQuadrantItemOut]
    counts: dict[int, int]
