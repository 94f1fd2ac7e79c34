from __future__ import annotations

from typing import Literal

from pydantic import Field

from profitlens.models.enums import ChurnRisk, Momentum, RfmSegment, RiskLevel
from profitlens.schemas.common import Amount, ApiModel, ResultModel
from profitlens.schemas.records import (
    AgingIn,
    CollectionIn,
    OrderIn,
    OrgProfitIn,
    SalesIn,
    TeamContributionIn,
)


class SalesFilterRequest(ApiModel):
    sales: list[SalesIn] = Field(default_factory=list)
    org_names: list[str] = Field(default_factory=list)
    date_from: str | None = None
    date_to: str | None = None


class PerformanceRequest(ApiModel):
    sales: list[SalesIn] = Field(default_factory=list)
    orders: list[OrderIn] = Field(default_factory=list)
    collections: list[CollectionIn] = Field(default_factory=list)
    team_contrib: list[TeamContributionIn] = Field(default_factory=list)
    aging: list[AgingIn] | None = None
    weights: dict[str, float] | None = None


class CustomerShareOut(ResultModel):
    customer: str
    name: str
    amount: Amount
    share: Amount


class CustomerHHIOut(ResultModel):
    hhi: Amount
    top_customer_share: Amount
    customer_count: int
    customers: list[CustomerShareOut]
    risk_level: RiskLevel


class CustomerHHIRequest(SalesFilterRequest):
    person_field: Literal["person", "person_name"] = "person"


class NameCollisionOut(ResultModel):
    name: str
    kept_id: str
    ignored_id: str
    source: str


class PerformanceScoreOut(ResultModel):
    sales_score: Amount
    order_score: Amount
    profit_score: Amount
    collection_score: Amount
    receivable_score: Amount
    total_score: Amount
    rank: int
    percentile: Amount


class SalesRepProfileOut(ResultModel):
    id: str
    name: str
    org: str
    score: PerformanceScoreOut
    sales_amount: Amount
    order_amount: Amount
    collection_amount: Amount
    contribution_margin_rate: Amount
    customer_count: int
    item_count: int
    hhi: Amount
    hhi_risk_level: RiskLevel
    top_customer_share: Amount
    top_customers: list[CustomerShareOut]


class PerformanceScoresResponse(ResultModel):
    profiles: list[SalesRepProfileOut]
    weights: dict[str, float]
    five_axis: bool
    warnings: list[NameCollisionOut]


class CostEfficiencyRequest(ApiModel):
    team_contrib: list[TeamContributionIn] = Field(default_factory=list)


class CostEfficiencyOut(ResultModel):
    person_id: str
    org: str
    sales_amount: Amount
    variable_cost_rate: Amount
    fixed_cost_rate: Amount
    contribution_margin_rate: Amount
    operating_margin_rate: Amount


class RepTrendRequest(ApiModel):
    sales: list[SalesIn] = Field(default_factory=list)
    orders: list[OrderIn] = Field(default_factory=list)
    collections: list[CollectionIn] = Field(default_factory=list)
    person_id: str
    person_name: str | None = None


class RepTrendOut(ResultModel):
    person_id: str
    monthly: list[dict[str, float | str]]
    avg_monthly_sales: Amount
    avg_monthly_orders: Amount
    avg_monthly_collections: Amount
    sales_mom: Amount
    momentum: Momentum


class RfmScoreOut(ResultModel):
    customer: str
    customer_name: str
    recency: int
    frequency: int
    monetary: Amount
    r_score: int
    f_score: int
    m_score: int
    segment: RfmSegment


class RfmSegmentSummaryOut(ResultModel):
    segment: RfmSegment
    count: int
    total_sales: Amount
    avg_sales: Amount
    share: Amount
    action: str
    description: str
    priority: str


class RfmResponse(ResultModel):
    scores: list[RfmScoreOut]
    segments: list[RfmSegmentSummaryOut]


class ChurnRiskCustomerOut(ResultModel):
    customer: str
    customer_name: str
    last_purchase_month: str
    months_since_last_purchase: int
    purchase_frequency: int
    avg_monthly_amount: Amount
    total_amount: Amount
    churn_score: int
    risk_level: ChurnRisk
    signals: list[str]


class ChurnResponse(ResultModel):
    total_customers: int
    at_risk_customers: int
    at_risk_revenue: Amount
    risk_distribution: list[dict[str, object]]
    customers: list[ChurnRiskCustomerOut]


class ClvRequest(SalesFilterRequest):
    org_profit: list[OrgProfitIn] = Field(default_factory=list)
    years_in_data: float | None = None
    default_margin: float | None = None


class ClvResultOut(ResultModel):
    customer: str
    customer_name: str
    transaction_count: int
    avg_transaction_value: Amount
    purchase_frequency: Amount
    customer_value: Amount
    avg_profit_margin: Amount
    estimated_lifespan: Amount
    clv: Amount
    current_sales: Amount
    clv_to_sales_ratio: Amount


class ClvSummaryOut(ResultModel):
    total_clv: Amount
    avg_clv: Amount
    top_customer_clv: Amount
    top_customer_share: Amount
    customer_count: int


class ClvResponse(ResultModel):
    customers: list[ClvResultOut]
    summary: ClvSummaryOut
