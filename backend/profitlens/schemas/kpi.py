from __future__ import annotations

from pydantic import Field

from profitlens.models.enums import InsightSeverity, ParetoGrade
from profitlens.schemas.common import Amount, ApiModel, ResultModel
from profitlens.schemas.records import (
    AgingIn,
    CollectionIn,
    OrderIn,
    OrgProfitIn,
    ProfitabilityIn,
    SalesIn,
    TeamContributionIn,
)


class DashboardRequest(ApiModel):
    sales: list[SalesIn] = Field(default_factory=list)
    orders: list[OrderIn] = Field(default_factory=list)
    collections: list[CollectionIn] = Field(default_factory=list)
    org_profit: list[OrgProfitIn] = Field(default_factory=list)
    org_names: list[str] = Field(default_factory=list)
    date_from: str | None = None
    date_to: str | None = None
    top_n: int = 10


class OverviewKpisOut(ResultModel):
    total_sales: Amount
    total_orders: Amount
    total_collection: Amount
    collection_rate: Amount
    total_receivables: Amount
    operating_profit_rate: Amount
    sales_plan_achievement: Amount


class MonthlyTrendOut(ResultModel):
    month: str
    sales: Amount
    orders: Amount
    collections: Amount


class OrgSalesOut(ResultModel):
    org: str
    sales: Amount


class TopCustomerOut(ResultModel):
    code: str
    name: str
    amount: Amount


class DashboardResponse(ResultModel):
    kpis: OverviewKpisOut
    monthly_trends: list[MonthlyTrendOut]
    org_ranking: list[OrgSalesOut]
    top_customers: list[TopCustomerOut]


class InsightRequest(DashboardRequest):
    aging: list[AgingIn] = Field(default_factory=list)
    team_contrib: list[TeamContributionIn] = Field(default_factory=list)
    net_collection_rate: float | None = None
    forecast_accuracy: float | None = None


class InsightOut(ResultModel):
    code: str
    title: str
    message: str
    severity: InsightSeverity
    category: str
    metric: str | None = None
    value: Amount | None = None


class InsightResponse(ResultModel):
    kpis: OverviewKpisOut
    insights: list[InsightOut]


class ProfitabilityRequest(ApiModel):
    records: list[ProfitabilityIn] = Field(default_factory=list)
    org_names: list[str] = Field(default_factory=list)


class ProductProfitabilityOut(ResultModel):
    product: str
    name: str
    sales: Amount
    cost: Amount
    gross_profit: Amount
    gross_margin: Amount
    operating_profit: Amount
    operating_margin: Amount


class CustomerProfitabilityOut(ResultModel):
    customer: str
    name: str
    sales: Amount
    gross_profit: Amount
    gross_margin: Amount
    operating_profit: Amount
    operating_margin: Amount
    product_count: int


class ProfitabilityCellOut(ResultModel):
    customer: str
    product: str
    sales: Amount
    gross_profit: Amount
    gross_margin: Amount


class ParetoEntryOut(ResultModel):
    key: str
    value: Amount
    share: Amount
    cumulative_share: Amount
    grade: ParetoGrade


class ProfitabilityResponse(ResultModel):
    products: list[ProductProfitabilityOut]
    customers: list[CustomerProfitabilityOut]
    matrix: list[ProfitabilityCellOut]
    product_pareto: list[ParetoEntryOut]
    customer_pareto: list[ParetoEntryOut]
