from __future__ import annotations

from typing import Any, Literal

from profitlens.models.enums import AnomalyType, TrendDirection
from profitlens.schemas.common import Amount, ResultModel
from profitlens.schemas.scoring import SalesFilterRequest


GroupBy = Literal["customer", "org", "person", "product"]


class AnomalyRequest(SalesFilterRequest):
    multiplier: float | None = None
    group_by: GroupBy = "customer"
    top_n: int = 5


class AnomalyPointOut(ResultModel):
    month: str
    value: Amount
    type: AnomalyType
    deviation: Amount
    severity: Amount


class AnomalyStatsOut(ResultModel):
    mean: Amount
    std_dev: Amount
    q1: Amount
    q3: Amount
    iqr: Amount
    lower_fence: Amount
    upper_fence: Amount
    anomalies: list[AnomalyPointOut]
    anomaly_rate: Amount


class AnomalyContributorOut(ResultModel):
    key: str
    name: str
    current: Amount
    previous: Amount
    change: Amount
    share_of_change: Amount


class EnhancedAnomalyOut(ResultModel):
    anomaly: AnomalyPointOut
    previous_month: str
    month_change: Amount
    contributors: list[AnomalyContributorOut]
    cause: str


class AnomalyResponse(ResultModel):
    stats: AnomalyStatsOut
    group_by: str
    details: list[EnhancedAnomalyOut]


class ForecastRequest(SalesFilterRequest):
    periods: int | None = None


class ForecastStatsOut(ResultModel):
    slope: Amount
    intercept: Amount
    r2: Amount
    residual_std: Amount
    trend: TrendDirection
    avg_growth_rate: Amount


class ForecastResponse(ResultModel):
    points: list[dict[str, Any]]
    stats: ForecastStatsOut
    method: str
    confidence_level: str


class CohortCellOut(ResultModel):
    cohort_month: str
    period_month: str
    period_index: int
    active_customers: int
    total_customers: int
    retention_rate: Amount
    revenue: Amount


class CohortSummaryOut(ResultModel):
    month: str
    size: int
    first_month_revenue: Amount


class CohortResponse(ResultModel):
    cells: list[CohortCellOut]
    cohorts: list[CohortSummaryOut]
    avg_retention_by_period: list[dict[str, float]]
    matrix: list[list[float]]
