from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from profitlens.core.constants import (
    CHURN_DECLINE_MIN_MONTHS,
    CHURN_DECLINE_POINTS,
    CHURN_DECLINE_SEVERE_PCT,
    CHURN_DECLINE_SEVERE_POINTS,
    CHURN_DECLINE_TRIGGER,
    CHURN_FREQUENCY_TIERS,
    CHURN_MAX_SCORE,
    CHURN_RECENCY_TIERS,
    CHURN_TIERS,
)
from profitlens.models.enums import ChurnRisk
from profitlens.models.records import SalesRecord
from profitlens.services.aggregation import build_customer_aggregates, latest_month
from profitlens.utils.months import extract_month, months_between


@dataclass(frozen=True)
class ChurnRiskCustomer:
    customer: str
    customer_name: str
    last_purchase_month: str
    months_since_last_purchase: int
    purchase_frequency: int
    avg_monthly_amount: float
    total_amount: float
    churn_score: int
    risk_level: ChurnRisk
    signals: list[str]


@dataclass(frozen=True)
class ChurnSummary:
    total_customers: int = 0
    at_risk_customers: int = 0
    at_risk_revenue: float = 0.0
    risk_distribution: list[dict[str, object]] = field(default_factory=list)
    customers: list[ChurnRiskCustomer] = field(default_factory=list)


def classify_churn(score: int) -> ChurnRisk:
    for threshold, tier in CHURN_TIERS:
        if score >= threshold:
            return ChurnRisk(tier)
    return ChurnRisk.low


def _recency_points(months_since: int) -> tuple[int, str | None]:
    for threshold, points, signal in CHURN_RECENCY_TIERS:
        if months_since >= threshold:
            return points, signal
    return 0, None


def _frequency_points(frequency: int) -> tuple[int, str | None]:
    for ceiling, points, signal in CHURN_FREQUENCY_TIERS:
        if frequency <= ceiling:
            return points, signal
    return 0, None


def _decline_points(monthly: Mapping[str, float]) -> tuple[int, str | None]:
    """Compare average monthly amount of the later half of active months against the earlier half."""
    months = sorted(monthly)
    if len(months) < CHURN_DECLINE_MIN_MONTHS:
        return 0, None
    mid = len(months) // 2
    first = [monthly[month] for month in months[:mid]]
    second = [monthly[month] for month in months[mid:]]
    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)
    if first_avg <= 0 or second_avg >= first_avg * CHURN_DECLINE_TRIGGER:
        return 0, None
    decline_pct = (first_avg - second_avg) / first_avg * 100
    points = CHURN_DECLINE_SEVERE_POINTS if decline_pct >= CHURN_DECLINE_SEVERE_PCT else CHURN_DECLINE_POINTS
    return points, f"거래 금액 {decline_pct:.0f}% 감소"


def score_churn(months_since: int, frequency: int, monthly: Mapping[str, float]) -> tuple[int, list[str]]:
    score = 0
    signals: list[str] = []
    for points, signal in (
        _recency_points(months_since),
        _frequency_points(frequency),
        _decline_points(monthly),
    ):
        score += points
        if signal:
            signals.append(signal)
    return min(CHURN_MAX_SCORE, score), signals


def predict_churn(sales: Iterable[SalesRecord]) -> ChurnSummary:
    """Rule-based churn scoring per customer.

    Only rows with a parseable month take part; recency is measured against
    the latest month of the whole input.
    """
    dated = [row for row in sales if extract_month(row.date)]
    reference = latest_month(dated)
    if not reference:
        return ChurnSummary()

    customers: list[ChurnRiskCustomer] = []
    for aggregate in build_customer_aggregates(dated):
        months_since = months_between(aggregate.last_month, reference)
        score, signals = score_churn(months_since, aggregate.frequency, aggregate.monthly)
        active_months = len(aggregate.monthly)
        customers.append(
            ChurnRiskCustomer(
                customer=aggregate.customer,
                customer_name=aggregate.name,
                last_purchase_month=aggregate.last_month,
                months_since_last_purchase=months_since,
                purchase_frequency=aggregate.frequency,
                avg_monthly_amount=aggregate.monetary / active_months if active_months else 0.0,
                total_amount=aggregate.monetary,
                churn_score=score,
                risk_level=classify_churn(score),
                signals=signals,
            )
        )
    customers.sort(key=lambda item: item.churn_score, reverse=True)
    return summarize_churn(customers)


def summarize_churn(customers: list[ChurnRiskCustomer]) -> ChurnSummary:
    at_risk = [item for item in customers if item.risk_level in (ChurnRisk.critical, ChurnRisk.high)]
    distribution = []
    for level in (ChurnRisk.critical, ChurnRisk.high, ChurnRisk.medium, ChurnRisk.low):
        members = [item for item in customers if item.risk_level == level]
        distribution.append(
            {
                "level": level,
                "count": len(members),
                "revenue": sum(item.total_amount for item in members),
            }
        )
    return ChurnSummary(
        total_customers=len(customers),
        at_risk_customers=len(at_risk),
        at_risk_revenue=sum(item.total_amount for item in at_risk),
        risk_distribution=distribution,
        customers=customers,
    )
