from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import math

from profitlens.core.constants import ANOMALY_MIN_POINTS, ANOMALY_TOP_CONTRIBUTORS, IQR_MULTIPLIER
from profitlens.models.enums import AnomalyType
from profitlens.models.records import SalesRecord
from profitlens.services.aggregation import monthly_totals
from profitlens.utils.months import extract_month, next_month
from profitlens.utils.numbers import safe_pct


GROUP_FIELDS = {
    "customer": ("customer", "customer_name"),
    "org": ("org", "org"),
    "person": ("person", "person_name"),
    "product": ("product", "product"),
}


@dataclass(frozen=True)
class AnomalyPoint:
    month: str
    value: float
    type: AnomalyType
    deviation: float
    severity: float


@dataclass(frozen=True)
class AnomalyStats:
    mean: float = 0.0
    std_dev: float = 0.0
    q1: float = 0.0
    q3: float = 0.0
    iqr: float = 0.0
    lower_fence: float = 0.0
    upper_fence: float = 0.0
    anomalies: list[AnomalyPoint] = field(default_factory=list)
    anomaly_rate: float = 0.0


@dataclass(frozen=True)
class AnomalyContributor:
    key: str
    name: str
    current: float
    previous: float
    change: float
    share_of_change: float


@dataclass(frozen=True)
class EnhancedAnomaly:
    anomaly: AnomalyPoint
    previous_month: str
    month_change: float
    contributors: list[AnomalyContributor]
    cause: str


@dataclass(frozen=True)
class EnhancedAnomalyStats:
    stats: AnomalyStats
    group_by: str
    details: list[EnhancedAnomaly] = field(default_factory=list)


def _std(values: list[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return math.sqrt(variance) if variance > 0 else 0.0


def detect_anomalies(series: Mapping[str, float], multiplier: float = IQR_MULTIPLIER) -> AnomalyStats:
    """IQR fences over a month -> value series.

    Quartiles are taken by index (``sorted[floor(n * 0.25)]``) rather than
    interpolated. Fewer than four points yields empty stats.
    """
    if multiplier < 0:
        raise ValueError("multiplier must be >= 0.")
    if len(series) < ANOMALY_MIN_POINTS:
        return AnomalyStats()

    values = list(series.values())
    ordered = sorted(values)
    n = len(ordered)
    q1 = ordered[int(n * 0.25)]
    q3 = ordered[int(n * 0.75)]
    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr
    mean = sum(values) / n
    std_dev = _std(values)

    anomalies: list[AnomalyPoint] = []
    for month, value in series.items():
        if lower <= value <= upper:
            continue
        is_upper = value > upper
        anomalies.append(
            AnomalyPoint(
                month=month,
                value=value,
                type=AnomalyType.upper if is_upper else AnomalyType.lower,
                deviation=value - upper if is_upper else lower - value,
                severity=abs(value - mean) / std_dev if std_dev > 0 else 0.0,
            )
        )

    return AnomalyStats(
        mean=mean,
        std_dev=std_dev,
        q1=q1,
        q3=q3,
        iqr=iqr,
        lower_fence=lower,
        upper_fence=upper,
        anomalies=anomalies,
        anomaly_rate=len(anomalies) / n * 100,
    )


def detect_sales_anomalies(sales: Iterable[SalesRecord], multiplier: float = IQR_MULTIPLIER) -> AnomalyStats:
    return detect_anomalies(monthly_totals(sales), multiplier)


def _entity_months(sales: Iterable[SalesRecord], group_by: str) -> tuple[dict[str, dict[str, float]], dict[str, str]]:
    key_field, name_field = GROUP_FIELDS[group_by]
    by_entity: dict[str, dict[str, float]] = {}
    names: dict[str, str] = {}
    for row in sales:
        month = extract_month(row.date)
        key = str(getattr(row, key_field, "") or "").strip()
        if not month or not key:
            continue
        months = by_entity.setdefault(key, {})
        months[month] = months.get(month, 0.0) + row.amount
        name = str(getattr(row, name_field, "") or "").strip()
        if name:
            names[key] = name
    return by_entity, names


def _format_amount(value: float) -> str:
    if abs(value) >= 1e8:
        return f"{value / 1e8:+.1f}억원"
    if abs(value) >= 1e4:
        return f"{value / 1e4:+.0f}만원"
    return f"{value:+,.0f}원"


def _describe_cause(anomaly: AnomalyPoint, month_change: float, contributors: list[AnomalyContributor]) -> str:
    movement = "급증" if anomaly.type == AnomalyType.upper else "급감"
    head = f"{anomaly.month} 매출 {movement} ({anomaly.severity:.1f}σ, 전월 대비 {_format_amount(month_change)})."
    if not contributors:
        return f"{head} 개별 기여 요인을 식별할 수 없습니다."
    parts = [f"{item.name} {_format_amount(item.change)}" for item in contributors]
    lead = contributors[0]
    return f"{head} 주요 요인: {', '.join(parts)}. 최대 기여 {lead.name}({lead.share_of_change:.0f}%)."


def detect_enhanced_sales_anomalies(
    sales: Iterable[SalesRecord],
    group_by: str = "customer",
    multiplier: float = IQR_MULTIPLIER,
    top_n: int = ANOMALY_TOP_CONTRIBUTORS,
) -> EnhancedAnomalyStats:
    """IQR detection plus attribution of every anomalous month to the
    sub-entities with the largest absolute month-over-month change.
    """
    if group_by not in GROUP_FIELDS:
        raise ValueError(f"group_by must be one of {', '.join(GROUP_FIELDS)}.")
    if top_n <= 0:
        raise ValueError("top_n must be > 0.")
    sales = list(sales)
    totals = monthly_totals(sales)
    stats = detect_anomalies(totals, multiplier)
    if not stats.anomalies:
        return EnhancedAnomalyStats(stats=stats, group_by=group_by)

    by_entity, names = _entity_months(sales, group_by)
    details: list[EnhancedAnomaly] = []
    for anomaly in stats.anomalies:
        previous = next_month(anomaly.month, -1)
        month_change = anomaly.value - totals.get(previous, 0.0)
        changes: list[AnomalyContributor] = []
        for key, months in by_entity.items():
            current = months.get(anomaly.month, 0.0)
            before = months.get(previous, 0.0)
            change = current - before
            if change == 0:
                continue
            changes.append(
                AnomalyContributor(
                    key=key,
                    name=names.get(key, key),
                    current=current,
                    previous=before,
                    change=change,
                    share_of_change=safe_pct(change, abs(month_change)),
                )
            )
        changes.sort(key=lambda item: abs(item.change), reverse=True)
        contributors = changes[:top_n]
        details.append(
            EnhancedAnomaly(
                anomaly=anomaly,
                previous_month=previous,
                month_change=month_change,
                contributors=contributors,
                cause=_describe_cause(anomaly, month_change, contributors),
            )
        )
    return EnhancedAnomalyStats(stats=stats, group_by=group_by, details=details)
