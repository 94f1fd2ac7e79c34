"""Working-capital cycle: DSO from receivable aging, estimated DPO, and CCC.

There is no inventory or payables data, so DIO defaults to 0 and DPO is
estimated from the cost-of-sales ratio.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import math

from profitlens.core.constants import (
    CCC_FAIR_MAX,
    CCC_GOOD_MAX,
    DAYS_PER_MONTH,
    DPO_DEFAULT_DAYS,
    DPO_TIERS,
    DSO_EXCELLENT_MAX,
    DSO_FAIR_MAX,
    DSO_GOOD_MAX,
)
from profitlens.models.enums import CycleGrade
from profitlens.models.records import AgingRecord, SalesRecord, TeamContributionRecord
from profitlens.services.aggregation import monthly_totals
from profitlens.services.filters import fuzzy_match_org, normalize_org_name
from profitlens.utils.months import extract_month
from profitlens.utils.numbers import round_half_up


@dataclass(frozen=True)
class DsoMetric:
    org: str
    dso: float
    total_receivables: float
    avg_monthly_sales: float
    classification: CycleGrade


@dataclass(frozen=True)
class DsoTrendPoint:
    month: str
    dso: float
    total_receivables: float
    monthly_sales: float
    is_synthetic: bool = True


@dataclass(frozen=True)
class CccMetric:
    org: str
    dso: float
    dpo: float
    ccc: float
    classification: CycleGrade
    recommendation: str


@dataclass(frozen=True)
class CccAnalysis:
    avg_ccc: float = 0.0
    avg_dso: float = 0.0
    avg_dpo: float = 0.0
    metrics: list[CccMetric] = field(default_factory=list)


def calc_dso(receivables: float, avg_monthly_sales: float, days_per_month: int = DAYS_PER_MONTH) -> float:
    """``receivables / avg_monthly_sales * days`` rounded to whole days.

    Without sales the result is ``inf`` when anything is outstanding, else 0.
    """
    if avg_monthly_sales <= 0:
        return math.inf if receivables > 0 else 0.0
    return round_half_up(receivables / avg_monthly_sales * days_per_month)


def classify_dso(dso: float) -> CycleGrade:
    if not math.isfinite(dso) or dso > DSO_FAIR_MAX:
        return CycleGrade.poor
    if dso < DSO_EXCELLENT_MAX:
        return CycleGrade.excellent
    if dso <= DSO_GOOD_MAX:
        return CycleGrade.good
    return CycleGrade.fair


def _avg_monthly(months: dict[str, float]) -> float:
    return sum(months.values()) / len(months) if months else 0.0


def calc_dso_by_org(
    aging: Iterable[AgingRecord],
    sales: Iterable[SalesRecord],
    days_per_month: int = DAYS_PER_MONTH,
) -> list[DsoMetric]:
    """DSO per org, averaging each org's sales over the months it actually sold in.

    Orgs with neither receivables nor sales, and orgs whose DSO is infinite
    (receivables but no sales), are left out. Sorted by DSO ascending.
    """
    sales_by_org: dict[str, dict[str, float]] = {}
    for row in sales:
        org = normalize_org_name(row.org)
        month = extract_month(row.date)
        if not org or not month:
            continue
        months = sales_by_org.setdefault(org, {})
        months[month] = months.get(month, 0.0) + row.amount

    receivables_by_org: dict[str, float] = {}
    for record in aging:
        org = normalize_org_name(record.org)
        if not org:
            continue
        receivables_by_org[org] = receivables_by_org.get(org, 0.0) + record.total

    metrics: list[DsoMetric] = []
    for org in {**receivables_by_org, **sales_by_org}:
        receivables = receivables_by_org.get(org, 0.0)
        avg_sales = _avg_monthly(sales_by_org.get(org, {}))
        if receivables == 0 and avg_sales == 0:
            continue
        dso = calc_dso(receivables, avg_sales, days_per_month)
        if not math.isfinite(dso):
            continue
        metrics.append(
            DsoMetric(
                org=org,
                dso=dso,
                total_receivables=receivables,
                avg_monthly_sales=avg_sales,
                classification=classify_dso(dso),
            )
        )
    metrics.sort(key=lambda metric: metric.dso)
    return metrics


def calc_overall_dso(
    aging: Iterable[AgingRecord],
    sales: Iterable[SalesRecord],
    days_per_month: int = DAYS_PER_MONTH,
) -> float:
    receivables = sum(record.total for record in aging)
    return calc_dso(receivables, _avg_monthly(monthly_totals(sales)), days_per_month)


def calc_dso_trend(
    aging: Iterable[AgingRecord],
    sales: Iterable[SalesRecord],
    days_per_month: int = DAYS_PER_MONTH,
) -> list[DsoTrendPoint]:
    """Approximate month-by-month DSO from a single receivables snapshot.

    The snapshot is apportioned by each month's share of sales and divided by
    the trailing three-month average, so every point is an estimate.
    """
    aging = list(aging)
    totals = monthly_totals(sales)
    if not aging or not totals:
        return []
    receivables = sum(record.total for record in aging)
    months = list(totals)
    total_sales = sum(totals.values())

    points: list[DsoTrendPoint] = []
    for index, month in enumerate(months):
        window = [totals[key] for key in months[max(0, index - 2) : index + 1]]
        rolling = sum(window) / len(window)
        if total_sales > 0:
            estimated = receivables * (totals[month] / total_sales * len(months))
        else:
            estimated = receivables / len(months)
        dso = round_half_up(estimated / rolling * days_per_month) if rolling > 0 else 0.0
        if dso < 0:
            continue
        points.append(
            DsoTrendPoint(
                month=month,
                dso=dso,
                total_receivables=round_half_up(estimated),
                monthly_sales=totals[month],
            )
        )
    return points


def dpo_from_ratio(cost_of_sales: float, sales: float) -> float:
    """Estimated payment days from the cost-of-sales ratio; 0 when there is no cost."""
    if cost_of_sales <= 0:
        return 0.0
    ratio = cost_of_sales / sales if sales > 0 else 0.0
    for threshold, days in DPO_TIERS:
        if ratio >= threshold:
            return float(days)
    return float(DPO_DEFAULT_DAYS)


def estimate_dpo(team_contrib: Iterable[TeamContributionRecord]) -> float:
    records = list(team_contrib)
    if not records:
        return 0.0
    sales = sum(record.sales.actual for record in records)
    cost = sum(record.cost_of_sales.actual for record in records)
    return dpo_from_ratio(cost, sales)


def estimate_dpo_by_org(team_contrib: Iterable[TeamContributionRecord]) -> dict[str, float]:
    totals: dict[str, list[float]] = {}
    for record in team_contrib:
        org = normalize_org_name(record.team)
        if not org:
            continue
        entry = totals.setdefault(org, [0.0, 0.0])
        entry[0] += record.sales.actual
        entry[1] += record.cost_of_sales.actual
    return {org: dpo_from_ratio(cost, sales) for org, (sales, cost) in totals.items()}


def calc_ccc(dso: float, dpo: float, dio: float = 0.0) -> float:
    return dso + dio - dpo


def classify_ccc(ccc: float) -> CycleGrade:
    if ccc < 0:
        return CycleGrade.excellent
    if ccc <= CCC_GOOD_MAX:
        return CycleGrade.good
    if ccc <= CCC_FAIR_MAX:
        return CycleGrade.fair
    return CycleGrade.poor


def _days(value: float) -> str:
    return f"{value:.0f}" if math.isfinite(value) else str(value)


def ccc_recommendation(grade: CycleGrade, dso: float, dpo: float) -> str:
    if grade == CycleGrade.excellent:
        return (
            "현금 회전이 매우 우수합니다. 매입 결제 전에 매출 회수가 이루어지고 있어 "
            "운전자본 관리가 효율적입니다."
        )
    if grade == CycleGrade.good:
        return (
            f"현금 회전이 양호합니다. DSO({_days(dso)}일) 단축을 통해 추가 개선이 가능합니다. "
            "조기 수금 인센티브 도입을 검토해 보세요."
        )
    if grade == CycleGrade.fair:
        return (
            f"현금 회전 개선이 필요합니다. DSO({_days(dso)}일)가 높아 매출채권 회수 속도를 높이고, "
            f"매입 결제조건(DPO {_days(dpo)}일) 연장을 협의해 보세요."
        )
    return (
        f"현금 회전이 매우 느립니다. DSO({_days(dso)}일) 대폭 단축이 시급합니다. "
        "연체 거래처 집중 관리, 결제조건 재협상, 팩토링 활용을 권장합니다."
    )


def calc_ccc_by_org(
    dso_metrics: Iterable[DsoMetric],
    team_contrib: Iterable[TeamContributionRecord],
) -> list[CccMetric]:
    """CCC per DSO org with a DPO matched by org name.

    Aging and team contribution label orgs differently, so the lookup falls
    back to substring matching and then to the company-wide DPO.
    """
    team_contrib = list(team_contrib)
    dpo_by_org = estimate_dpo_by_org(team_contrib)
    overall = estimate_dpo(team_contrib)

    metrics: list[CccMetric] = []
    for item in dso_metrics:
        matched = fuzzy_match_org(dpo_by_org, item.org)
        dpo = overall if matched is None else matched
        ccc = calc_ccc(item.dso, dpo)
        grade = classify_ccc(ccc)
        metrics.append(
            CccMetric(
                org=item.org,
                dso=item.dso,
                dpo=dpo,
                ccc=ccc,
                classification=grade,
                recommendation=ccc_recommendation(grade, item.dso, dpo),
            )
        )
    metrics.sort(key=lambda metric: metric.ccc)
    return metrics


def calc_ccc_analysis(metrics: Iterable[CccMetric]) -> CccAnalysis:
    metrics = list(metrics)
    if not metrics:
        return CccAnalysis()
    count = len(metrics)
    return CccAnalysis(
        avg_ccc=round_half_up(sum(metric.ccc for metric in metrics) / count),
        avg_dso=round_half_up(sum(metric.dso for metric in metrics) / count),
        avg_dpo=round_half_up(sum(metric.dpo for metric in metrics) / count),
        metrics=metrics,
    )
