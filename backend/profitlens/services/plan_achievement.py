"""Plan vs actual achievement over profitability records.

Quantity plans are mostly empty in the source ledgers, so everything here is
amount based: achievement rates, margin drift in percentage points and the
gap each org contributes.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from profitlens.core.constants import (
    PLAN_COVERAGE_PARTIAL_PCT,
    PLAN_COVERAGE_POOR_PCT,
    VARIABLE_COST_CATEGORIES,
)
from profitlens.models.enums import PlanDataQuality
from profitlens.models.records import ItemCostRecord, ProfitabilityRecord
from profitlens.utils.numbers import safe_pct


UNASSIGNED = "(미분류)"
QUADRANT_LABELS = {1: "스타", 2: "효율", 3: "부진", 4: "주의"}


@dataclass(frozen=True)
class PlanAchievementSummary:
    sales_plan: float
    sales_actual: float
    sales_achievement: float
    sales_gap: float
    gp_plan: float
    gp_actual: float
    gp_achievement: float
    op_plan: float
    op_actual: float
    op_achievement: float
    planned_gp_rate: float
    actual_gp_rate: float
    margin_drift: float
    planned_op_rate: float
    actual_op_rate: float
    op_margin_drift: float


@dataclass(frozen=True)
class OrgAchievement:
    org: str
    sales_plan: float
    sales_actual: float
    sales_achievement: float
    sales_gap: float
    gp_plan: float
    gp_actual: float
    gp_achievement: float
    planned_gp_rate: float
    actual_gp_rate: float
    margin_drift: float
    op_plan: float
    op_actual: float
    op_achievement: float


@dataclass(frozen=True)
class CustomerContributor:
    customer: str
    sales_plan: float
    sales_actual: float
    sales_gap: float
    gp_actual: float
    gp_margin: float
    op_actual: float
    op_margin: float


@dataclass(frozen=True)
class MarginDriftItem:
    customer: str
    sales_actual: float
    planned_gp_rate: float
    actual_gp_rate: float
    margin_drift: float
    drift_impact: float


@dataclass(frozen=True)
class MarginDriftResult:
    worsened: list[MarginDriftItem] = field(default_factory=list)
    improved: list[MarginDriftItem] = field(default_factory=list)
    total_worsened_impact: float = 0.0
    total_improved_impact: float = 0.0
    net_impact: float = 0.0


@dataclass(frozen=True)
class PlanDataQualityReport:
    total_records: int
    records_with_sales_plan: int
    sales_plan_coverage: float
    has_meaningful_plan: bool
    level: PlanDataQuality


@dataclass(frozen=True)
class OrgGapContribution:
    org: str
    sales_gap: float
    gp_gap: float
    op_gap: float
    sales_plan: float
    sales_actual: float
    sales_gap_share: float
    gp_gap_share: float


@dataclass(frozen=True)
class PlanQuadrantItem:
    product: str
    org: str
    sales_achievement: float
    profit_achievement: float
    quadrant: int
    label: str
    sales_plan: float
    sales_actual: float
    profit_plan: float
    profit_actual: float


def achievement_rate(plan: float, actual: float) -> float:
    return safe_pct(actual, plan)


class _Totals:
    __slots__ = ("sales_plan", "sales_actual", "gp_plan", "gp_actual", "op_plan", "op_actual")

    def __init__(self) -> None:
        self.sales_plan = self.sales_actual = 0.0
        self.gp_plan = self.gp_actual = 0.0
        self.op_plan = self.op_actual = 0.0

    def add(self, record: ProfitabilityRecord) -> None:
        self.sales_plan += record.sales.plan
        self.sales_actual += record.sales.actual
        self.gp_plan += record.gross_profit.plan
        self.gp_actual += record.gross_profit.actual
        self.op_plan += record.operating_profit.plan
        self.op_actual += record.operating_profit.actual


def _group(records: Iterable[ProfitabilityRecord], field_name: str) -> dict[str, _Totals]:
    grouped: dict[str, _Totals] = {}
    for record in records:
        key = getattr(record, field_name).strip() or UNASSIGNED
        grouped.setdefault(key, _Totals()).add(record)
    return grouped


def calc_plan_vs_actual_summary(records: Iterable[ProfitabilityRecord]) -> PlanAchievementSummary:
    totals = _Totals()
    for record in records:
        totals.add(record)
    planned_gp_rate = safe_pct(totals.gp_plan, totals.sales_plan)
    actual_gp_rate = safe_pct(totals.gp_actual, totals.sales_actual)
    planned_op_rate = safe_pct(totals.op_plan, totals.sales_plan)
    actual_op_rate = safe_pct(totals.op_actual, totals.sales_actual)
    return PlanAchievementSummary(
        sales_plan=totals.sales_plan,
        sales_actual=totals.sales_actual,
        sales_achievement=achievement_rate(totals.sales_plan, totals.sales_actual),
        sales_gap=totals.sales_actual - totals.sales_plan,
        gp_plan=totals.gp_plan,
        gp_actual=totals.gp_actual,
        gp_achievement=achievement_rate(totals.gp_plan, totals.gp_actual),
        op_plan=totals.op_plan,
        op_actual=totals.op_actual,
        op_achievement=achievement_rate(totals.op_plan, totals.op_actual),
        planned_gp_rate=planned_gp_rate,
        actual_gp_rate=actual_gp_rate,
        margin_drift=actual_gp_rate - planned_gp_rate,
        planned_op_rate=planned_op_rate,
        actual_op_rate=actual_op_rate,
        op_margin_drift=actual_op_rate - planned_op_rate,
    )


def calc_org_achievement(records: Iterable[ProfitabilityRecord]) -> list[OrgAchievement]:
    """Achievement per team, largest actual sales first."""
    rows: list[OrgAchievement] = []
    for org, totals in _group(records, "team").items():
        planned_gp_rate = safe_pct(totals.gp_plan, totals.sales_plan)
        actual_gp_rate = safe_pct(totals.gp_actual, totals.sales_actual)
        rows.append(
            OrgAchievement(
                org=org,
                sales_plan=totals.sales_plan,
                sales_actual=totals.sales_actual,
                sales_achievement=achievement_rate(totals.sales_plan, totals.sales_actual),
                sales_gap=totals.sales_actual - totals.sales_plan,
                gp_plan=totals.gp_plan,
                gp_actual=totals.gp_actual,
                gp_achievement=achievement_rate(totals.gp_plan, totals.gp_actual),
                planned_gp_rate=planned_gp_rate,
                actual_gp_rate=actual_gp_rate,
                margin_drift=actual_gp_rate - planned_gp_rate,
                op_plan=totals.op_plan,
                op_actual=totals.op_actual,
                op_achievement=achievement_rate(totals.op_plan, totals.op_actual),
            )
        )
    rows.sort(key=lambda row: row.sales_actual, reverse=True)
    return rows


def calc_top_contributors(
    records: Iterable[ProfitabilityRecord],
    top_n: int = 10,
) -> tuple[list[CustomerContributor], list[CustomerContributor]]:
    """Customers beating plan by the most, and customers missing it by the most."""
    if top_n <= 0:
        raise ValueError("top_n must be > 0.")
    rows = [
        CustomerContributor(
            customer=customer,
            sales_plan=totals.sales_plan,
            sales_actual=totals.sales_actual,
            sales_gap=totals.sales_actual - totals.sales_plan,
            gp_actual=totals.gp_actual,
            gp_margin=safe_pct(totals.gp_actual, totals.sales_actual),
            op_actual=totals.op_actual,
            op_margin=safe_pct(totals.op_actual, totals.sales_actual),
        )
        for customer, totals in _group(records, "customer").items()
    ]
    top = sorted((row for row in rows if row.sales_gap > 0), key=lambda row: -row.sales_gap)
    bottom = sorted((row for row in rows if row.sales_gap < 0), key=lambda row: row.sales_gap)
    return top[:top_n], bottom[:top_n]


def calc_margin_drift(records: Iterable[ProfitabilityRecord], top_n: int = 15) -> MarginDriftResult:
    """Gross-margin drift per customer in percentage points.

    Customers with a zero sales plan or zero actual sales have no baseline
    and are excluded. ``drift_impact`` converts the drift to an amount
    using actual sales.
    """
    if top_n <= 0:
        raise ValueError("top_n must be > 0.")
    items: list[MarginDriftItem] = []
    for customer, totals in _group(records, "customer").items():
        if totals.sales_plan == 0 or totals.sales_actual == 0:
            continue
        planned = totals.gp_plan / totals.sales_plan * 100
        actual = totals.gp_actual / totals.sales_actual * 100
        drift = actual - planned
        items.append(
            MarginDriftItem(
                customer=customer,
                sales_actual=totals.sales_actual,
                planned_gp_rate=planned,
                actual_gp_rate=actual,
                margin_drift=drift,
                drift_impact=totals.sales_actual * drift / 100,
            )
        )

    worsened = sorted((item for item in items if item.margin_drift < 0), key=lambda item: item.drift_impact)
    improved = sorted((item for item in items if item.margin_drift > 0), key=lambda item: -item.drift_impact)
    worsened, improved = worsened[:top_n], improved[:top_n]
    worsened_impact = sum(item.drift_impact for item in worsened)
    improved_impact = sum(item.drift_impact for item in improved)
    return MarginDriftResult(
        worsened=worsened,
        improved=improved,
        total_worsened_impact=worsened_impact,
        total_improved_impact=improved_impact,
        net_impact=worsened_impact + improved_impact,
    )


def check_plan_data_quality(records: Iterable[ProfitabilityRecord]) -> PlanDataQualityReport:
    records = list(records)
    with_plan = sum(1 for record in records if record.sales.plan != 0)
    coverage = safe_pct(with_plan, len(records))
    if with_plan == 0:
        level = PlanDataQuality.none
    elif coverage < PLAN_COVERAGE_POOR_PCT:
        level = PlanDataQuality.poor
    elif coverage < PLAN_COVERAGE_PARTIAL_PCT:
        level = PlanDataQuality.partial
    else:
        level = PlanDataQuality.good
    return PlanDataQualityReport(
        total_records=len(records),
        records_with_sales_plan=with_plan,
        sales_plan_coverage=coverage,
        has_meaningful_plan=coverage >= PLAN_COVERAGE_POOR_PCT,
        level=level,
    )


def calc_org_gap_contribution(records: Iterable[ProfitabilityRecord]) -> list[OrgGapContribution]:
    """Each team's sales and GP gap (actual - plan) and its share of the total gap."""
    grouped = _group(records, "team")
    total_sales_gap = sum(totals.sales_actual - totals.sales_plan for totals in grouped.values())
    total_gp_gap = sum(totals.gp_actual - totals.gp_plan for totals in grouped.values())
    rows = []
    for org, totals in grouped.items():
        sales_gap = totals.sales_actual - totals.sales_plan
        gp_gap = totals.gp_actual - totals.gp_plan
        rows.append(
            OrgGapContribution(
                org=org,
                sales_gap=sales_gap,
                gp_gap=gp_gap,
                op_gap=totals.op_actual - totals.op_plan,
                sales_plan=totals.sales_plan,
                sales_actual=totals.sales_actual,
                sales_gap_share=safe_pct(sales_gap, abs(total_sales_gap)),
                gp_gap_share=safe_pct(gp_gap, abs(total_gp_gap)),
            )
        )
    rows.sort(key=lambda row: row.sales_gap, reverse=True)
    return rows


def generate_plan_insight(
    summary: PlanAchievementSummary,
    orgs: list[OrgAchievement],
    quality: PlanDataQualityReport,
) -> str:
    """Compose the diagnostic paragraph.

    Order: data-quality warning, sales vs gross-profit cross-check, then the
    org callout. Without any plan data only the quality message is returned.
    """
    if quality.level == PlanDataQuality.none:
        return (
            "계획 데이터가 전혀 입력되어 있지 않아 달성율 분석이 불가합니다. "
            "계획 데이터를 포함한 보고서를 다시 추출해주세요."
        )

    parts: list[str] = []
    if quality.level == PlanDataQuality.poor:
        parts.append(
            f"전체 {quality.total_records}건 중 {quality.records_with_sales_plan}건"
            f"({quality.sales_plan_coverage:.0f}%)에만 계획값이 존재하여 분석 신뢰성이 제한됩니다."
        )

    sales_ach, gp_ach = summary.sales_achievement, summary.gp_achievement
    if sales_ach > 0 and gp_ach > 0:
        if sales_ach >= 100 and gp_ach >= 100:
            parts.append(f"매출 {sales_ach:.0f}%, 매출총이익 {gp_ach:.0f}% 달성으로 전체적으로 양호합니다.")
        elif sales_ach >= 100:
            parts.append(
                f"매출은 {sales_ach:.0f}% 달성했으나 매출총이익이 {gp_ach:.0f}%에 그쳐, "
                "원가율 상승 또는 저마진 판매 비중 증가가 의심됩니다."
            )
        elif gp_ach >= sales_ach:
            parts.append(
                f"매출은 {sales_ach:.0f}%로 미달이나 이익율은 개선되어(GP 달성 {gp_ach:.0f}%), "
                "고마진 거래 중심의 선별 영업이 이루어지고 있습니다."
            )
        else:
            parts.append(
                f"매출 {sales_ach:.0f}%, 매출총이익 {gp_ach:.0f}%로 모두 미달입니다. "
                "영업량 확대와 원가 관리가 동시에 필요합니다."
            )

    if orgs:
        achieved = [org for org in orgs if org.sales_achievement >= 100]
        missed = [org for org in orgs if org.sales_achievement < 100 and org.sales_plan > 0]
        if not missed:
            parts.append("모든 조직이 매출 계획을 달성하여 균형 잡힌 실적을 보이고 있습니다.")
        elif not achieved:
            parts.append("전 조직이 매출 계획 미달로, 전사적 영업 전략 재검토가 필요합니다.")
        else:
            worst = min(missed, key=lambda org: org.sales_achievement)
            parts.append(
                f"{len(achieved)}개 조직 달성, {len(missed)}개 조직 미달. "
                f'가장 저조한 "{worst.org}"({worst.sales_achievement:.0f}%)에 대한 집중 관리가 필요합니다.'
            )

    return " ".join(parts)


def plan_quadrant(sales_achievement: float, profit_achievement: float) -> int:
    if sales_achievement >= 100:
        return 1 if profit_achievement >= 100 else 4
    return 2 if profit_achievement >= 100 else 3


def calc_plan_achievement_quadrants(items: Iterable[ItemCostRecord]) -> list[PlanQuadrantItem]:
    """Place each (org, product) on sales vs contribution-margin achievement.

    Contribution margin is sales minus the variable cost categories. Products
    without a sales plan and a positive contribution plan are left out.
    """
    grouped: dict[tuple[str, str], list[float]] = {}
    for item in items:
        entry = grouped.setdefault((item.team, item.product), [0.0, 0.0, 0.0, 0.0])
        entry[0] += item.sales.plan
        entry[1] += item.sales.actual
        entry[2] += item.sales.plan - sum(item.cost(name).plan for name in VARIABLE_COST_CATEGORIES)
        entry[3] += item.sales.actual - sum(item.cost(name).actual for name in VARIABLE_COST_CATEGORIES)

    rows: list[PlanQuadrantItem] = []
    for (org, product), (sales_plan, sales_actual, profit_plan, profit_actual) in grouped.items():
        if sales_plan <= 0 or profit_plan <= 0:
            continue
        sales_ach = achievement_rate(sales_plan, sales_actual)
        profit_ach = achievement_rate(profit_plan, profit_actual)
        quadrant = plan_quadrant(sales_ach, profit_ach)
        rows.append(
            PlanQuadrantItem(
                product=product,
                org=org,
                sales_achievement=sales_ach,
                profit_achievement=profit_ach,
                quadrant=quadrant,
                label=QUADRANT_LABELS[quadrant],
                sales_plan=sales_plan,
                sales_actual=sales_actual,
                profit_plan=profit_plan,
                profit_actual=profit_actual,
            )
        )
    rows.sort(key=lambda row: row.sales_actual, reverse=True)
    return rows
