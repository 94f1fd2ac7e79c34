from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from profitlens.core.constants import (
    COST_BUCKETS,
    COST_CATEGORIES,
    COST_CATEGORIES_WITH_SUBTOTAL,
    FIXED_COST_CATEGORIES,
    LOW_CONTRIBUTION_RATE_PCT,
    PARETO_A_MAX_PCT,
    PARETO_B_MAX_PCT,
    SUBTOTAL_CATEGORIES,
    VARIABLE_COST_CATEGORIES,
)
from profitlens.models.enums import CostDirection, ParetoGrade, WaterfallBarType
from profitlens.models.records import ItemCostRecord, PlanActualDiff
from profitlens.utils.numbers import safe_pct


@dataclass(frozen=True)
class CostCategoryVariance:
    category: str
    plan: float
    actual: float
    variance: float
    variance_pct: float
    is_over_budget: bool
    is_subtotal: bool
    contribution_to_total: float


@dataclass(frozen=True)
class CostVarianceSummary:
    categories: list[CostCategoryVariance] = field(default_factory=list)
    total_plan_cost: float = 0.0
    total_actual_cost: float = 0.0
    total_variance: float = 0.0
    total_variance_pct: float = 0.0
    over_budget_count: int = 0


@dataclass(frozen=True)
class WaterfallBar:
    name: str
    base: float
    value: float
    type: WaterfallBarType


@dataclass(frozen=True)
class CostDriver:
    category: str
    plan: float
    actual: float
    cost_share: float
    variance_pct: float
    impact_score: float
    direction: CostDirection


@dataclass(frozen=True)
class CostBucket:
    name: str
    plan: float
    actual: float
    variance: float
    ratio: float


@dataclass(frozen=True)
class ItemCostSummary:
    product_count: int
    total_sales: float
    total_cost: float
    avg_gross_margin: float
    avg_contribution_rate: float
    top_cost_category: str
    top_cost_amount: float
    top_cost_ratio: float


@dataclass(frozen=True)
class ProductContribution:
    rank: int
    product: str
    org: str
    sales: float
    variable_cost: float
    fixed_cost: float
    contribution_margin: float
    contribution_rate: float
    gross_profit: float
    gross_margin: float
    cumulative_share: float
    grade: ParetoGrade


def category_totals(items: Iterable[ItemCostRecord], categories: Sequence[str]) -> dict[str, PlanActualDiff]:
    totals = {category: PlanActualDiff.zero() for category in categories}
    for item in items:
        for category in categories:
            totals[category] = totals[category] + item.cost(category)
    return totals


def _actual_sum(item: ItemCostRecord, categories: Sequence[str]) -> float:
    return sum(item.cost(category).actual for category in categories)


def calc_item_cost_summary(items: Iterable[ItemCostRecord]) -> ItemCostSummary:
    items = list(items)
    total_sales = sum(item.sales.actual for item in items)
    total_cost = sum(item.cost_of_sales.actual for item in items)
    gross_profit = sum(item.gross_profit.actual for item in items)
    variable = sum(_actual_sum(item, VARIABLE_COST_CATEGORIES) for item in items)

    top_category, top_amount = "-", 0.0
    for category, total in category_totals(items, COST_CATEGORIES).items():
        if total.actual > top_amount:
            top_category, top_amount = category, total.actual

    return ItemCostSummary(
        product_count=len({item.product for item in items}),
        total_sales=total_sales,
        total_cost=total_cost,
        avg_gross_margin=safe_pct(gross_profit, total_sales),
        avg_contribution_rate=safe_pct(total_sales - variable, total_sales),
        top_cost_category=top_category,
        top_cost_amount=top_amount,
        top_cost_ratio=safe_pct(top_amount, total_cost),
    )


def calc_cost_category_variance(items: Iterable[ItemCostRecord]) -> CostVarianceSummary:
    """Plan/actual variance for the 17 cost categories plus the two subtotal rows.

    Subtotals are listed for display but left out of every total so the
    categories they summarise are not counted twice.
    """
    items = list(items)
    if not items:
        return CostVarianceSummary()
    totals = category_totals(items, COST_CATEGORIES_WITH_SUBTOTAL)

    independent = [totals[category] for category in COST_CATEGORIES]
    total_plan = sum(value.plan for value in independent)
    total_actual = sum(value.actual for value in independent)
    total_variance = total_actual - total_plan

    rows = [
        CostCategoryVariance(
            category=category,
            plan=value.plan,
            actual=value.actual,
            variance=value.diff,
            variance_pct=safe_pct(value.diff, abs(value.plan)),
            is_over_budget=value.actual > value.plan,
            is_subtotal=category in SUBTOTAL_CATEGORIES,
            contribution_to_total=safe_pct(value.diff, abs(total_variance)),
        )
        for category, value in totals.items()
    ]
    rows.sort(key=lambda row: abs(row.variance), reverse=True)

    return CostVarianceSummary(
        categories=rows,
        total_plan_cost=total_plan,
        total_actual_cost=total_actual,
        total_variance=total_variance,
        total_variance_pct=safe_pct(total_variance, abs(total_plan)),
        over_budget_count=sum(1 for row in rows if row.is_over_budget and not row.is_subtotal),
    )


def _subtotal_bar(name: str, value: float) -> WaterfallBar:
    return WaterfallBar(name=name, base=min(0.0, value), value=abs(value), type=WaterfallBarType.subtotal)


def _delta_bar(name: str, before: float, after: float) -> WaterfallBar:
    kind = WaterfallBarType.decrease if after < before else WaterfallBarType.increase
    return WaterfallBar(name=name, base=min(before, after), value=abs(after - before), type=kind)


def calc_contribution_waterfall(items: Iterable[ItemCostRecord]) -> list[WaterfallBar]:
    """Revenue -> variable cost -> contribution margin -> fixed cost -> gross profit.

    Floating bars sit on ``min(before, after)`` with height ``|after - before|``
    so negative intermediate totals still render below the axis.
    """
    items = list(items)
    if not items:
        return []
    sales = sum(item.sales.actual for item in items)
    variable = sum(_actual_sum(item, VARIABLE_COST_CATEGORIES) for item in items)
    fixed = sum(_actual_sum(item, FIXED_COST_CATEGORIES) for item in items)
    contribution = sales - variable
    gross_profit = contribution - fixed

    start = WaterfallBar(name="매출액", base=min(0.0, sales), value=abs(sales), type=WaterfallBarType.start)
    return [
        start,
        _delta_bar("변동비", sales, contribution),
        _subtotal_bar("공헌이익", contribution),
        _delta_bar("고정비", contribution, gross_profit),
        _subtotal_bar("매출총이익", gross_profit),
    ]


def calc_cost_driver_analysis(items: Iterable[ItemCostRecord]) -> list[CostDriver]:
    """Rank categories by ``cost_share * |variance_pct| / 100``."""
    totals = category_totals(list(items), COST_CATEGORIES)
    total_actual = sum(value.actual for value in totals.values())
    drivers: list[CostDriver] = []
    for category, value in totals.items():
        share = safe_pct(value.actual, total_actual) if total_actual > 0 else 0.0
        variance_pct = safe_pct(value.diff, abs(value.plan))
        if value.actual > value.plan:
            direction = CostDirection.increase
        elif value.actual < value.plan:
            direction = CostDirection.decrease
        else:
            direction = CostDirection.neutral
        drivers.append(
            CostDriver(
                category=category,
                plan=value.plan,
                actual=value.actual,
                cost_share=share,
                variance_pct=variance_pct,
                impact_score=share * abs(variance_pct) / 100,
                direction=direction,
            )
        )
    drivers.sort(key=lambda driver: driver.impact_score, reverse=True)
    return drivers


def calc_cost_bucket_breakdown(items: Iterable[ItemCostRecord]) -> list[CostBucket]:
    totals = category_totals(list(items), COST_CATEGORIES)
    buckets: list[CostBucket] = []
    for name, categories in COST_BUCKETS.items():
        plan = sum(totals[category].plan for category in categories)
        actual = sum(totals[category].actual for category in categories)
        buckets.append(CostBucket(name=name, plan=plan, actual=actual, variance=actual - plan, ratio=0.0))
    grand_total = sum(bucket.actual for bucket in buckets)
    buckets = [
        CostBucket(
            name=bucket.name,
            plan=bucket.plan,
            actual=bucket.actual,
            variance=bucket.variance,
            ratio=safe_pct(bucket.actual, grand_total) if grand_total > 0 else 0.0,
        )
        for bucket in buckets
    ]
    buckets.sort(key=lambda bucket: bucket.actual, reverse=True)
    return buckets


def calc_product_contribution_ranking(items: Iterable[ItemCostRecord]) -> list[ProductContribution]:
    """ABC ranking by contribution margin with a one-grade penalty below 15% margin.

    Products with non-positive sales or contribution are always graded C.
    """
    grouped: dict[tuple[str, str], dict[str, float]] = {}
    for item in items:
        entry = grouped.setdefault(
            (item.team, item.product),
            {"sales": 0.0, "variable": 0.0, "fixed": 0.0, "gp": 0.0},
        )
        entry["sales"] += item.sales.actual
        entry["variable"] += _actual_sum(item, VARIABLE_COST_CATEGORIES)
        entry["fixed"] += _actual_sum(item, FIXED_COST_CATEGORIES)
        entry["gp"] += item.gross_profit.actual

    rows = []
    for (org, product), entry in grouped.items():
        contribution = entry["sales"] - entry["variable"]
        rows.append((org, product, entry, contribution, safe_pct(contribution, entry["sales"])))

    positive = sorted((row for row in rows if row[2]["sales"] > 0 and row[3] > 0), key=lambda row: -row[3])
    negative = sorted((row for row in rows if row[2]["sales"] <= 0 or row[3] <= 0), key=lambda row: row[3])
    positive_total = sum(row[3] for row in positive)

    ranked: list[ProductContribution] = []
    cumulative = 0.0
    for org, product, entry, contribution, rate in positive:
        cumulative += contribution
        share = safe_pct(cumulative, positive_total)
        grade = pareto_grade(share)
        if rate < LOW_CONTRIBUTION_RATE_PCT:
            grade = ParetoGrade.b if grade == ParetoGrade.a else ParetoGrade.c
        ranked.append(_contribution_row(len(ranked) + 1, org, product, entry, contribution, rate, share, grade))
    for org, product, entry, contribution, rate in negative:
        ranked.append(
            _contribution_row(len(ranked) + 1, org, product, entry, contribution, rate, 100.0, ParetoGrade.c)
        )
    return ranked


def pareto_grade(cumulative_share: float) -> ParetoGrade:
    if cumulative_share <= PARETO_A_MAX_PCT:
        return ParetoGrade.a
    if cumulative_share <= PARETO_B_MAX_PCT:
        return ParetoGrade.b
    return ParetoGrade.c


def _contribution_row(
    rank: int,
    org: str,
    product: str,
    entry: dict[str, float],
    contribution: float,
    rate: float,
    share: float,
    grade: ParetoGrade,
) -> ProductContribution:
    return ProductContribution(
        rank=rank,
        product=product,
        org=org,
        sales=entry["sales"],
        variable_cost=entry["variable"],
        fixed_cost=entry["fixed"],
        contribution_margin=contribution,
        contribution_rate=rate,
        gross_profit=entry["gp"],
        gross_margin=safe_pct(entry["gp"], entry["sales"]),
        cumulative_share=share,
        grade=grade,
    )
