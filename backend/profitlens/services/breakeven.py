"""Cost-volume-profit and break-even analysis.

Sentinels: break-even sales is ``inf`` when the contribution margin ratio is
zero or negative (the business cannot break even at any volume), the safety
margin is then ``-inf``, and operating leverage is ``inf`` when operating
profit is zero but contribution margin is not. Callers must check
``math.isfinite`` before formatting.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import math

from profitlens.core.constants import BREAKEVEN_CHART_POINTS
from profitlens.models.records import OrgProfitRecord, TeamContributionRecord
from profitlens.services.filters import normalize_org_name


@dataclass(frozen=True)
class BreakevenResult:
    org: str
    person: str | None
    sales: float
    variable_costs: float
    fixed_costs: float
    variable_cost_ratio: float
    contribution_margin_ratio: float
    bep_sales: float
    safety_margin_rate: float
    operating_leverage: float

    @property
    def can_break_even(self) -> bool:
        return math.isfinite(self.bep_sales)


@dataclass(frozen=True)
class BreakevenChartPoint:
    revenue: float
    total_cost: float
    fixed_cost: float
    variable_cost: float


def bep_sales(fixed_cost: float, contribution_margin_ratio: float) -> float:
    if contribution_margin_ratio <= 0:
        return math.inf
    return fixed_cost / contribution_margin_ratio


def safety_margin_rate(sales: float, bep: float) -> float:
    if not math.isfinite(bep):
        return -math.inf
    if sales == 0:
        return 0.0
    return (sales - bep) / sales * 100


def operating_leverage(contribution_margin: float, operating_profit: float) -> float:
    if operating_profit == 0:
        return 0.0 if contribution_margin == 0 else math.inf
    return contribution_margin / operating_profit


def calc_breakeven(
    sales: float,
    variable_costs: float,
    fixed_costs: float,
    *,
    contribution_margin: float | None = None,
    operating_profit: float | None = None,
    org: str = "",
    person: str | None = None,
) -> BreakevenResult:
    """CVP figures for one entity with non-zero sales.

    Contribution margin defaults to ``sales - variable_costs`` and operating
    profit to ``contribution_margin - fixed_costs``.
    """
    if sales == 0:
        raise ValueError("sales must be non-zero for break-even analysis.")
    variable_ratio = variable_costs / sales
    cm_ratio = 1 - variable_ratio
    cm = sales - variable_costs if contribution_margin is None else contribution_margin
    op = cm - fixed_costs if operating_profit is None else operating_profit
    bep = bep_sales(fixed_costs, cm_ratio)
    return BreakevenResult(
        org=org,
        person=person,
        sales=sales,
        variable_costs=variable_costs,
        fixed_costs=fixed_costs,
        variable_cost_ratio=variable_ratio,
        contribution_margin_ratio=cm_ratio,
        bep_sales=bep,
        safety_margin_rate=safety_margin_rate(sales, bep),
        operating_leverage=operating_leverage(cm, op),
    )


def calc_team_breakeven(records: Iterable[TeamContributionRecord]) -> list[BreakevenResult]:
    """Per-salesperson break-even with fixed cost from the three SG&A fixed lines."""
    results: list[BreakevenResult] = []
    for record in records:
        if record.sales.actual == 0:
            continue
        results.append(
            calc_breakeven(
                record.sales.actual,
                record.variable_cost_total.actual,
                record.fixed_cost.actual,
                contribution_margin=record.contribution_margin.actual,
                operating_profit=record.operating_profit.actual,
                org=record.team,
                person=record.person,
            )
        )
    return results


def calc_org_breakeven(records: Iterable[OrgProfitRecord]) -> list[BreakevenResult]:
    """Per-org break-even from aggregate figures only.

    Fixed cost is derived as ``contribution_margin - operating_profit`` and
    variable cost as ``sales - contribution_margin``.
    """
    results: list[BreakevenResult] = []
    for record in records:
        sales = record.sales.actual
        if sales == 0:
            continue
        cm = record.contribution_margin.actual
        op = record.operating_profit.actual
        results.append(
            calc_breakeven(
                sales,
                sales - cm,
                cm - op,
                contribution_margin=cm,
                operating_profit=op,
                org=record.team,
            )
        )
    return results


def calc_org_breakeven_from_team(records: Iterable[TeamContributionRecord]) -> list[BreakevenResult]:
    """Org break-even summed from salesperson rows; rows without a person are subtotals and skipped."""
    grouped: dict[str, dict[str, float]] = {}
    for record in records:
        org = normalize_org_name(record.team)
        if not org or record.is_subtotal:
            continue
        entry = grouped.setdefault(org, {"sales": 0.0, "variable": 0.0, "fixed": 0.0, "cm": 0.0, "op": 0.0})
        entry["sales"] += record.sales.actual
        entry["variable"] += record.variable_cost_total.actual
        entry["fixed"] += record.fixed_cost.actual
        entry["cm"] += record.contribution_margin.actual
        entry["op"] += record.operating_profit.actual

    return [
        calc_breakeven(
            entry["sales"],
            entry["variable"],
            entry["fixed"],
            contribution_margin=entry["cm"],
            operating_profit=entry["op"],
            org=org,
        )
        for org, entry in grouped.items()
        if entry["sales"] != 0
    ]


def chart_max_revenue(result: BreakevenResult) -> float:
    if result.can_break_even:
        return max(result.bep_sales * 2, result.sales * 1.5)
    return abs(result.sales) * 2


def calc_breakeven_chart(
    fixed_costs: float,
    variable_cost_ratio: float,
    max_revenue: float,
    points: int = BREAKEVEN_CHART_POINTS,
) -> list[BreakevenChartPoint]:
    """Evenly spaced revenue/cost points from 0 to ``max_revenue`` inclusive."""
    if points < 2:
        raise ValueError("points must be >= 2.")
    if max_revenue <= 0 or not math.isfinite(max_revenue) or not math.isfinite(fixed_costs):
        return []
    step = max_revenue / (points - 1)
    chart: list[BreakevenChartPoint] = []
    for index in range(points):
        revenue = step * index
        variable = revenue * variable_cost_ratio
        chart.append(
            BreakevenChartPoint(
                revenue=revenue,
                total_cost=fixed_costs + variable,
                fixed_cost=fixed_costs,
                variable_cost=variable,
            )
        )
    return chart
