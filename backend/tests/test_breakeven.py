import math

import pytest

from profitlens.models.records import OrgProfitRecord, PlanActualDiff, TeamContributionRecord
from profitlens.services.breakeven import (
    calc_breakeven,
    calc_breakeven_chart,
    calc_org_breakeven,
    calc_org_breakeven_from_team,
    calc_team_breakeven,
    chart_max_revenue,
    operating_leverage,
)


def _team(team: str, person: str, sales: float, variable: float, fixed: float) -> TeamContributionRecord:
    return TeamContributionRecord(
        team=team,
        person=person,
        sales=PlanActualDiff.of(0, sales),
        variable_cost_total=PlanActualDiff.of(0, variable),
        sga_fixed_labor=PlanActualDiff.of(0, fixed),
        contribution_margin=PlanActualDiff.of(0, sales - variable),
        operating_profit=PlanActualDiff.of(0, sales - variable - fixed),
    )


def test_breakeven_basic_figures() -> None:
    result = calc_breakeven(1000, 600, 200)
    assert result.variable_cost_ratio == pytest.approx(0.6)
    assert result.contribution_margin_ratio == pytest.approx(0.4)
    assert result.bep_sales == pytest.approx(500.0)
    assert result.safety_margin_rate == pytest.approx(50.0)
    assert result.operating_leverage == pytest.approx(2.0)
    assert result.can_break_even is True


def test_variable_cost_above_sales_never_breaks_even() -> None:
    result = calc_breakeven(1000, 1200, 1000)
    assert result.contribution_margin_ratio == pytest.approx(-0.2)
    assert result.bep_sales == math.inf
    assert result.safety_margin_rate == -math.inf
    assert result.can_break_even is False


def test_operating_leverage_sentinels() -> None:
    assert operating_leverage(0, 0) == 0.0
    assert operating_leverage(100, 0) == math.inf
    assert operating_leverage(100, 50) == 2.0


def test_zero_sales_is_rejected() -> None:
    with pytest.raises(ValueError):
        calc_breakeven(0, 10, 10)


def test_team_breakeven_uses_fixed_lines_and_skips_zero_sales() -> None:
    results = calc_team_breakeven([_team("서울", "Kim", 1000, 600, 200), _team("서울", "Lee", 0, 0, 50)])
    assert len(results) == 1
    assert results[0].person == "Kim"
    assert results[0].fixed_costs == 200
    assert results[0].bep_sales == pytest.approx(500.0)


def test_org_breakeven_from_team_sums_people_and_skips_subtotals() -> None:
    rows = [
        _team("서울", "Kim", 1000, 600, 200),
        _team("서울", "Lee", 1000, 400, 100),
        _team("서울", "", 2000, 1000, 300),
        _team("", "Park", 500, 100, 10),
    ]
    [seoul] = calc_org_breakeven_from_team(rows)
    assert seoul.org == "서울"
    assert seoul.person is None
    assert seoul.sales == 2000
    assert seoul.contribution_margin_ratio == pytest.approx(0.5)
    assert seoul.bep_sales == pytest.approx(600.0)


def test_org_breakeven_derives_costs_from_margins() -> None:
    record = OrgProfitRecord(
        team="부산",
        sales=PlanActualDiff.of(0, 1000),
        contribution_margin=PlanActualDiff.of(0, 300),
        operating_profit=PlanActualDiff.of(0, 100),
    )
    [result] = calc_org_breakeven([record, OrgProfitRecord(team="빈조직")])
    assert result.variable_costs == 700
    assert result.fixed_costs == 200
    assert result.bep_sales == pytest.approx(200 / 0.3)
    assert result.operating_leverage == pytest.approx(3.0)


def test_chart_points_cross_at_breakeven() -> None:
    chart = calc_breakeven_chart(200, 0.6, 1000, points=5)
    assert [point.revenue for point in chart] == [0.0, 250.0, 500.0, 750.0, 1000.0]
    assert chart[0].total_cost == 200
    assert chart[2].total_cost == pytest.approx(chart[2].revenue)
    assert all(point.fixed_cost == 200 for point in chart)


def test_chart_edge_cases() -> None:
    with pytest.raises(ValueError):
        calc_breakeven_chart(200, 0.6, 1000, points=1)
    assert calc_breakeven_chart(200, 0.6, math.inf) == []
    assert calc_breakeven_chart(200, 0.6, 0) == []
    assert len(calc_breakeven_chart(200, 0.6, 1000)) == 21


def test_chart_range_covers_breakeven() -> None:
    assert chart_max_revenue(calc_breakeven(1000, 600, 200)) == pytest.approx(1500.0)
    assert chart_max_revenue(calc_breakeven(1000, 600, 800)) == pytest.approx(4000.0)
    assert chart_max_revenue(calc_breakeven(1000, 1200, 1000)) == 2000.0
