import pytest

from profitlens.models.enums import PlanDataQuality
from profitlens.models.records import ItemCostRecord, PlanActualDiff, ProfitabilityRecord
from profitlens.services.plan_achievement import (
    UNASSIGNED,
    calc_margin_drift,
    calc_org_achievement,
    calc_org_gap_contribution,
    calc_plan_achievement_quadrants,
    calc_plan_vs_actual_summary,
    calc_top_contributors,
    check_plan_data_quality,
    generate_plan_insight,
    plan_quadrant,
)


def _row(team: str, customer: str, sales: tuple, gp: tuple, op: tuple = (0, 0)) -> ProfitabilityRecord:
    return ProfitabilityRecord(
        team=team,
        customer=customer,
        sales=PlanActualDiff.of(*sales),
        gross_profit=PlanActualDiff.of(*gp),
        operating_profit=PlanActualDiff.of(*op),
    )


def _records() -> list[ProfitabilityRecord]:
    return [
        _row("서울", "A", (100, 120), (30, 30), (10, 12)),
        _row("서울", "B", (200, 150), (60, 60), (20, 10)),
        _row("부산", "C", (100, 100), (20, 10), (5, 2)),
        _row("", "A", (0, 30), (0, 9)),
    ]


def test_summary_rates_and_drift() -> None:
    summary = calc_plan_vs_actual_summary(_records())
    assert (summary.sales_plan, summary.sales_actual) == (400, 400)
    assert summary.sales_achievement == pytest.approx(100.0)
    assert summary.sales_gap == 0
    assert summary.gp_achievement == pytest.approx(109 / 110 * 100)
    assert summary.planned_gp_rate == pytest.approx(27.5)
    assert summary.actual_gp_rate == pytest.approx(27.25)
    assert summary.margin_drift == pytest.approx(-0.25)
    assert summary.op_achievement == pytest.approx(24 / 35 * 100)


def test_org_achievement_sorted_by_actual_sales() -> None:
    orgs = calc_org_achievement(_records())
    assert [org.org for org in orgs] == ["서울", "부산", UNASSIGNED]
    assert orgs[0].sales_achievement == pytest.approx(90.0)
    assert orgs[1].sales_achievement == pytest.approx(100.0)
    assert orgs[2].sales_achievement == 0.0
    assert orgs[1].margin_drift == pytest.approx(-10.0)


def test_top_and_bottom_contributors() -> None:
    top, bottom = calc_top_contributors(_records())
    assert [(row.customer, row.sales_gap) for row in top] == [("A", 50)]
    assert [(row.customer, row.sales_gap) for row in bottom] == [("B", -50)]
    assert top[0].gp_margin == pytest.approx(26.0)
    with pytest.raises(ValueError):
        calc_top_contributors(_records(), top_n=0)


def test_margin_drift_splits_and_weights_by_sales() -> None:
    drift = calc_margin_drift(_records())
    assert [item.customer for item in drift.worsened] == ["C", "A"]
    assert [item.customer for item in drift.improved] == ["B"]
    assert drift.worsened[1].margin_drift == pytest.approx(-4.0)
    assert drift.worsened[1].drift_impact == pytest.approx(-6.0)
    assert drift.total_worsened_impact == pytest.approx(-16.0)
    assert drift.total_improved_impact == pytest.approx(15.0)
    assert drift.net_impact == pytest.approx(-1.0)
    assert calc_margin_drift(_records(), top_n=1).worsened[0].customer == "C"


def test_plan_data_quality_levels() -> None:
    good = check_plan_data_quality(_records())
    assert (good.records_with_sales_plan, good.level) == (3, PlanDataQuality.good)
    assert good.has_meaningful_plan is True

    sparse = [_row("서울", "A", (100, 100), (0, 0))] + [_row("서울", "A", (0, 100), (0, 0))] * 3
    poor = check_plan_data_quality(sparse)
    assert poor.sales_plan_coverage == pytest.approx(25.0)
    assert poor.level == PlanDataQuality.poor
    assert poor.has_meaningful_plan is False

    assert check_plan_data_quality([_row("서울", "A", (0, 5), (0, 0))]).level == PlanDataQuality.none


def test_gap_contribution() -> None:
    rows = calc_org_gap_contribution(_records())
    assert [(row.org, row.sales_gap) for row in rows] == [(UNASSIGNED, 30), ("부산", 0), ("서울", -30)]
    busan = rows[1]
    assert busan.gp_gap == -10
    assert busan.gp_gap_share == pytest.approx(-1000.0)
    assert busan.sales_gap_share == 0.0


def test_plan_insight_mentions_weakest_org() -> None:
    records = _records()
    insight = generate_plan_insight(
        calc_plan_vs_actual_summary(records),
        calc_org_achievement(records),
        check_plan_data_quality(records),
    )
    assert "매출은 100% 달성했으나 매출총이익이 99%에 그쳐" in insight
    assert "1개 조직 달성, 1개 조직 미달" in insight
    assert '"서울"(90%)' in insight


def test_plan_insight_without_plan_data() -> None:
    records = [_row("서울", "A", (0, 5), (0, 1))]
    insight = generate_plan_insight(
        calc_plan_vs_actual_summary(records),
        calc_org_achievement(records),
        check_plan_data_quality(records),
    )
    assert insight.startswith("계획 데이터가 전혀 입력되어 있지 않아")


@pytest.mark.parametrize(
    ("sales", "profit", "quadrant"),
    [(100, 100, 1), (99.9, 100, 2), (99.9, 99.9, 3), (100, 99.9, 4)],
)
def test_plan_quadrant_boundaries(sales, profit, quadrant) -> None:
    assert plan_quadrant(sales, profit) == quadrant


def test_quadrants_over_contribution_margin() -> None:
    def item(product: str, sales: tuple, material: tuple) -> ItemCostRecord:
        return ItemCostRecord(
            team="서울",
            product=product,
            sales=PlanActualDiff.of(*sales),
            costs={"원재료비": PlanActualDiff.of(*material)},
        )

    rows = calc_plan_achievement_quadrants(
        [
            item("P1", (100, 120), (50, 50)),
            item("P2", (100, 80), (50, 20)),
            item("P3", (100, 80), (50, 50)),
            item("P4", (100, 110), (50, 70)),
            item("NO_PLAN", (0, 500), (0, 10)),
            item("NO_MARGIN", (100, 100), (100, 50)),
        ]
    )
    assert [(row.product, row.quadrant, row.label) for row in rows] == [
        ("P1", 1, "스타"),
        ("P4", 4, "주의"),
        ("P2", 2, "효율"),
        ("P3", 3, "부진"),
    ]
    assert rows[0].profit_achievement == pytest.approx(140.0)
