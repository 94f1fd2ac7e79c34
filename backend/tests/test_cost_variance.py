import pytest

from profitlens.models.enums import CostDirection, ParetoGrade, WaterfallBarType
from profitlens.models.records import ItemCostRecord, PlanActualDiff
from profitlens.services.cost_variance import (
    calc_contribution_waterfall,
    calc_cost_bucket_breakdown,
    calc_cost_category_variance,
    calc_cost_driver_analysis,
    calc_item_cost_summary,
    calc_product_contribution_ranking,
    pareto_grade,
)


def _pad(plan: float, actual: float) -> PlanActualDiff:
    return PlanActualDiff.of(plan, actual)


def _items() -> list[ItemCostRecord]:
    return [
        ItemCostRecord(
            team="서울",
            product="P1",
            sales=_pad(1000, 1200),
            cost_of_sales=_pad(600, 680),
            gross_profit=_pad(400, 520),
            costs={
                "원재료비": _pad(400, 500),
                "운반비": _pad(100, 80),
                "감가상각비": _pad(100, 100),
                "제조변동비소계": _pad(500, 580),
            },
        ),
        ItemCostRecord(
            team="부산",
            product="P2",
            sales=_pad(300, 300),
            cost_of_sales=_pad(250, 280),
            gross_profit=_pad(50, 20),
            costs={"원재료비": _pad(250, 280)},
        ),
    ]


def test_item_cost_summary() -> None:
    summary = calc_item_cost_summary(_items())
    assert summary.product_count == 2
    assert summary.total_sales == 1500
    assert summary.total_cost == 960
    assert summary.avg_gross_margin == pytest.approx(36.0)
    assert summary.avg_contribution_rate == pytest.approx(640 / 1500 * 100)
    assert summary.top_cost_category == "원재료비"
    assert summary.top_cost_ratio == pytest.approx(81.25)


def test_variance_excludes_subtotals_from_totals() -> None:
    result = calc_cost_category_variance(_items())
    assert result.total_plan_cost == 850
    assert result.total_actual_cost == 960
    assert result.total_variance == 110
    assert result.over_budget_count == 1

    top, runner_up = result.categories[:2]
    assert top.category == "원재료비"
    assert top.variance == 130
    assert top.variance_pct == pytest.approx(20.0)
    assert top.contribution_to_total == pytest.approx(130 / 110 * 100)
    assert runner_up.category == "제조변동비소계"
    assert runner_up.is_subtotal is True
    assert calc_cost_category_variance([]).categories == []


def test_waterfall_chains_bars() -> None:
    bars = calc_contribution_waterfall(_items())
    assert [bar.name for bar in bars] == ["매출액", "변동비", "공헌이익", "고정비", "매출총이익"]
    assert [bar.type for bar in bars] == [
        WaterfallBarType.start,
        WaterfallBarType.decrease,
        WaterfallBarType.subtotal,
        WaterfallBarType.decrease,
        WaterfallBarType.subtotal,
    ]
    assert [(bar.base, bar.value) for bar in bars] == [
        (0.0, 1500.0),
        (640.0, 860.0),
        (0.0, 640.0),
        (540.0, 100.0),
        (0.0, 540.0),
    ]


def test_waterfall_negative_contribution_sits_below_axis() -> None:
    item = ItemCostRecord(product="X", sales=_pad(0, 100), costs={"원재료비": _pad(0, 150)})
    bars = calc_contribution_waterfall([item])
    assert (bars[1].base, bars[1].value) == (-50.0, 150.0)
    assert (bars[2].base, bars[2].value) == (-50.0, 50.0)


def test_cost_drivers_rank_by_impact() -> None:
    drivers = calc_cost_driver_analysis(_items())
    top = drivers[0]
    assert top.category == "원재료비"
    assert top.direction == CostDirection.increase
    assert top.cost_share == pytest.approx(81.25)
    assert top.impact_score == pytest.approx(16.25)
    by_name = {driver.category: driver for driver in drivers}
    assert by_name["운반비"].direction == CostDirection.decrease
    assert by_name["감가상각비"].direction == CostDirection.neutral
    assert by_name["견본비"].direction == CostDirection.neutral


def test_cost_buckets() -> None:
    buckets = calc_cost_bucket_breakdown(_items())
    assert len(buckets) == 7
    assert buckets[0].name == "재료비"
    assert buckets[0].actual == 780
    assert buckets[0].ratio == pytest.approx(81.25)
    assert sum(bucket.ratio for bucket in buckets) == pytest.approx(100.0)


@pytest.mark.parametrize(
    ("share", "grade"),
    [(50.0, ParetoGrade.a), (80.0, ParetoGrade.a), (80.1, ParetoGrade.b), (95.0, ParetoGrade.b), (99.0, ParetoGrade.c)],
)
def test_pareto_grade_boundaries(share, grade) -> None:
    assert pareto_grade(share) == grade


def test_contribution_ranking_grades_and_penalty() -> None:
    def item(product: str, sales: float, variable: float) -> ItemCostRecord:
        return ItemCostRecord(team="서울", product=product, sales=_pad(0, sales), costs={"원재료비": _pad(0, variable)})

    ranking = calc_product_contribution_ranking(
        [
            item("A", 100, 30),
            item("B", 40, 20),
            item("C", 100, 90),
            item("LOSS", 50, 80),
        ]
    )
    assert [row.product for row in ranking] == ["A", "B", "C", "LOSS"]
    assert [row.rank for row in ranking] == [1, 2, 3, 4]
    assert [row.grade for row in ranking] == [ParetoGrade.a, ParetoGrade.b, ParetoGrade.c, ParetoGrade.c]
    assert ranking[0].cumulative_share == pytest.approx(70.0)
    assert ranking[-1].contribution_margin == -30
    assert ranking[-1].cumulative_share == 100.0


def test_low_margin_product_drops_one_grade() -> None:
    ranking = calc_product_contribution_ranking(
        [ItemCostRecord(product="THIN", sales=_pad(0, 1000), costs={"원재료비": _pad(0, 900)})]
        + [ItemCostRecord(product="FAT", sales=_pad(0, 10), costs={"원재료비": _pad(0, 0)})]
    )
    thin = ranking[0]
    assert thin.product == "THIN"
    assert thin.cumulative_share == pytest.approx(100 / 110 * 100)
    assert thin.grade == ParetoGrade.c


@pytest.mark.parametrize(("variable", "grade"), [(85.0, ParetoGrade.a), (85.1, ParetoGrade.b)])
def test_contribution_penalty_starts_below_fifteen_percent(variable, grade) -> None:
    ranking = calc_product_contribution_ranking(
        [
            ItemCostRecord(product="EDGE", sales=_pad(0, 100), costs={"원재료비": _pad(0, variable)}),
            ItemCostRecord(product="REST", sales=_pad(0, 20), costs={"원재료비": _pad(0, 15)}),
        ]
    )
    edge = ranking[0]
    assert edge.product == "EDGE"
    assert edge.cumulative_share < 80.0
    assert edge.grade == grade
