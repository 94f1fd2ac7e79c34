import math

import pytest

from profitlens.models.enums import CycleGrade
from profitlens.models.records import AgingRecord, PlanActualDiff, SalesRecord, TeamContributionRecord
from profitlens.services.working_capital import (
    calc_ccc,
    calc_ccc_analysis,
    calc_ccc_by_org,
    calc_dso,
    calc_dso_by_org,
    calc_dso_trend,
    calc_overall_dso,
    classify_ccc,
    classify_dso,
    dpo_from_ratio,
    estimate_dpo,
    estimate_dpo_by_org,
)


def _aging() -> list[AgingRecord]:
    return [
        AgingRecord(org="서울", customer="A", total=300),
        AgingRecord(org="부산", customer="B", total=600),
        AgingRecord(org="대구", customer="C", total=100),
    ]


def _sales() -> list[SalesRecord]:
    return [
        SalesRecord(date="2024-01-10", org="서울", amount=300),
        SalesRecord(date="2024-02-10", org="서울", amount=300),
        SalesRecord(date="2024-01-10", org="부산", amount=200),
        SalesRecord(date="2024-01-20", org="광주", amount=100),
    ]


def _team_contrib() -> list[TeamContributionRecord]:
    return [
        TeamContributionRecord(
            team="서울", person="Kim", sales=PlanActualDiff.of(0, 1000), cost_of_sales=PlanActualDiff.of(0, 850)
        ),
        TeamContributionRecord(
            team="부산", person="Lee", sales=PlanActualDiff.of(0, 1000), cost_of_sales=PlanActualDiff.of(0, 650)
        ),
    ]


def test_dso_rounding_and_sentinels() -> None:
    assert calc_dso(100, 100) == 30.0
    assert calc_dso(1, 4) == 8.0
    assert calc_dso(100, 0) == math.inf
    assert calc_dso(0, 0) == 0.0


@pytest.mark.parametrize(
    ("dso", "grade"),
    [
        (10, CycleGrade.excellent),
        (30, CycleGrade.good),
        (45, CycleGrade.good),
        (60, CycleGrade.fair),
        (61, CycleGrade.poor),
        (math.inf, CycleGrade.poor),
    ],
)
def test_dso_grades(dso, grade) -> None:
    assert classify_dso(dso) == grade


def test_dso_by_org_uses_active_months_and_drops_infinite() -> None:
    metrics = calc_dso_by_org(_aging(), _sales())
    assert [(metric.org, metric.dso) for metric in metrics] == [("광주", 0.0), ("서울", 30.0), ("부산", 90.0)]
    assert metrics[1].avg_monthly_sales == 300
    assert metrics[2].classification == CycleGrade.poor


def test_overall_dso() -> None:
    assert calc_overall_dso(_aging(), _sales()) == 67.0


def test_dso_trend_is_synthetic() -> None:
    points = calc_dso_trend(_aging(), _sales())
    assert [(point.month, point.dso) for point in points] == [("2024-01", 67.0), ("2024-02", 44.0)]
    assert all(point.is_synthetic for point in points)
    assert calc_dso_trend([], _sales()) == []
    assert calc_dso_trend(_aging(), []) == []


@pytest.mark.parametrize(
    ("cost", "sales", "days"),
    [(850, 1000, 45.0), (800, 1000, 45.0), (650, 1000, 35.0), (500, 1000, 30.0), (0, 1000, 0.0), (10, 0, 30.0)],
)
def test_dpo_tiers(cost, sales, days) -> None:
    assert dpo_from_ratio(cost, sales) == days


def test_dpo_estimates() -> None:
    assert estimate_dpo(_team_contrib()) == 35.0
    assert estimate_dpo([]) == 0.0
    assert estimate_dpo_by_org(_team_contrib()) == {"서울": 45.0, "부산": 35.0}


def test_ccc_classification() -> None:
    assert calc_ccc(40, 45) == -5
    assert calc_ccc(40, 10, dio=5) == 35
    assert classify_ccc(-1) == CycleGrade.excellent
    assert classify_ccc(30) == CycleGrade.good
    assert classify_ccc(60) == CycleGrade.fair
    assert classify_ccc(61) == CycleGrade.poor


def test_ccc_by_org_falls_back_to_overall_dpo() -> None:
    metrics = calc_ccc_by_org(calc_dso_by_org(_aging(), _sales()), _team_contrib())
    assert [(metric.org, metric.dpo, metric.ccc) for metric in metrics] == [
        ("광주", 35.0, -35.0),
        ("서울", 45.0, -15.0),
        ("부산", 35.0, 55.0),
    ]
    assert metrics[2].classification == CycleGrade.fair
    assert "DPO 35일" in metrics[2].recommendation

    analysis = calc_ccc_analysis(metrics)
    assert (analysis.avg_ccc, analysis.avg_dso, analysis.avg_dpo) == (2.0, 40.0, 38.0)
    assert calc_ccc_analysis([]).metrics == []
