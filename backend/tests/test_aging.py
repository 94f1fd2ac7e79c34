import pytest

from profitlens.models.enums import CreditStatus, RiskLevel
from profitlens.models.records import AgingRecord
from profitlens.services.aging import (
    assess_aging_risk,
    calc_aging_by_org,
    calc_aging_by_person,
    calc_aging_summary,
    calc_credit_summary_by_org,
    calc_credit_utilization,
    calc_person_receivable_health,
    classify_aging_risk,
    classify_credit,
    efficiency_grade,
)


def _records() -> list[AgingRecord]:
    return [
        AgingRecord.from_buckets([10, 10, 10, 30, 30, 40, 0], org="서울", person="Kim", customer="X", credit_limit=100),
        AgingRecord.from_buckets([800, 50, 0, 0, 0, 0, 0], org="서울", person="Lee", customer="Y", credit_limit=1000),
        AgingRecord.from_buckets([60, 20, 20, 0, 0, 0, 0], org="부산", person="Lee", customer="Z"),
        AgingRecord(org="부산", person="Park", customer="EMPTY"),
    ]


def test_bucket_sum_matches_total() -> None:
    record = AgingRecord.from_buckets([10, 10, 10, 30, 30, 40, 0])
    assert record.total == 130
    assert sum(record.buckets) == record.total
    assert record.long_overdue == 110
    with pytest.raises(ValueError):
        AgingRecord.from_buckets([1, 2, 3])


def test_summary_and_grouping() -> None:
    summary = calc_aging_summary(_records())
    assert summary.month1 == 870
    assert summary.total == 1080
    assert sum(
        (summary.month1, summary.month2, summary.month3, summary.month4, summary.month5, summary.month6, summary.overdue)
    ) == summary.total
    assert [(group.key, group.summary.total) for group in calc_aging_by_org(_records())] == [("서울", 980), ("부산", 100)]
    assert [group.key for group in calc_aging_by_person(_records())] == ["Lee", "Kim", "Park"]


@pytest.mark.parametrize(
    ("buckets", "risk"),
    [
        ([10, 10, 10, 30, 30, 40, 0], RiskLevel.high),
        ([70, 0, 30, 0, 0, 0, 0], RiskLevel.medium),
        ([90, 0, 10, 0, 0, 0, 0], RiskLevel.low),
        ([1_000_000_000, 0, 0, 0, 0, 0, 200_000_000], RiskLevel.high),
        ([1_000_000_000, 0, 60_000_000, 0, 0, 0, 0], RiskLevel.medium),
    ],
)
def test_aging_risk_rules(buckets, risk) -> None:
    assert classify_aging_risk(AgingRecord.from_buckets(buckets)) == risk


def test_risk_assessment_skips_empty_and_orders_by_risk() -> None:
    assessments = assess_aging_risk(_records())
    assert [item.customer for item in assessments] == ["X", "Y", "Z"]
    assert assessments[0].risk == RiskLevel.high
    assert assessments[0].overdue_ratio == pytest.approx(110 / 130 * 100)
    assert [item.risk for item in assessments[1:]] == [RiskLevel.low, RiskLevel.low]


@pytest.mark.parametrize(
    ("utilization", "status"),
    [(50.0, CreditStatus.normal), (80.0, CreditStatus.warning), (99.9, CreditStatus.warning), (100.0, CreditStatus.danger)],
)
def test_credit_status_thresholds(utilization, status) -> None:
    assert classify_credit(utilization) == status


def test_credit_over_limit_is_danger() -> None:
    credit = calc_credit_utilization(_records())
    assert [item.customer for item in credit] == ["X", "Y"]
    assert credit[0].utilization == pytest.approx(130.0)
    assert credit[0].status == CreditStatus.danger
    assert credit[1].status == CreditStatus.warning


def test_credit_limit_overrides_and_org_summary() -> None:
    limits = {"Z": 200.0}
    credit = calc_credit_utilization(_records(), limits)
    assert {item.customer: item.status for item in credit} == {
        "X": CreditStatus.danger,
        "Y": CreditStatus.warning,
        "Z": CreditStatus.normal,
    }
    summary = calc_credit_summary_by_org(_records(), limits)
    assert [item.org for item in summary] == ["서울", "부산"]
    seoul = summary[0]
    assert (seoul.total_limit, seoul.total_used) == (1100, 980)
    assert seoul.utilization_rate == pytest.approx(980 / 1100 * 100)
    assert (seoul.danger_count, seoul.warning_count) == (1, 1)


@pytest.mark.parametrize(("pct", "grade"), [(80.0, "A"), (60.0, "B"), (40.0, "C"), (39.9, "D")])
def test_efficiency_grades(pct, grade) -> None:
    assert efficiency_grade(pct) == grade


def test_person_receivable_health() -> None:
    rows = [
        AgingRecord.from_buckets([80, 10, 5, 5, 0, 0, 0], person="Kim", customer="A"),
        AgingRecord.from_buckets([50, 0, 0, 0, 0, 0, 50], person="Kim", customer="B", customer_name="Beta"),
    ]
    [kim] = calc_person_receivable_health(rows)
    assert kim.customer_count == 2
    assert (kim.normal, kim.caution, kim.overdue) == (140, 10, 50)
    assert kim.normal_pct == pytest.approx(70.0)
    assert kim.efficiency_grade == "B"
    assert kim.hhi == pytest.approx(0.5)
    assert kim.top_customer == "A"
    assert kim.top_customer_share == pytest.approx(50.0)
    assert kim.high_risk_count == 0


def test_person_receivable_concentration_skips_credit_balances() -> None:
    rows = [
        AgingRecord.from_buckets([100, 0, 0, 0, 0, 0, 0], person="Kim", customer="A"),
        AgingRecord.from_buckets([-50, 0, 0, 0, 0, 0, 0], person="Kim", customer="B"),
    ]
    [kim] = calc_person_receivable_health(rows)
    assert kim.hhi == pytest.approx(1.0)
    assert kim.top_customer_share == pytest.approx(100.0)
