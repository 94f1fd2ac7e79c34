import pytest

from profitlens.models.enums import ChurnRisk, RfmSegment
from profitlens.models.records import OrgProfitRecord, PlanActualDiff, SalesRecord
from profitlens.services.churn import classify_churn, predict_churn, score_churn
from profitlens.services.clv import calc_clv, detect_years_in_data, summarize_clv
from profitlens.services.rfm import (
    calc_rfm_scores,
    classify_rfm_segment,
    quintile_score,
    summarize_rfm_segments,
)


def _sale(month: str, customer: str, amount: float, name: str = "") -> SalesRecord:
    return SalesRecord(date=f"{month}-15", customer=customer, customer_name=name, amount=amount)


@pytest.mark.parametrize(
    ("count", "expected"),
    [(1, [3]), (2, [1, 5]), (3, [1, 3, 5]), (5, [1, 2, 3, 4, 5])],
)
def test_quintile_scores_spread_small_samples(count, expected) -> None:
    assert [quintile_score(position, count) for position in range(count)] == expected


def test_rfm_top_monetary_customer_scores_five() -> None:
    sales = [_sale("2024-06", f"C{index}", amount) for index, amount in enumerate([10, 20, 30, 40, 100], start=1)]
    scores = {score.customer: score for score in calc_rfm_scores(sales)}
    assert scores["C5"].m_score == 5
    assert scores["C1"].m_score == 1
    assert all(1 <= score.r_score <= 5 for score in scores.values())


def test_rfm_recency_is_inverted() -> None:
    sales = [_sale("2024-01", "OLD", 10), _sale("2024-06", "NEW", 10)]
    scores = {score.customer: score for score in calc_rfm_scores(sales)}
    assert scores["NEW"].recency == 0
    assert scores["OLD"].recency == 5
    assert scores["NEW"].r_score == 5
    assert scores["OLD"].r_score == 1


@pytest.mark.parametrize(
    ("r", "f", "m", "segment"),
    [
        (5, 5, 5, RfmSegment.vip),
        (3, 3, 3, RfmSegment.loyal),
        (5, 1, 2, RfmSegment.potential),
        (1, 4, 2, RfmSegment.at_risk),
        (1, 1, 4, RfmSegment.dormant),
        (1, 1, 1, RfmSegment.lost),
        (3, 1, 1, RfmSegment.potential),
    ],
)
def test_rfm_segment_rules(r, f, m, segment) -> None:
    assert classify_rfm_segment(r, f, m) == segment


def test_rfm_segment_summary_shares_sum_to_hundred() -> None:
    sales = [_sale("2024-06", f"C{index}", amount) for index, amount in enumerate([10, 20, 30, 40, 100], start=1)]
    summaries = summarize_rfm_segments(calc_rfm_scores(sales))
    assert sum(item.share for item in summaries) == pytest.approx(100.0)
    assert sum(item.count for item in summaries) == 5
    assert summarize_rfm_segments([]) == []
    assert calc_rfm_scores([]) == []


def test_churn_single_old_transaction_is_critical() -> None:
    sales = [_sale("2023-01", "GONE", 500), _sale("2024-02", "ACTIVE", 100), _sale("2024-02", "ACTIVE", 100)]
    summary = predict_churn(sales)
    by_customer = {item.customer: item for item in summary.customers}
    gone = by_customer["GONE"]
    assert gone.months_since_last_purchase == 13
    assert gone.churn_score == 70
    assert gone.risk_level == ChurnRisk.critical
    assert summary.at_risk_customers == 1
    assert summary.at_risk_revenue == 500
    assert summary.customers[0].customer == "GONE"


def test_churn_decline_signal_and_cap() -> None:
    monthly = {"2024-01": 100.0, "2024-02": 100.0, "2024-03": 10.0, "2024-04": 10.0}
    score, signals = score_churn(0, 4, monthly)
    assert score == 30
    assert signals == ["거래 금액 90% 감소"]
    capped, _ = score_churn(24, 1, monthly)
    assert capped == 100


@pytest.mark.parametrize(
    ("score", "level"),
    [(0, ChurnRisk.low), (20, ChurnRisk.medium), (40, ChurnRisk.high), (60, ChurnRisk.critical)],
)
def test_churn_tiers(score, level) -> None:
    assert classify_churn(score) == level


def test_churn_without_dated_rows_is_empty() -> None:
    summary = predict_churn([SalesRecord(date="n/a", customer="C1", amount=10)])
    assert summary.total_customers == 0
    assert summary.customers == []


def test_clv_excludes_single_transaction_customers() -> None:
    sales = [_sale("2024-01", "A", 100) for _ in range(4)]
    sales += [_sale("2024-01", "B", 50), _sale("2024-02", "B", 50), _sale("2024-03", "C", 50)]
    results = calc_clv(sales, years_in_data=1.0)
    assert [item.customer for item in results] == ["A", "B"]

    a, b = results
    assert a.avg_profit_margin == pytest.approx(0.10)
    assert a.estimated_lifespan == pytest.approx(3.0)
    assert a.clv == pytest.approx(120.0)
    retention = (2 / (7 / 3)) * 0.8 + 0.2
    assert b.clv == pytest.approx(100 * 0.10 * 3.0 * retention)

    summary = summarize_clv(results)
    assert summary.customer_count == 2
    assert summary.top_customer_clv == pytest.approx(120.0)
    assert summary.total_clv == pytest.approx(a.clv + b.clv)


def test_clv_margin_from_org_profit_and_year_detection() -> None:
    sales = [_sale("2024-01", "A", 100), _sale("2024-06", "A", 100)]
    profit = [OrgProfitRecord(team="서울", sales=PlanActualDiff.of(0, 100), gross_profit=PlanActualDiff.of(0, 30))]
    [result] = calc_clv(sales, profit)
    assert result.avg_profit_margin == pytest.approx(0.30)
    assert detect_years_in_data(sales) == pytest.approx(0.5)
    with pytest.raises(ValueError):
        calc_clv(sales, years_in_data=0)


@pytest.mark.parametrize("bad_date", ["n/a", "N-A", "2024-13-01"])
def test_unparseable_dates_are_dropped_not_fatal(bad_date) -> None:
    sales = [
        SalesRecord(date="2024-06-15", customer="C1", amount=100),
        SalesRecord(date=bad_date, customer="C2", amount=50),
    ]
    scores = {score.customer: score for score in calc_rfm_scores(sales)}
    assert scores["C1"].recency == 0

    churn = predict_churn(sales)
    assert [item.customer for item in churn.customers] == ["C1"]


def test_short_month_dates_are_padded() -> None:
    sales = [_sale("2024-05", "C1", 100), SalesRecord(date="2024-6-1", customer="C1", amount=80)]
    [score] = calc_rfm_scores(sales)
    assert score.recency == 0
    assert score.frequency == 2
