import math

import pytest

from profitlens.models.enums import AnomalyType, TrendDirection
from profitlens.models.records import SalesRecord
from profitlens.services.anomaly import detect_anomalies, detect_enhanced_sales_anomalies, detect_sales_anomalies
from profitlens.services.cohort import calc_cohort_analysis
from profitlens.services.forecast import (
    forecast_sales,
    forecast_series,
    linear_regression,
    moving_average,
    prediction_half_width,
)


MONTHS = ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]


def test_iqr_fences_flag_spike() -> None:
    series = dict(zip(MONTHS, [100.0, 100.0, 100.0, 100.0, 100.0, 1000.0]))
    stats = detect_anomalies(series)
    assert (stats.q1, stats.q3, stats.iqr) == (100.0, 100.0, 0.0)
    assert len(stats.anomalies) == 1
    spike = stats.anomalies[0]
    assert spike.month == "2024-06"
    assert spike.type == AnomalyType.upper
    assert spike.deviation == pytest.approx(900.0)
    assert spike.severity == pytest.approx(750 / math.sqrt(112500))
    assert stats.anomaly_rate == pytest.approx(100 / 6)


def test_sales_anomalies_use_monthly_totals() -> None:
    sales = [SalesRecord(date=f"{month}-01", amount=50) for month in MONTHS for _ in range(2)]
    sales.append(SalesRecord(date="2024-03-15", amount=900))
    stats = detect_sales_anomalies(sales)
    assert [(point.month, point.value) for point in stats.anomalies] == [("2024-03", 1000.0)]


def test_short_series_has_no_stats() -> None:
    stats = detect_anomalies(dict(zip(MONTHS[:3], [1.0, 2.0, 300.0])))
    assert stats.anomalies == []
    assert stats.mean == 0.0
    with pytest.raises(ValueError):
        detect_anomalies({}, multiplier=-1)


def test_enhanced_anomaly_attributes_change_to_customers() -> None:
    sales = [SalesRecord(date=f"{month}-01", customer="A", customer_name="Alpha", amount=100) for month in MONTHS]
    sales.append(SalesRecord(date="2024-06-20", customer="B", customer_name="Beta", amount=900))
    result = detect_enhanced_sales_anomalies(sales)
    assert result.group_by == "customer"
    [detail] = result.details
    assert detail.previous_month == "2024-05"
    assert detail.month_change == pytest.approx(900.0)
    [contributor] = detail.contributors
    assert (contributor.key, contributor.name) == ("B", "Beta")
    assert contributor.share_of_change == pytest.approx(100.0)
    assert "Beta" in detail.cause


def test_enhanced_anomaly_rejects_bad_arguments() -> None:
    with pytest.raises(ValueError):
        detect_enhanced_sales_anomalies([], group_by="region")
    with pytest.raises(ValueError):
        detect_enhanced_sales_anomalies([], top_n=0)


def test_moving_average_waits_for_full_window() -> None:
    assert moving_average([3.0, 6.0, 9.0, 12.0], 3) == [None, None, 6.0, 9.0]
    with pytest.raises(ValueError):
        moving_average([1.0], 0)


def test_regression_on_exact_line() -> None:
    fit = linear_regression([100.0, 110.0, 120.0, 130.0])
    assert fit.slope == pytest.approx(10.0)
    assert fit.intercept == pytest.approx(100.0)
    assert fit.r2 == pytest.approx(1.0)


def test_forecast_points_and_widening_interval() -> None:
    values = [100.0, 120.0, 110.0, 140.0, 130.0, 160.0]
    forecast = forecast_series(MONTHS, values, periods=3)
    assert len(forecast.points) == 9
    history, future = forecast.points[:6], forecast.points[6:]
    assert all(point["forecast"] is None for point in history)
    assert [point["month"] for point in future] == ["2024-07", "2024-08", "2024-09"]
    widths = [point["upper_bound"] - point["lower_bound"] for point in future]
    assert widths[0] < widths[1] < widths[2]
    assert all(point["lower_bound"] <= point["forecast"] <= point["upper_bound"] for point in future)
    assert forecast.stats.trend == TrendDirection.up
    assert history[2]["moving_avg_3"] == pytest.approx(110.0)
    assert history[4]["moving_avg_6"] is None


def test_prediction_half_width_grows_with_distance() -> None:
    assert prediction_half_width(6, 6, 10.0) < prediction_half_width(9, 6, 10.0)
    assert prediction_half_width(3, 6, 0.0) == 0.0


def test_forecast_edge_cases() -> None:
    assert forecast_sales([]).points == []
    with pytest.raises(ValueError):
        forecast_series(MONTHS, [1.0] * 6, periods=-1)
    single = forecast_sales([SalesRecord(date="2024-01-01", amount=50)], periods=2)
    assert [point["forecast"] for point in single.points[1:]] == [50.0, 50.0]


def test_cohort_matrix_is_triangular_with_zero_cells() -> None:
    sales = [
        SalesRecord(date="2024-01-03", customer="A", amount=10),
        SalesRecord(date="2024-02-03", customer="A", amount=20),
        SalesRecord(date="2024-03-03", customer="A", amount=30),
        SalesRecord(date="2024-01-09", customer="B", amount=5),
        SalesRecord(date="2024-02-11", customer="C", amount=7),
        SalesRecord(date="2024-03-11", customer="C", amount=8),
    ]
    analysis = calc_cohort_analysis(sales)
    assert [(cohort.month, cohort.size) for cohort in analysis.cohorts] == [("2024-01", 2), ("2024-02", 1)]
    assert analysis.cohorts[0].first_month_revenue == pytest.approx(15.0)
    assert analysis.matrix() == [[100.0, 50.0, 50.0], [100.0, 100.0]]
    curve = [point["rate"] for point in analysis.avg_retention_by_period]
    assert curve == pytest.approx([100.0, 200 / 3, 50.0])


def test_cohort_empty_input() -> None:
    analysis = calc_cohort_analysis([SalesRecord(date="", customer="A", amount=1)])
    assert analysis.cells == []
    assert analysis.matrix() == []


def test_cohort_skips_unparseable_dates() -> None:
    sales = [
        SalesRecord(date="2024-1-5", customer="A", amount=10),
        SalesRecord(date="n/a", customer="B", amount=5),
        SalesRecord(date="N-A", customer="A", amount=5),
    ]
    analysis = calc_cohort_analysis(sales)
    assert [(cohort.month, cohort.size) for cohort in analysis.cohorts] == [("2024-01", 1)]
