from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import math
from typing import Any

from profitlens.core.constants import FORECAST_Z_95, MOVING_AVERAGE_WINDOWS, TREND_THRESHOLD_RATIO
from profitlens.models.enums import TrendDirection
from profitlens.models.records import SalesRecord
from profitlens.services.aggregation import monthly_totals
from profitlens.utils.months import next_month


@dataclass(frozen=True)
class RegressionFit:
    slope: float
    intercept: float
    r2: float


@dataclass(frozen=True)
class ForecastStats:
    slope: float = 0.0
    intercept: float = 0.0
    r2: float = 0.0
    residual_std: float = 0.0
    trend: TrendDirection = TrendDirection.flat
    avg_growth_rate: float = 0.0


@dataclass(frozen=True)
class SalesForecast:
    points: list[dict[str, Any]] = field(default_factory=list)
    stats: ForecastStats = field(default_factory=ForecastStats)
    method: str = "moving_average + linear_regression"
    confidence_level: str = "95% prediction interval"


def moving_average(values: list[float], window: int) -> list[float | None]:
    """Trailing simple moving average; ``None`` until the window is full."""
    if window <= 0:
        raise ValueError("window must be > 0.")
    averages: list[float | None] = []
    running = 0.0
    for index, value in enumerate(values):
        running += value
        if index >= window:
            running -= values[index - window]
        averages.append(running / window if index >= window - 1 else None)
    return averages


def linear_regression(series: list[float]) -> RegressionFit:
    n = len(series)
    if n == 0:
        return RegressionFit(0.0, 0.0, 0.0)
    if n == 1:
        return RegressionFit(0.0, float(series[0]), 1.0)
    mean_x = (n - 1) / 2
    mean_y = sum(series) / n
    sxx = sum((index - mean_x) ** 2 for index in range(n))
    sxy = sum((index - mean_x) * (value - mean_y) for index, value in enumerate(series))
    if sxx == 0:
        return RegressionFit(0.0, mean_y, 0.0)
    slope = sxy / sxx
    intercept = mean_y - slope * mean_x

    ss_tot = sum((value - mean_y) ** 2 for value in series)
    ss_res = sum((value - (slope * index + intercept)) ** 2 for index, value in enumerate(series))
    r2 = 1.0 if ss_tot == 0 else 1 - ss_res / ss_tot
    return RegressionFit(slope, intercept, r2)


def residual_std(series: list[float], fit: RegressionFit) -> float:
    """Residual standard deviation with ``n - 2`` degrees of freedom."""
    n = len(series)
    if n <= 2:
        return 0.0
    ss_res = sum((value - (fit.slope * index + fit.intercept)) ** 2 for index, value in enumerate(series))
    return math.sqrt(ss_res / (n - 2))


def classify_trend(slope: float, intercept: float) -> TrendDirection:
    threshold = abs(intercept) * TREND_THRESHOLD_RATIO
    if slope > threshold:
        return TrendDirection.up
    if slope < -threshold:
        return TrendDirection.down
    return TrendDirection.flat


def avg_growth_rate(series: list[float]) -> float:
    rates = [
        (current - previous) / abs(previous) * 100
        for previous, current in zip(series, series[1:])
        if previous != 0
    ]
    return sum(rates) / len(rates) if rates else 0.0


def prediction_half_width(x: float, n: int, sd: float, z: float = FORECAST_Z_95) -> float:
    """Half-width of the OLS prediction interval at index ``x`` for a fit over ``0..n-1``."""
    if n <= 0:
        return 0.0
    mean_x = (n - 1) / 2
    sxx = sum((index - mean_x) ** 2 for index in range(n))
    if sxx == 0:
        return z * sd
    return z * sd * math.sqrt(1 + 1 / n + (x - mean_x) ** 2 / sxx)


def forecast_series(months: list[str], values: list[float], periods: int = 6) -> SalesForecast:
    if periods < 0:
        raise ValueError("periods must be >= 0.")
    if not values:
        return SalesForecast()
    if len(months) != len(values):
        raise ValueError("months and values must have the same length.")

    fit = linear_regression(values)
    sd = residual_std(values, fit)
    averages = {window: moving_average(values, window) for window in MOVING_AVERAGE_WINDOWS}

    points: list[dict[str, Any]] = []
    for index, (month, value) in enumerate(zip(months, values)):
        point: dict[str, Any] = {
            "month": month,
            "actual": value,
            "fitted": fit.slope * index + fit.intercept,
            "forecast": None,
            "lower_bound": None,
            "upper_bound": None,
        }
        for window, series in averages.items():
            point[f"moving_avg_{window}"] = series[index]
        points.append(point)

    n = len(values)
    month = months[-1]
    for step in range(periods):
        x = n + step
        month = next_month(month)
        value = fit.slope * x + fit.intercept
        half_width = prediction_half_width(x, n, sd)
        point = {
            "month": month,
            "actual": None,
            "fitted": None,
            "forecast": value,
            "lower_bound": value - half_width,
            "upper_bound": value + half_width,
        }
        for window in MOVING_AVERAGE_WINDOWS:
            point[f"moving_avg_{window}"] = None
        points.append(point)

    return SalesForecast(
        points=points,
        stats=ForecastStats(
            slope=fit.slope,
            intercept=fit.intercept,
            r2=fit.r2,
            residual_std=sd,
            trend=classify_trend(fit.slope, fit.intercept),
            avg_growth_rate=avg_growth_rate(values),
        ),
    )


def forecast_sales(sales: Iterable[SalesRecord], periods: int = 6) -> SalesForecast:
    totals = monthly_totals(sales)
    return forecast_series(list(totals), list(totals.values()), periods)
