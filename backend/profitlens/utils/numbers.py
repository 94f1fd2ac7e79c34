import math


RATE_DIGITS = 6


def safe_ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def safe_pct(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return (numerator / denominator) * 100


def rate(value: float, digits: int = RATE_DIGITS) -> float:
    if not math.isfinite(value):
        return value
    return round(value, digits)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> float:
    """Round to the nearest integer with ties going up; non-finite values pass through."""
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))
