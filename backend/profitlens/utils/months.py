from __future__ import annotations

from datetime import date, timedelta
import re


EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_MIN = 40000
EXCEL_SERIAL_MAX = 100000

_COMPACT_DATE = re.compile(r"^(\d{4})(\d{2})\d{2}$")
_SEPARATED_DATE = re.compile(r"^(\d{4})[-/](\d{1,2})(?!\d)")


def _month_key(year: str, month: str) -> str:
    mon = int(month)
    if not 1 <= mon <= 12:
        return ""
    return f"{year}-{mon:02d}"


def extract_month(value: str | int | float | date | None) -> str:
    """Normalise a spreadsheet date cell to a ``YYYY-MM`` key.

    Accepts ``YYYY-MM[-DD]``, ``YYYY/MM[/DD]``, ``YYYYMMDD``, spreadsheet serial
    numbers and ``date`` objects. Anything else, including an out-of-range
    month, yields an empty string.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, date):
        return f"{value.year:04d}-{value.month:02d}"
    text = str(value).strip()
    match = _SEPARATED_DATE.match(text) or _COMPACT_DATE.match(text)
    if match:
        return _month_key(*match.groups())
    if "-" in text or "/" in text:
        return ""
    try:
        serial = float(text)
    except ValueError:
        return ""
    if EXCEL_SERIAL_MIN < serial < EXCEL_SERIAL_MAX:
        converted = EXCEL_EPOCH + timedelta(days=int(serial))
        return f"{converted.year:04d}-{converted.month:02d}"
    return ""


def _split(month: str) -> tuple[int, int]:
    year, mon = month.split("-")[:2]
    return int(year), int(mon)


def month_index(month: str) -> int:
    year, mon = _split(month)
    return year * 12 + (mon - 1)


def months_between(start: str, end: str) -> int:
    return month_index(end) - month_index(start)


def next_month(month: str, step: int = 1) -> str:
    index = month_index(month) + step
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def month_range(start: str, end: str) -> list[str]:
    span = months_between(start, end)
    return [next_month(start, offset) for offset in range(span + 1)]
