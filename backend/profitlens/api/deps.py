from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from fastapi import HTTPException, status

from profitlens.core.config import Settings, get_settings
from profitlens.models.records import SalesRecord
from profitlens.services.filters import filter_by_date_range, filter_by_org
from profitlens.utils.months import extract_month


def get_app_settings() -> Settings:
    return get_settings()


def to_records(rows: Iterable[Any]) -> list[Any]:
    return [row.to_record() for row in rows]


def _month_bound(value: str | None) -> str | None:
    if not value:
        return None
    month = extract_month(value)
    if not month:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unrecognized month bound: {value!r}.",
        )
    return month


def scoped_sales(payload: Any) -> list[SalesRecord]:
    """Convert the request's sales rows and apply its org and month-range filters."""
    date_from = _month_bound(payload.date_from)
    date_to = _month_bound(payload.date_to)
    records = filter_by_org(to_records(payload.sales), payload.org_names)
    return filter_by_date_range(records, date_from, date_to)


def bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
