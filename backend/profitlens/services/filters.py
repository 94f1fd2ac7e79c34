from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TypeVar

from profitlens.models.records import OrgProfitRecord
from profitlens.utils.months import extract_month


T = TypeVar("T")
V = TypeVar("V")


def normalize_org_name(name: str | None) -> str:
    return (name or "").strip()


def _field_text(row: object, field: str) -> str:
    return normalize_org_name(str(getattr(row, field, "") or ""))


def filter_by_org(rows: Iterable[T], org_names: Iterable[str], field: str = "org") -> list[T]:
    """Keep rows whose ``field`` is one of ``org_names``; an empty selection keeps everything."""
    selected = {normalize_org_name(name) for name in org_names if normalize_org_name(name)}
    if not selected:
        return list(rows)
    return [row for row in rows if _field_text(row, field) in selected]


def filter_by_date_range(
    rows: Iterable[T],
    date_from: str | None,
    date_to: str | None,
    date_field: str = "date",
) -> list[T]:
    """Keep rows whose month lies in ``[date_from, date_to]`` (``YYYY-MM``, inclusive).

    A missing bound disables the filter. Rows without a parseable month are
    dropped once the filter is active.
    """
    if not date_from or not date_to:
        return list(rows)
    kept: list[T] = []
    for row in rows:
        month = extract_month(getattr(row, date_field, ""))
        if month and date_from <= month <= date_to:
            kept.append(row)
    return kept


def is_same_org(org_a: str | None, org_b: str | None) -> bool:
    a = normalize_org_name(org_a)
    b = normalize_org_name(org_b)
    if not a or not b:
        return False
    if a == b:
        return True
    return a in b or b in a


def fuzzy_match_org(mapping: Mapping[str, V], name: str | None) -> V | None:
    """Look ``name`` up exactly, then by substring containment in either direction."""
    trimmed = normalize_org_name(name)
    if not trimmed:
        return None
    if trimmed in mapping:
        return mapping[trimmed]
    for key, value in mapping.items():
        if trimmed in key or key in trimmed:
            return value
    return None


def filter_by_org_fuzzy(rows: Iterable[T], org_names: Iterable[str], field: str = "org") -> list[T]:
    selected = [normalize_org_name(name) for name in org_names if normalize_org_name(name)]
    if not selected:
        return list(rows)
    exact = set(selected)
    kept: list[T] = []
    for row in rows:
        value = _field_text(row, field)
        if not value:
            continue
        if value in exact or any(value in org or org in value for org in selected):
            kept.append(row)
    return kept


def is_org_profit_subtotal(record: OrgProfitRecord) -> bool:
    team = normalize_org_name(record.team)
    if not team:
        return True
    return team in {normalize_org_name(record.division), normalize_org_name(record.department)}


def filter_org_profit_leaf_only(records: Iterable[OrgProfitRecord]) -> list[OrgProfitRecord]:
    """Drop subtotal rows, i.e. rows whose team label repeats a parent label."""
    return [record for record in records if not is_org_profit_subtotal(record)]
