from __future__ import annotations

from collections.abc import Iterable
import logging

from profitlens.models.records import (
    ORG_PROFIT_AMOUNT_FIELDS,
    ORG_PROFIT_RATIO_FIELDS,
    CustomerAggregate,
    OrgProfitRecord,
    PlanActualDiff,
    SalesRecord,
)
from profitlens.services.filters import filter_org_profit_leaf_only, normalize_org_name
from profitlens.utils.months import extract_month
from profitlens.utils.numbers import safe_pct


logger = logging.getLogger(__name__)


def _amount_template() -> dict[str, PlanActualDiff]:
    return {name: PlanActualDiff.zero() for name in ORG_PROFIT_AMOUNT_FIELDS}


def recompute_ratio(numerator: PlanActualDiff, denominator: PlanActualDiff) -> PlanActualDiff:
    return PlanActualDiff.of(
        safe_pct(numerator.plan, denominator.plan),
        safe_pct(numerator.actual, denominator.actual),
    )


def merge_org_profit(team: str, rows: list[OrgProfitRecord]) -> OrgProfitRecord:
    """Merge rows of one team: amounts are summed, ratios rebuilt from the sums."""
    totals = _amount_template()
    for row in rows:
        for name in ORG_PROFIT_AMOUNT_FIELDS:
            totals[name] = totals[name] + getattr(row, name)

    ratios = {
        ratio_name: recompute_ratio(totals[numerator], totals["sales"])
        for ratio_name, numerator in ORG_PROFIT_RATIO_FIELDS.items()
    }
    head = rows[0]
    return OrgProfitRecord(
        division=head.division,
        department=head.department,
        team=team,
        **totals,
        **ratios,
    )


def aggregate_org_profit(records: Iterable[OrgProfitRecord]) -> list[OrgProfitRecord]:
    """Collapse org profit rows to one record per team.

    Rows without a team are unassignable and dropped. Subtotal rows must be
    removed first (see :func:`aggregate_org_profit_leaves`).
    """
    groups: dict[str, list[OrgProfitRecord]] = {}
    dropped = 0
    for record in records:
        team = normalize_org_name(record.team)
        if not team:
            dropped += 1
            continue
        groups.setdefault(team, []).append(record)
    if dropped:
        logger.debug("Dropped %s org profit rows without a team.", dropped)
    return [merge_org_profit(team, rows) for team, rows in groups.items()]


def aggregate_org_profit_leaves(records: Iterable[OrgProfitRecord]) -> list[OrgProfitRecord]:
    return aggregate_org_profit(filter_org_profit_leaf_only(records))


def build_customer_aggregates(sales: Iterable[SalesRecord]) -> list[CustomerAggregate]:
    """Per-customer recency/frequency/monetary basis from raw sales rows.

    Rows without a customer key are dropped. Rows without a parseable month
    still count towards frequency and monetary.
    """
    buckets: dict[str, dict] = {}
    for row in sales:
        key = row.customer.strip()
        if not key:
            continue
        month = extract_month(row.date)
        entry = buckets.setdefault(
            key,
            {"name": "", "first": "", "last": "", "frequency": 0, "monetary": 0.0, "monthly": {}},
        )
        entry["frequency"] += 1
        entry["monetary"] += row.amount
        if row.customer_name.strip():
            entry["name"] = row.customer_name
        if month:
            entry["monthly"][month] = entry["monthly"].get(month, 0.0) + row.amount
            if not entry["last"] or month > entry["last"]:
                entry["last"] = month
            if not entry["first"] or month < entry["first"]:
                entry["first"] = month

    return [
        CustomerAggregate(
            customer=key,
            name=entry["name"] or key,
            last_month=entry["last"],
            first_month=entry["first"],
            frequency=entry["frequency"],
            monetary=entry["monetary"],
            monthly=dict(sorted(entry["monthly"].items())),
        )
        for key, entry in buckets.items()
    ]


def latest_month(sales: Iterable[SalesRecord]) -> str:
    latest = ""
    for row in sales:
        month = extract_month(row.date)
        if month and month > latest:
            latest = month
    return latest


def monthly_totals(rows: Iterable[object], date_field: str = "date", amount_field: str = "amount") -> dict[str, float]:
    """Sum ``amount_field`` per ``YYYY-MM`` key, chronologically ordered."""
    totals: dict[str, float] = {}
    for row in rows:
        month = extract_month(getattr(row, date_field, ""))
        if not month:
            continue
        totals[month] = totals.get(month, 0.0) + float(getattr(row, amount_field, 0.0) or 0.0)
    return dict(sorted(totals.items()))
