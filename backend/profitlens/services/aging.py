from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from profitlens.core.constants import (
    AGING_HIGH_OVERDUE_AMOUNT,
    AGING_HIGH_OVERDUE_RATIO,
    AGING_MEDIUM_OVERDUE_AMOUNT,
    AGING_MEDIUM_OVERDUE_RATIO,
    CREDIT_DANGER_PCT,
    CREDIT_WARNING_PCT,
    RECEIVABLE_EFFICIENCY_GRADES,
)
from profitlens.models.enums import CreditStatus, RiskLevel
from profitlens.models.records import AgingRecord
from profitlens.services.filters import normalize_org_name
from profitlens.services.scoring import hhi_index
from profitlens.utils.numbers import safe_pct


@dataclass(frozen=True)
class AgingSummary:
    month1: float = 0.0
    month2: float = 0.0
    month3: float = 0.0
    month4: float = 0.0
    month5: float = 0.0
    month6: float = 0.0
    overdue: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class GroupedAging:
    key: str
    summary: AgingSummary


@dataclass(frozen=True)
class AgingRiskAssessment:
    customer: str
    customer_name: str
    org: str
    person: str
    total_receivables: float
    overdue_ratio: float
    risk: RiskLevel


@dataclass(frozen=True)
class CreditUtilization:
    customer: str
    customer_name: str
    org: str
    person: str
    total_receivables: float
    credit_limit: float
    utilization: float
    status: CreditStatus


@dataclass(frozen=True)
class CreditSummaryByOrg:
    org: str
    total_limit: float
    total_used: float
    utilization_rate: float
    danger_count: int
    warning_count: int


@dataclass(frozen=True)
class PersonReceivableHealth:
    person: str
    customer_count: int
    total_receivables: float
    normal: float
    caution: float
    overdue: float
    normal_pct: float
    caution_pct: float
    overdue_pct: float
    high_risk_count: int
    hhi: float
    top_customer: str
    top_customer_share: float
    efficiency_grade: str


def calc_aging_summary(records: Iterable[AgingRecord]) -> AgingSummary:
    totals = [0.0] * 8
    for record in records:
        for index, value in enumerate(record.buckets):
            totals[index] += value
        totals[7] += record.total
    return AgingSummary(*totals)


def _grouped_summaries(records: Iterable[AgingRecord], field: str) -> list[GroupedAging]:
    grouped: dict[str, list[AgingRecord]] = {}
    for record in records:
        key = normalize_org_name(getattr(record, field))
        if not key:
            continue
        grouped.setdefault(key, []).append(record)
    summaries = [GroupedAging(key=key, summary=calc_aging_summary(rows)) for key, rows in grouped.items()]
    summaries.sort(key=lambda item: item.summary.total, reverse=True)
    return summaries


def calc_aging_by_org(records: Iterable[AgingRecord]) -> list[GroupedAging]:
    return _grouped_summaries(records, "org")


def calc_aging_by_person(records: Iterable[AgingRecord]) -> list[GroupedAging]:
    return _grouped_summaries(records, "person")


def classify_aging_risk(record: AgingRecord) -> RiskLevel:
    """Grade one record; aged three months or more counts as overdue."""
    if record.total == 0:
        return RiskLevel.low
    ratio = record.long_overdue / record.total
    if ratio > AGING_HIGH_OVERDUE_RATIO or record.overdue > AGING_HIGH_OVERDUE_AMOUNT:
        return RiskLevel.high
    if ratio > AGING_MEDIUM_OVERDUE_RATIO or record.long_overdue > AGING_MEDIUM_OVERDUE_AMOUNT:
        return RiskLevel.medium
    return RiskLevel.low


_RISK_ORDER = {RiskLevel.high: 0, RiskLevel.medium: 1, RiskLevel.low: 2}


def assess_aging_risk(records: Iterable[AgingRecord]) -> list[AgingRiskAssessment]:
    """Risk grade per non-zero record, high risk first and then by size."""
    assessments = [
        AgingRiskAssessment(
            customer=record.customer,
            customer_name=record.customer_name,
            org=record.org,
            person=record.person,
            total_receivables=record.total,
            overdue_ratio=safe_pct(record.long_overdue, record.total) if record.total > 0 else 0.0,
            risk=classify_aging_risk(record),
        )
        for record in records
        if record.total != 0
    ]
    assessments.sort(key=lambda item: (_RISK_ORDER[item.risk], -item.total_receivables))
    return assessments


def classify_credit(utilization: float) -> CreditStatus:
    if utilization >= CREDIT_DANGER_PCT:
        return CreditStatus.danger
    if utilization >= CREDIT_WARNING_PCT:
        return CreditStatus.warning
    return CreditStatus.normal


def calc_credit_utilization(
    records: Iterable[AgingRecord],
    limits: Mapping[str, float] | None = None,
) -> list[CreditUtilization]:
    """Receivables against credit limit per customer, highest utilization first.

    ``limits`` overrides the limit carried on the records; customers without
    a non-zero limit are skipped.
    """
    grouped: dict[str, list[AgingRecord]] = {}
    for record in records:
        key = record.customer.strip()
        if not key:
            continue
        grouped.setdefault(key, []).append(record)

    results: list[CreditUtilization] = []
    for customer, rows in grouped.items():
        first = rows[0]
        limit = (limits or {}).get(customer, first.credit_limit)
        if not limit:
            continue
        total = sum(row.total for row in rows)
        utilization = total / limit * 100
        results.append(
            CreditUtilization(
                customer=customer,
                customer_name=first.customer_name,
                org=first.org,
                person=first.person,
                total_receivables=total,
                credit_limit=limit,
                utilization=utilization,
                status=classify_credit(utilization),
            )
        )
    results.sort(key=lambda item: item.utilization, reverse=True)
    return results


def calc_credit_summary_by_org(
    records: Iterable[AgingRecord],
    limits: Mapping[str, float] | None = None,
) -> list[CreditSummaryByOrg]:
    grouped: dict[str, dict[str, float]] = {}
    for item in calc_credit_utilization(records, limits):
        org = normalize_org_name(item.org)
        if not org:
            continue
        entry = grouped.setdefault(org, {"limit": 0.0, "used": 0.0, "danger": 0, "warning": 0})
        entry["limit"] += item.credit_limit
        entry["used"] += item.total_receivables
        if item.status == CreditStatus.danger:
            entry["danger"] += 1
        elif item.status == CreditStatus.warning:
            entry["warning"] += 1

    summaries = [
        CreditSummaryByOrg(
            org=org,
            total_limit=entry["limit"],
            total_used=entry["used"],
            utilization_rate=safe_pct(entry["used"], entry["limit"]) if entry["limit"] > 0 else 0.0,
            danger_count=int(entry["danger"]),
            warning_count=int(entry["warning"]),
        )
        for org, entry in grouped.items()
    ]
    summaries.sort(key=lambda item: item.utilization_rate, reverse=True)
    return summaries


def efficiency_grade(normal_pct: float) -> str:
    for threshold, grade in RECEIVABLE_EFFICIENCY_GRADES:
        if normal_pct >= threshold:
            return grade
    return "D"


def calc_person_receivable_health(records: Iterable[AgingRecord]) -> list[PersonReceivableHealth]:
    """Per-person receivable portfolio.

    Buckets split into normal (months 1-2), caution (months 3-5) and overdue
    (month 6 and beyond). Customer concentration is an HHI over customer
    totals, computed only when the person's total is positive; customers
    with a net credit balance hold no share.
    """
    grouped: dict[str, list[AgingRecord]] = {}
    for record in records:
        person = record.person.strip()
        if not person:
            continue
        grouped.setdefault(person, []).append(record)

    results: list[PersonReceivableHealth] = []
    for person, rows in grouped.items():
        total = sum(row.total for row in rows)
        normal = sum(row.month1 + row.month2 for row in rows)
        caution = sum(row.month3 + row.month4 + row.month5 for row in rows)
        overdue = sum(row.month6 + row.overdue for row in rows)

        customers: dict[str, list] = {}
        for row in rows:
            entry = customers.setdefault(row.customer or row.customer_name, [row.customer_name or row.customer, 0.0])
            entry[1] += row.total

        hhi, top_name, top_amount = 0.0, "", 0.0
        held = sum(amount for _, amount in customers.values() if amount > 0)
        if total > 0:
            hhi = hhi_index(amount for _, amount in customers.values())
            for name, amount in customers.values():
                if amount > top_amount:
                    top_name, top_amount = name, amount

        normal_pct = safe_pct(normal, total) if total > 0 else 0.0
        results.append(
            PersonReceivableHealth(
                person=person,
                customer_count=len(customers),
                total_receivables=total,
                normal=normal,
                caution=caution,
                overdue=overdue,
                normal_pct=normal_pct,
                caution_pct=safe_pct(caution, total) if total > 0 else 0.0,
                overdue_pct=safe_pct(overdue, total) if total > 0 else 0.0,
                high_risk_count=sum(1 for row in rows if classify_aging_risk(row) == RiskLevel.high),
                hhi=hhi,
                top_customer=top_name,
                top_customer_share=safe_pct(top_amount, held) if total > 0 else 0.0,
                efficiency_grade=efficiency_grade(normal_pct),
            )
        )
    results.sort(key=lambda item: item.total_receivables, reverse=True)
    return results
