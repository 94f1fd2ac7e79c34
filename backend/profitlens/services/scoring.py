from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging

from profitlens.core.constants import HHI_HIGH, HHI_MEDIUM, SCORE_AXES, SCORE_TOTAL
from profitlens.models.enums import Momentum, RiskLevel
from profitlens.models.records import (
    AgingRecord,
    CollectionRecord,
    OrderRecord,
    SalesRecord,
    TeamContributionRecord,
)
from profitlens.services.aggregation import monthly_totals
from profitlens.utils.numbers import clamp, safe_pct, safe_ratio


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerShare:
    customer: str
    name: str
    amount: float
    share: float


@dataclass(frozen=True)
class CustomerHHI:
    hhi: float
    top_customer_share: float
    customer_count: int
    customers: list[CustomerShare]
    risk_level: RiskLevel


@dataclass(frozen=True)
class NameCollision:
    name: str
    kept_id: str
    ignored_id: str
    source: str


@dataclass
class PerformanceScore:
    sales_score: float
    order_score: float
    profit_score: float
    collection_score: float
    receivable_score: float
    total_score: float
    rank: int = 0
    percentile: float = 0.0


@dataclass(frozen=True)
class SalesRepProfile:
    id: str
    name: str
    org: str
    score: PerformanceScore
    sales_amount: float
    order_amount: float
    collection_amount: float
    contribution_margin_rate: float
    customer_count: int
    item_count: int
    hhi: float
    hhi_risk_level: RiskLevel
    top_customer_share: float
    top_customers: list[CustomerShare]


@dataclass(frozen=True)
class PerformanceScoresResult:
    profiles: list[SalesRepProfile]
    weights: dict[str, float]
    five_axis: bool
    id_to_name: dict[str, str] = field(default_factory=dict)
    name_to_id: dict[str, str] = field(default_factory=dict)
    warnings: list[NameCollision] = field(default_factory=list)


def hhi_index(amounts: Iterable[float]) -> float:
    """Herfindahl index over the positive amounts; net-negative entries hold no share."""
    values = [value for value in amounts if value > 0]
    total = sum(values)
    if total <= 0:
        return 0.0
    return sum((value / total) ** 2 for value in values)


def classify_hhi(hhi: float) -> RiskLevel:
    if hhi > HHI_HIGH:
        return RiskLevel.high
    if hhi > HHI_MEDIUM:
        return RiskLevel.medium
    return RiskLevel.low


def calc_customer_hhi(sales: Iterable[SalesRecord], person_field: str = "person") -> dict[str, CustomerHHI]:
    """Customer concentration per salesperson, ``HHI = sum(share_i ** 2)``."""
    per_person: dict[str, dict[str, dict]] = {}
    for row in sales:
        person = str(getattr(row, person_field, "") or "").strip()
        if not person:
            continue
        customer = row.customer.strip() or "기타"
        customers = per_person.setdefault(person, {})
        entry = customers.setdefault(customer, {"name": row.customer_name or customer, "amount": 0.0})
        entry["amount"] += row.amount

    result: dict[str, CustomerHHI] = {}
    for person, customers in per_person.items():
        positive = {key: entry for key, entry in customers.items() if entry["amount"] > 0}
        total = sum(entry["amount"] for entry in positive.values())
        if total <= 0:
            result[person] = CustomerHHI(
                hhi=0.0,
                top_customer_share=0.0,
                customer_count=len(customers),
                customers=[],
                risk_level=RiskLevel.low,
            )
            continue
        shares = sorted(
            (
                CustomerShare(customer=key, name=entry["name"], amount=entry["amount"], share=entry["amount"] / total)
                for key, entry in positive.items()
            ),
            key=lambda item: item.amount,
            reverse=True,
        )
        hhi = sum(item.share * item.share for item in shares)
        result[person] = CustomerHHI(
            hhi=hhi,
            top_customer_share=shares[0].share,
            customer_count=len(customers),
            customers=shares,
            risk_level=classify_hhi(hhi),
        )
    return result


def calc_receivable_risk_score(aging: Iterable[AgingRecord], max_score: float = 20.0) -> dict[str, float]:
    """Receivable health per person: ``(1 - long_overdue / total) * max_score``.

    People whose receivables total zero get the full score.
    """
    per_person: dict[str, dict[str, float]] = {}
    for record in aging:
        person = record.person.strip()
        if not person:
            continue
        entry = per_person.setdefault(person, {"total": 0.0, "long_overdue": 0.0})
        entry["total"] += record.total
        entry["long_overdue"] += record.long_overdue

    scores: dict[str, float] = {}
    for person, entry in per_person.items():
        if entry["total"] == 0:
            scores[person] = max_score
            continue
        ratio = entry["long_overdue"] / entry["total"]
        scores[person] = clamp((1 - ratio) * max_score, 0.0, max_score)
    return scores


def normalize_weights(weights: Mapping[str, float] | None, total: float = SCORE_TOTAL) -> dict[str, float]:
    """Fill missing axes with ``total / 5`` and rescale so the weights sum to ``total``."""
    weights = dict(weights or {})
    unknown = set(weights) - set(SCORE_AXES)
    if unknown:
        raise ValueError(f"Unknown weight option(s): {', '.join(sorted(unknown))}.")
    equal = total / len(SCORE_AXES)
    raw = {axis: float(weights[axis]) if weights.get(axis) is not None else equal for axis in SCORE_AXES}
    raw_sum = sum(raw.values())
    if raw_sum <= 0:
        return {axis: equal for axis in SCORE_AXES}
    factor = total / raw_sum
    return {axis: value * factor for axis, value in raw.items()}


def _register_name(
    person_id: str,
    name: str,
    *,
    source: str,
    id_to_name: dict[str, str],
    name_to_id: dict[str, str],
    warnings: list[NameCollision],
    overwrite_name: bool,
) -> None:
    if not person_id or not name:
        return
    existing = name_to_id.get(name)
    if existing is not None and existing != person_id:
        collision = NameCollision(name=name, kept_id=existing, ignored_id=person_id, source=source)
        if collision not in warnings:
            warnings.append(collision)
            logger.warning(
                "Salesperson name %r maps to several IDs (kept %s, ignored %s) in %s rows.",
                name,
                existing,
                person_id,
                source,
            )
    if overwrite_name or person_id not in id_to_name:
        id_to_name[person_id] = name
    name_to_id.setdefault(name, person_id)


def calc_performance_scores(
    sales: Iterable[SalesRecord],
    orders: Iterable[OrderRecord],
    collections: Iterable[CollectionRecord],
    team_contrib: Iterable[TeamContributionRecord],
    aging: Iterable[AgingRecord] | None = None,
    weights: Mapping[str, float] | None = None,
) -> PerformanceScoresResult:
    """Multi-axis salesperson scoring.

    Five axes (sales, growth=orders, profit=contribution rate, collection,
    diversity=receivable health) when aging rows are supplied; otherwise the
    diversity weight is zeroed and the other four share the total. Each axis
    is the candidate's value over the peer maximum times the axis weight.
    """
    sales = list(sales)
    orders = list(orders)
    aging = list(aging or [])
    five_axis = len(aging) > 0
    requested = dict(weights or {})
    if not five_axis:
        requested["diversity"] = 0.0
    w = normalize_weights(requested)

    person_sales: dict[str, dict] = {}
    for row in sales:
        key = row.person.strip()
        if not key:
            continue
        entry = person_sales.setdefault(
            key,
            {"name": row.person_name, "org": row.org, "amount": 0.0, "customers": set(), "items": set()},
        )
        entry["amount"] += row.amount
        if row.customer:
            entry["customers"].add(row.customer)
        if row.product:
            entry["items"].add(row.product)

    person_orders: dict[str, float] = {}
    for row in orders:
        key = row.person.strip()
        if not key:
            continue
        person_orders[key] = person_orders.get(key, 0.0) + row.amount

    id_to_name: dict[str, str] = {}
    name_to_id: dict[str, str] = {}
    warnings: list[NameCollision] = []
    for row in sales:
        _register_name(
            row.person.strip(),
            row.person_name.strip(),
            source="sales",
            id_to_name=id_to_name,
            name_to_id=name_to_id,
            warnings=warnings,
            overwrite_name=True,
        )
    for row in orders:
        _register_name(
            row.person.strip(),
            row.person_name.strip(),
            source="orders",
            id_to_name=id_to_name,
            name_to_id=name_to_id,
            warnings=warnings,
            overwrite_name=False,
        )

    # Collections, contribution and aging rows identify people by name.
    person_collections: dict[str, float] = {}
    for row in collections:
        key = row.person.strip()
        if not key:
            continue
        person_id = name_to_id.get(key, key)
        person_collections[person_id] = person_collections.get(person_id, 0.0) + row.amount

    person_contrib: dict[str, float] = {}
    for row in team_contrib:
        key = row.person.strip()
        if not key:
            continue
        person_contrib[name_to_id.get(key, key)] = row.contribution_margin_ratio.actual

    receivable_scores: dict[str, float] = {}
    if five_axis:
        for key, score in calc_receivable_risk_score(aging, w["diversity"]).items():
            receivable_scores[name_to_id.get(key, key)] = score

    hhi_map = calc_customer_hhi(sales)

    persons = list(dict.fromkeys([*person_sales, *person_orders, *person_collections]))
    max_sales = max([1.0, *(entry["amount"] for entry in person_sales.values())])
    max_orders = max([1.0, *person_orders.values()])
    max_contrib = max([1.0, *person_contrib.values()])

    profiles: list[SalesRepProfile] = []
    for person_id in persons:
        s_data = person_sales.get(person_id)
        sales_amt = s_data["amount"] if s_data else 0.0
        order_amt = person_orders.get(person_id, 0.0)
        collect_amt = person_collections.get(person_id, 0.0)
        contrib_rate = person_contrib.get(person_id, 0.0)

        sales_score = sales_amt / max_sales * w["sales"]
        order_score = order_amt / max_orders * w["growth"]
        profit_score = contrib_rate / max_contrib * w["profit"]
        collection_score = min(safe_ratio(collect_amt, sales_amt), 1.0) * w["collection"]
        receivable_score = receivable_scores.get(person_id, w["diversity"]) if five_axis else 0.0
        total = sales_score + order_score + profit_score + collection_score + receivable_score

        hhi_data = hhi_map.get(person_id)
        profiles.append(
            SalesRepProfile(
                id=person_id,
                name=(s_data["name"] if s_data and s_data["name"] else None) or id_to_name.get(person_id, person_id),
                org=s_data["org"] if s_data else "",
                score=PerformanceScore(
                    sales_score=sales_score,
                    order_score=order_score,
                    profit_score=profit_score,
                    collection_score=collection_score,
                    receivable_score=receivable_score,
                    total_score=total,
                ),
                sales_amount=sales_amt,
                order_amount=order_amt,
                collection_amount=collect_amt,
                contribution_margin_rate=contrib_rate,
                customer_count=len(s_data["customers"]) if s_data else 0,
                item_count=len(s_data["items"]) if s_data else 0,
                hhi=hhi_data.hhi if hhi_data else 0.0,
                hhi_risk_level=hhi_data.risk_level if hhi_data else RiskLevel.low,
                top_customer_share=hhi_data.top_customer_share if hhi_data else 0.0,
                top_customers=hhi_data.customers[:5] if hhi_data else [],
            )
        )

    profiles.sort(key=lambda profile: profile.score.total_score, reverse=True)
    count = len(profiles)
    for index, profile in enumerate(profiles):
        profile.score.rank = index + 1
        profile.score.percentile = (count - index) / count * 100

    return PerformanceScoresResult(
        profiles=profiles,
        weights=w,
        five_axis=five_axis,
        id_to_name=id_to_name,
        name_to_id=name_to_id,
        warnings=warnings,
    )


@dataclass(frozen=True)
class CostEfficiency:
    person_id: str
    org: str
    sales_amount: float
    variable_cost_rate: float
    fixed_cost_rate: float
    contribution_margin_rate: float
    operating_margin_rate: float


def calc_cost_efficiency(
    team_contrib: Iterable[TeamContributionRecord],
    name_to_id: Mapping[str, str] | None = None,
) -> list[CostEfficiency]:
    """Cost ratios per salesperson relative to actual sales; zero-sales rows are skipped."""
    name_to_id = name_to_id or {}
    rows: list[CostEfficiency] = []
    for record in team_contrib:
        sales = record.sales.actual
        if sales <= 0 or record.is_subtotal:
            continue
        rows.append(
            CostEfficiency(
                person_id=name_to_id.get(record.person, record.person),
                org=record.team,
                sales_amount=sales,
                variable_cost_rate=safe_pct(record.variable_cost_total.actual, sales),
                fixed_cost_rate=safe_pct(record.fixed_cost.actual, sales),
                contribution_margin_rate=record.contribution_margin_ratio.actual,
                operating_margin_rate=record.operating_margin_ratio.actual,
            )
        )
    return rows


@dataclass(frozen=True)
class RepTrend:
    person_id: str
    monthly: list[dict[str, float | str]]
    avg_monthly_sales: float
    avg_monthly_orders: float
    avg_monthly_collections: float
    sales_mom: float
    momentum: Momentum


def calc_rep_trend(
    sales: Iterable[SalesRecord],
    orders: Iterable[OrderRecord],
    collections: Iterable[CollectionRecord],
    person_id: str,
    person_name: str | None = None,
) -> RepTrend | None:
    person_sales = [row for row in sales if row.person == person_id]
    person_orders = [row for row in orders if row.person == person_id]
    person_collections = [
        row for row in collections if row.person == person_id or (person_name and row.person == person_name)
    ]
    if not person_sales and not person_orders:
        return None

    sales_by_month = monthly_totals(person_sales)
    orders_by_month = monthly_totals(person_orders)
    collections_by_month = monthly_totals(person_collections)
    months = sorted({*sales_by_month, *orders_by_month, *collections_by_month})
    if not months:
        return None

    monthly = [
        {
            "month": month,
            "sales": sales_by_month.get(month, 0.0),
            "orders": orders_by_month.get(month, 0.0),
            "collections": collections_by_month.get(month, 0.0),
        }
        for month in months
    ]
    n = len(monthly)
    total_sales = sum(sales_by_month.values())

    sales_mom = 0.0
    if n >= 2:
        last, prev = monthly[-1]["sales"], monthly[-2]["sales"]
        sales_mom = (last - prev) / prev * 100 if prev > 0 else 0.0

    momentum = Momentum.stable
    avg_sales = total_sales / n
    if n >= 3 and avg_sales > 0:
        trend_rate = (monthly[-1]["sales"] - monthly[-3]["sales"]) / avg_sales
        if trend_rate > 0.1:
            momentum = Momentum.accelerating
        elif trend_rate < -0.1:
            momentum = Momentum.decelerating

    return RepTrend(
        person_id=person_id,
        monthly=monthly,
        avg_monthly_sales=avg_sales,
        avg_monthly_orders=sum(orders_by_month.values()) / n,
        avg_monthly_collections=sum(collections_by_month.values()) / n,
        sales_mom=sales_mom,
        momentum=momentum,
    )
