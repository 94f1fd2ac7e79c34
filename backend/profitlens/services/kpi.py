from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from profitlens.models.records import CollectionRecord, OrderRecord, OrgProfitRecord, SalesRecord
from profitlens.services.aggregation import monthly_totals
from profitlens.services.filters import normalize_org_name
from profitlens.utils.numbers import safe_pct


@dataclass(frozen=True)
class OverviewKpis:
    total_sales: float
    total_orders: float
    total_collection: float
    collection_rate: float
    total_receivables: float
    operating_profit_rate: float
    sales_plan_achievement: float


@dataclass(frozen=True)
class MonthlyTrend:
    month: str
    sales: float
    orders: float
    collections: float


@dataclass(frozen=True)
class OrgSales:
    org: str
    sales: float


@dataclass(frozen=True)
class TopCustomer:
    code: str
    name: str
    amount: float


def calc_overview_kpis(
    sales: Iterable[SalesRecord],
    orders: Iterable[OrderRecord],
    collections: Iterable[CollectionRecord],
    org_profit: Iterable[OrgProfitRecord],
) -> OverviewKpis:
    """Headline figures; receivables here are simply sales not yet collected."""
    total_sales = sum(row.amount for row in sales)
    total_orders = sum(row.amount for row in orders)
    total_collection = sum(row.amount for row in collections)

    org_profit = list(org_profit)
    profit_sales = sum(record.sales.actual for record in org_profit)
    profit_plan = sum(record.sales.plan for record in org_profit)
    operating_profit = sum(record.operating_profit.actual for record in org_profit)

    return OverviewKpis(
        total_sales=total_sales,
        total_orders=total_orders,
        total_collection=total_collection,
        collection_rate=safe_pct(total_collection, total_sales) if total_sales > 0 else 0.0,
        total_receivables=total_sales - total_collection,
        operating_profit_rate=safe_pct(operating_profit, profit_sales) if profit_sales > 0 else 0.0,
        sales_plan_achievement=safe_pct(profit_sales, profit_plan) if profit_plan > 0 else 0.0,
    )


def calc_monthly_trends(
    sales: Iterable[SalesRecord],
    orders: Iterable[OrderRecord],
    collections: Iterable[CollectionRecord],
) -> list[MonthlyTrend]:
    sales_by_month = monthly_totals(sales)
    orders_by_month = monthly_totals(orders)
    collections_by_month = monthly_totals(collections)
    months = sorted({*sales_by_month, *orders_by_month, *collections_by_month})
    return [
        MonthlyTrend(
            month=month,
            sales=sales_by_month.get(month, 0.0),
            orders=orders_by_month.get(month, 0.0),
            collections=collections_by_month.get(month, 0.0),
        )
        for month in months
    ]


def calc_org_ranking(sales: Iterable[SalesRecord]) -> list[OrgSales]:
    totals: dict[str, float] = {}
    for row in sales:
        org = normalize_org_name(row.org)
        if not org:
            continue
        totals[org] = totals.get(org, 0.0) + row.amount
    ranking = [OrgSales(org=org, sales=amount) for org, amount in totals.items()]
    ranking.sort(key=lambda item: item.sales, reverse=True)
    return ranking


def calc_top_customers(sales: Iterable[SalesRecord], top_n: int = 10) -> list[TopCustomer]:
    if top_n <= 0:
        raise ValueError("top_n must be > 0.")
    totals: dict[str, list] = {}
    for row in sales:
        code = row.customer.strip()
        if not code:
            continue
        entry = totals.setdefault(code, [row.customer_name, 0.0])
        entry[1] += row.amount
    customers = [TopCustomer(code=code, name=name, amount=amount) for code, (name, amount) in totals.items()]
    customers.sort(key=lambda item: item.amount, reverse=True)
    return customers[:top_n]
