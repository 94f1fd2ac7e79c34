from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from profitlens.core.constants import (
    CLV_BASE_LIFESPAN_YEARS,
    CLV_DEFAULT_MARGIN,
    CLV_MARGIN_CEILING,
    CLV_MARGIN_FLOOR,
    CLV_MIN_TRANSACTIONS,
    CLV_RETENTION_FLOOR,
    CLV_RETENTION_WEIGHT,
)
from profitlens.models.records import OrgProfitRecord, SalesRecord
from profitlens.services.aggregation import build_customer_aggregates
from profitlens.utils.months import extract_month, months_between
from profitlens.utils.numbers import clamp, safe_ratio


@dataclass(frozen=True)
class ClvResult:
    customer: str
    customer_name: str
    transaction_count: int
    avg_transaction_value: float
    purchase_frequency: float
    customer_value: float
    avg_profit_margin: float
    estimated_lifespan: float
    clv: float
    current_sales: float
    clv_to_sales_ratio: float


@dataclass(frozen=True)
class ClvSummary:
    total_clv: float
    avg_clv: float
    top_customer_clv: float
    top_customer_share: float
    customer_count: int


def detect_years_in_data(sales: Iterable[SalesRecord]) -> float:
    """Inclusive month span of the data in years, never below one month."""
    months = [month for month in (extract_month(row.date) for row in sales) if month]
    if not months:
        return 1.0
    span = months_between(min(months), max(months)) + 1
    return max(span / 12, 1 / 12)


def avg_profit_margin(org_profit: Iterable[OrgProfitRecord], default: float = CLV_DEFAULT_MARGIN) -> float:
    org_profit = list(org_profit)
    total_sales = sum(record.sales.actual for record in org_profit)
    if not org_profit or total_sales == 0:
        return default
    gross_profit = sum(record.gross_profit.actual for record in org_profit)
    return clamp(gross_profit / total_sales, CLV_MARGIN_FLOOR, CLV_MARGIN_CEILING)


def calc_clv(
    sales: Iterable[SalesRecord],
    org_profit: Iterable[OrgProfitRecord] = (),
    years_in_data: float | None = None,
    default_margin: float = CLV_DEFAULT_MARGIN,
) -> list[ClvResult]:
    """Customer lifetime value, ``avg_txn * annual_frequency * margin * lifespan``.

    The average frequency baseline covers every customer, but customers with
    fewer than two transactions get no CLV and are left out of the result.
    """
    sales = list(sales)
    if years_in_data is not None and years_in_data <= 0:
        raise ValueError("years_in_data must be > 0.")
    years = years_in_data if years_in_data is not None else detect_years_in_data(sales)
    margin = avg_profit_margin(org_profit, default=default_margin)
    customers = build_customer_aggregates(sales)
    if not customers:
        return []

    avg_frequency = sum(customer.frequency / years for customer in customers) / len(customers)

    results: list[ClvResult] = []
    for customer in customers:
        if customer.frequency < CLV_MIN_TRANSACTIONS:
            continue
        avg_txn = customer.monetary / customer.frequency
        frequency = customer.frequency / years
        customer_value = avg_txn * frequency
        retention = min(1.0, safe_ratio(frequency, avg_frequency)) * CLV_RETENTION_WEIGHT + CLV_RETENTION_FLOOR
        lifespan = CLV_BASE_LIFESPAN_YEARS * retention
        clv = customer_value * margin * lifespan
        results.append(
            ClvResult(
                customer=customer.customer,
                customer_name=customer.name,
                transaction_count=customer.frequency,
                avg_transaction_value=avg_txn,
                purchase_frequency=frequency,
                customer_value=customer_value,
                avg_profit_margin=margin,
                estimated_lifespan=lifespan,
                clv=clv,
                current_sales=customer.monetary,
                clv_to_sales_ratio=safe_ratio(clv, customer.monetary),
            )
        )
    results.sort(key=lambda item: item.clv, reverse=True)
    return results


def summarize_clv(results: list[ClvResult]) -> ClvSummary:
    if not results:
        return ClvSummary(total_clv=0.0, avg_clv=0.0, top_customer_clv=0.0, top_customer_share=0.0, customer_count=0)
    total = sum(item.clv for item in results)
    return ClvSummary(
        total_clv=total,
        avg_clv=total / len(results),
        top_customer_clv=results[0].clv,
        top_customer_share=safe_ratio(results[0].clv, total) * 100,
        customer_count=len(results),
    )
