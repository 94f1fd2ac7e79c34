from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from profitlens.models.enums import ParetoGrade
from profitlens.models.records import ProfitabilityRecord
from profitlens.services.cost_variance import pareto_grade
from profitlens.utils.numbers import safe_pct


@dataclass(frozen=True)
class ProductProfitability:
    product: str
    name: str
    sales: float
    cost: float
    gross_profit: float
    gross_margin: float
    operating_profit: float
    operating_margin: float


@dataclass(frozen=True)
class CustomerProfitability:
    customer: str
    name: str
    sales: float
    gross_profit: float
    gross_margin: float
    operating_profit: float
    operating_margin: float
    product_count: int


@dataclass(frozen=True)
class ProfitabilityCell:
    customer: str
    product: str
    sales: float
    gross_profit: float
    gross_margin: float


@dataclass(frozen=True)
class ParetoEntry:
    key: str
    value: float
    share: float
    cumulative_share: float
    grade: ParetoGrade


def calc_product_profitability(records: Iterable[ProfitabilityRecord]) -> list[ProductProfitability]:
    grouped: dict[str, dict] = {}
    for record in records:
        product = record.product.strip()
        if not product:
            continue
        entry = grouped.setdefault(
            product,
            {"name": record.product_name or product, "sales": 0.0, "cost": 0.0, "gp": 0.0, "op": 0.0},
        )
        entry["sales"] += record.sales.actual
        entry["cost"] += record.cost_of_sales.actual
        entry["gp"] += record.gross_profit.actual
        entry["op"] += record.operating_profit.actual

    rows = [
        ProductProfitability(
            product=product,
            name=entry["name"],
            sales=entry["sales"],
            cost=entry["cost"],
            gross_profit=entry["gp"],
            gross_margin=safe_pct(entry["gp"], entry["sales"]),
            operating_profit=entry["op"],
            operating_margin=safe_pct(entry["op"], entry["sales"]),
        )
        for product, entry in grouped.items()
    ]
    rows.sort(key=lambda row: row.sales, reverse=True)
    return rows


def calc_customer_profitability(records: Iterable[ProfitabilityRecord]) -> list[CustomerProfitability]:
    grouped: dict[str, dict] = {}
    for record in records:
        customer = record.customer.strip()
        if not customer:
            continue
        entry = grouped.setdefault(
            customer,
            {"name": record.customer_name or customer, "sales": 0.0, "gp": 0.0, "op": 0.0, "products": set()},
        )
        entry["sales"] += record.sales.actual
        entry["gp"] += record.gross_profit.actual
        entry["op"] += record.operating_profit.actual
        if record.product:
            entry["products"].add(record.product)

    rows = [
        CustomerProfitability(
            customer=customer,
            name=entry["name"],
            sales=entry["sales"],
            gross_profit=entry["gp"],
            gross_margin=safe_pct(entry["gp"], entry["sales"]),
            operating_profit=entry["op"],
            operating_margin=safe_pct(entry["op"], entry["sales"]),
            product_count=len(entry["products"]),
        )
        for customer, entry in grouped.items()
    ]
    rows.sort(key=lambda row: row.sales, reverse=True)
    return rows


def calc_profitability_matrix(records: Iterable[ProfitabilityRecord]) -> list[ProfitabilityCell]:
    """Customer x product cells with sales and gross margin."""
    grouped: dict[tuple[str, str], list[float]] = {}
    for record in records:
        if not record.customer or not record.product:
            continue
        entry = grouped.setdefault((record.customer, record.product), [0.0, 0.0])
        entry[0] += record.sales.actual
        entry[1] += record.gross_profit.actual
    cells = [
        ProfitabilityCell(
            customer=customer,
            product=product,
            sales=sales,
            gross_profit=gross_profit,
            gross_margin=safe_pct(gross_profit, sales),
        )
        for (customer, product), (sales, gross_profit) in grouped.items()
    ]
    cells.sort(key=lambda cell: cell.sales, reverse=True)
    return cells


def calc_pareto(values: Iterable[tuple[str, float]]) -> list[ParetoEntry]:
    """ABC classes by cumulative share of the positive total.

    Non-positive values cannot contribute to the cumulative curve; they are
    listed last with grade C.
    """
    items = sorted(values, key=lambda item: item[1], reverse=True)
    total = sum(value for _, value in items if value > 0)
    entries: list[ParetoEntry] = []
    cumulative = 0.0
    for key, value in items:
        if value <= 0:
            entries.append(ParetoEntry(key=key, value=value, share=0.0, cumulative_share=100.0, grade=ParetoGrade.c))
            continue
        cumulative += value
        share = safe_pct(cumulative, total)
        entries.append(
            ParetoEntry(
                key=key,
                value=value,
                share=safe_pct(value, total),
                cumulative_share=share,
                grade=pareto_grade(share),
            )
        )
    return entries
