import pytest

from profitlens.models.enums import ParetoGrade
from profitlens.models.records import PlanActualDiff, ProfitabilityRecord
from profitlens.services.profitability import (
    calc_customer_profitability,
    calc_pareto,
    calc_product_profitability,
    calc_profitability_matrix,
)


def _row(customer: str, product: str, sales: float, cost: float, gp: float, op: float, **names: str) -> ProfitabilityRecord:
    return ProfitabilityRecord(
        customer=customer,
        product=product,
        sales=PlanActualDiff.of(0, sales),
        cost_of_sales=PlanActualDiff.of(0, cost),
        gross_profit=PlanActualDiff.of(0, gp),
        operating_profit=PlanActualDiff.of(0, op),
        **names,
    )


def _records() -> list[ProfitabilityRecord]:
    return [
        _row("A", "P1", 600, 400, 200, 60, customer_name="Alpha", product_name="Widget"),
        _row("A", "P2", 200, 150, 50, 10),
        _row("B", "P1", 200, 100, 100, 40),
        _row("", "P3", 100, 90, 10, 0),
    ]


def test_product_profitability() -> None:
    products = calc_product_profitability(_records())
    assert [row.product for row in products] == ["P1", "P2", "P3"]
    widget = products[0]
    assert widget.name == "Widget"
    assert (widget.sales, widget.cost, widget.gross_profit) == (800, 500, 300)
    assert widget.gross_margin == pytest.approx(37.5)
    assert widget.operating_margin == pytest.approx(12.5)
    assert products[1].name == "P2"


def test_customer_profitability_skips_blank_customers() -> None:
    customers = calc_customer_profitability(_records())
    assert [(row.customer, row.name, row.sales) for row in customers] == [("A", "Alpha", 800), ("B", "B", 200)]
    assert customers[0].gross_margin == pytest.approx(31.25)
    assert [row.product_count for row in customers] == [2, 1]


def test_profitability_matrix() -> None:
    cells = calc_profitability_matrix(_records())
    assert [(cell.customer, cell.product, cell.sales) for cell in cells] == [
        ("A", "P1", 600),
        ("A", "P2", 200),
        ("B", "P1", 200),
    ]
    assert cells[0].gross_margin == pytest.approx(200 / 600 * 100)


def test_pareto_classes_and_non_positive_tail() -> None:
    entries = calc_pareto([("z", 10), ("loss", -5), ("x", 70), ("zero", 0), ("y", 20)])
    assert [entry.key for entry in entries] == ["x", "y", "z", "zero", "loss"]
    assert [entry.grade for entry in entries] == [
        ParetoGrade.a,
        ParetoGrade.b,
        ParetoGrade.c,
        ParetoGrade.c,
        ParetoGrade.c,
    ]
    assert [entry.cumulative_share for entry in entries[:3]] == pytest.approx([70.0, 90.0, 100.0])
    assert entries[0].share == pytest.approx(70.0)
    assert entries[-1].share == 0.0
    assert calc_pareto([]) == []
