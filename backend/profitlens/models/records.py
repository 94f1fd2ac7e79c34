from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PlanActualDiff:
    """Plan/actual pair with ``diff == actual - plan``.

    Build instances with :meth:`of` so the difference is always derived, and
    combine them with ``+`` which sums plan and actual then recomputes diff.
    """

    plan: float = 0.0
    actual: float = 0.0
    diff: float = 0.0

    @classmethod
    def of(cls, plan: float = 0.0, actual: float = 0.0) -> PlanActualDiff:
        return cls(plan=float(plan), actual=float(actual), diff=float(actual) - float(plan))

    @classmethod
    def zero(cls) -> PlanActualDiff:
        return cls(0.0, 0.0, 0.0)

    def __add__(self, other: PlanActualDiff) -> PlanActualDiff:
        if not isinstance(other, PlanActualDiff):
            return NotImplemented
        return PlanActualDiff.of(self.plan + other.plan, self.actual + other.actual)


def _zero() -> PlanActualDiff:
    return PlanActualDiff.zero()


@dataclass(frozen=True)
class OrgProfitRecord:
    division: str = ""
    department: str = ""
    team: str = ""
    sales: PlanActualDiff = field(default_factory=_zero)
    cost_of_sales: PlanActualDiff = field(default_factory=_zero)
    gross_profit: PlanActualDiff = field(default_factory=_zero)
    direct_selling_freight: PlanActualDiff = field(default_factory=_zero)
    freight: PlanActualDiff = field(default_factory=_zero)
    sga: PlanActualDiff = field(default_factory=_zero)
    operating_profit: PlanActualDiff = field(default_factory=_zero)
    contribution_margin: PlanActualDiff = field(default_factory=_zero)
    cost_of_sales_ratio: PlanActualDiff = field(default_factory=_zero)
    gross_margin_ratio: PlanActualDiff = field(default_factory=_zero)
    sga_ratio: PlanActualDiff = field(default_factory=_zero)
    operating_margin_ratio: PlanActualDiff = field(default_factory=_zero)
    contribution_margin_ratio: PlanActualDiff = field(default_factory=_zero)


# Absolute amounts are summed on merge; ratios are recomputed as numerator / sales.
ORG_PROFIT_AMOUNT_FIELDS: tuple[str, ...] = (
    "sales",
    "cost_of_sales",
    "gross_profit",
    "direct_selling_freight",
    "freight",
    "sga",
    "operating_profit",
    "contribution_margin",
)

ORG_PROFIT_RATIO_FIELDS: dict[str, str] = {
    "cost_of_sales_ratio": "cost_of_sales",
    "gross_margin_ratio": "gross_profit",
    "sga_ratio": "sga",
    "operating_margin_ratio": "operating_profit",
    "contribution_margin_ratio": "contribution_margin",
}


@dataclass(frozen=True)
class TeamContributionRecord:
    group: str = ""
    team: str = ""
    person: str = ""
    sales: PlanActualDiff = field(default_factory=_zero)
    cost_of_sales: PlanActualDiff = field(default_factory=_zero)
    gross_profit: PlanActualDiff = field(default_factory=_zero)
    gross_margin_ratio: PlanActualDiff = field(default_factory=_zero)
    direct_selling_freight: PlanActualDiff = field(default_factory=_zero)
    sga: PlanActualDiff = field(default_factory=_zero)
    operating_profit: PlanActualDiff = field(default_factory=_zero)
    operating_margin_ratio: PlanActualDiff = field(default_factory=_zero)
    sga_fixed_labor: PlanActualDiff = field(default_factory=_zero)
    sga_fixed_depreciation: PlanActualDiff = field(default_factory=_zero)
    sga_fixed_other: PlanActualDiff = field(default_factory=_zero)
    variable_cost_total: PlanActualDiff = field(default_factory=_zero)
    contribution_margin: PlanActualDiff = field(default_factory=_zero)
    contribution_margin_ratio: PlanActualDiff = field(default_factory=_zero)
    # SG&A-variable and manufacturing-variable line items keyed by source column.
    variable_costs: Mapping[str, PlanActualDiff] = field(default_factory=dict)

    @property
    def fixed_cost(self) -> PlanActualDiff:
        return self.sga_fixed_labor + self.sga_fixed_depreciation + self.sga_fixed_other

    @property
    def is_subtotal(self) -> bool:
        return not self.person.strip()


@dataclass(frozen=True)
class ProfitabilityRecord:
    team: str = ""
    person: str = ""
    customer: str = ""
    customer_name: str = ""
    product: str = ""
    product_name: str = ""
    product_group: str = ""
    quantity: PlanActualDiff = field(default_factory=_zero)
    sales: PlanActualDiff = field(default_factory=_zero)
    cost_of_sales: PlanActualDiff = field(default_factory=_zero)
    gross_profit: PlanActualDiff = field(default_factory=_zero)
    sga: PlanActualDiff = field(default_factory=_zero)
    operating_profit: PlanActualDiff = field(default_factory=_zero)


@dataclass(frozen=True)
class ItemCostRecord:
    division: str = ""
    team: str = ""
    product: str = ""
    quantity: PlanActualDiff = field(default_factory=_zero)
    sales: PlanActualDiff = field(default_factory=_zero)
    cost_of_sales: PlanActualDiff = field(default_factory=_zero)
    costs: Mapping[str, PlanActualDiff] = field(default_factory=dict)
    gross_profit: PlanActualDiff = field(default_factory=_zero)
    contribution_margin: PlanActualDiff = field(default_factory=_zero)
    contribution_margin_ratio: PlanActualDiff = field(default_factory=_zero)

    def cost(self, category: str) -> PlanActualDiff:
        return self.costs.get(category, PlanActualDiff.zero())


@dataclass(frozen=True)
class AgingRecord:
    org: str = ""
    person: str = ""
    customer: str = ""
    customer_name: str = ""
    month1: float = 0.0
    month2: float = 0.0
    month3: float = 0.0
    month4: float = 0.0
    month5: float = 0.0
    month6: float = 0.0
    overdue: float = 0.0
    total: float = 0.0
    credit_limit: float | None = None

    @classmethod
    def from_buckets(
        cls,
        buckets: tuple[float, float, float, float, float, float, float] | list[float],
        **keys: str | float | None,
    ) -> AgingRecord:
        if len(buckets) != 7:
            raise ValueError("Aging buckets must be month1..month6 plus overdue.")
        m1, m2, m3, m4, m5, m6, overdue = (float(value) for value in buckets)
        return cls(
            month1=m1,
            month2=m2,
            month3=m3,
            month4=m4,
            month5=m5,
            month6=m6,
            overdue=overdue,
            total=m1 + m2 + m3 + m4 + m5 + m6 + overdue,
            **keys,
        )

    @property
    def buckets(self) -> tuple[float, ...]:
        return (
            self.month1,
            self.month2,
            self.month3,
            self.month4,
            self.month5,
            self.month6,
            self.overdue,
        )

    @property
    def long_overdue(self) -> float:
        """Amount aged three months or more."""
        return self.month3 + self.month4 + self.month5 + self.month6 + self.overdue


@dataclass(frozen=True)
class SalesRecord:
    date: str = ""
    customer: str = ""
    customer_name: str = ""
    amount: float = 0.0
    org: str = ""
    person: str = ""
    person_name: str = ""
    product: str = ""
    quantity: float = 0.0


@dataclass(frozen=True)
class OrderRecord:
    date: str = ""
    amount: float = 0.0
    org: str = ""
    person: str = ""
    person_name: str = ""


@dataclass(frozen=True)
class CollectionRecord:
    date: str = ""
    amount: float = 0.0
    org: str = ""
    person: str = ""


@dataclass(frozen=True)
class CustomerAggregate:
    customer: str
    name: str
    last_month: str
    first_month: str
    frequency: int
    monetary: float
    monthly: Mapping[str, float]
