from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from profitlens.models.records import SalesRecord
from profitlens.services.aggregation import build_customer_aggregates
from profitlens.utils.months import extract_month, month_range
from profitlens.utils.numbers import safe_pct


@dataclass(frozen=True)
class CohortCell:
    cohort_month: str
    period_month: str
    period_index: int
    active_customers: int
    total_customers: int
    retention_rate: float
    revenue: float


@dataclass(frozen=True)
class CohortSummary:
    month: str
    size: int
    first_month_revenue: float


@dataclass(frozen=True)
class CohortAnalysis:
    cells: list[CohortCell] = field(default_factory=list)
    cohorts: list[CohortSummary] = field(default_factory=list)
    avg_retention_by_period: list[dict[str, float]] = field(default_factory=list)

    def matrix(self) -> list[list[float]]:
        """Retention rates per cohort row; row ``k`` is shorter than row ``k - 1``."""
        rows: dict[str, list[float]] = {}
        for cell in self.cells:
            rows.setdefault(cell.cohort_month, []).append(cell.retention_rate)
        return [rows[summary.month] for summary in self.cohorts]


def calc_cohort_analysis(sales: Iterable[SalesRecord]) -> CohortAnalysis:
    """First-purchase-month cohorts and their repeat activity.

    Every cohort gets a cell for each month from its start through the last
    month in the data, so inactive months appear as zero retention.
    """
    dated = [row for row in sales if extract_month(row.date)]
    customers = build_customer_aggregates(dated)
    if not customers:
        return CohortAnalysis()

    last_month = max(customer.last_month for customer in customers)
    cohorts: dict[str, list] = {}
    for customer in customers:
        cohorts.setdefault(customer.first_month, []).append(customer)

    cells: list[CohortCell] = []
    summaries: list[CohortSummary] = []
    period_weights: dict[int, list[float]] = {}
    for cohort_month in sorted(cohorts):
        members = cohorts[cohort_month]
        size = len(members)
        for period_index, period_month in enumerate(month_range(cohort_month, last_month)):
            active = [member for member in members if period_month in member.monthly]
            rate = safe_pct(len(active), size)
            revenue = sum(member.monthly[period_month] for member in active)
            cells.append(
                CohortCell(
                    cohort_month=cohort_month,
                    period_month=period_month,
                    period_index=period_index,
                    active_customers=len(active),
                    total_customers=size,
                    retention_rate=rate,
                    revenue=revenue,
                )
            )
            weights = period_weights.setdefault(period_index, [0.0, 0.0])
            weights[0] += rate * size
            weights[1] += size
            if period_index == 0:
                summaries.append(CohortSummary(month=cohort_month, size=size, first_month_revenue=revenue))

    curve = [
        {"period": period, "rate": weighted / total if total else 0.0}
        for period, (weighted, total) in sorted(period_weights.items())
    ]
    return CohortAnalysis(cells=cells, cohorts=summaries, avg_retention_by_period=curve)
