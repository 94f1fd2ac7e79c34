from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import math

from profitlens.core.constants import (
    RFM_DEFAULT_ACTION,
    RFM_MISSING_RECENCY,
    RFM_SEGMENT_ACTIONS,
    RFM_SEGMENT_ORDER,
)
from profitlens.models.enums import RfmSegment
from profitlens.models.records import SalesRecord
from profitlens.services.aggregation import build_customer_aggregates, latest_month
from profitlens.utils.months import months_between
from profitlens.utils.numbers import safe_pct


@dataclass(frozen=True)
class RfmScore:
    customer: str
    customer_name: str
    recency: int
    frequency: int
    monetary: float
    r_score: int
    f_score: int
    m_score: int
    segment: RfmSegment

    @property
    def total_score(self) -> int:
        return self.r_score + self.f_score + self.m_score


@dataclass(frozen=True)
class RfmSegmentSummary:
    segment: RfmSegment
    count: int
    total_sales: float
    avg_sales: float
    share: float
    action: str
    description: str
    priority: str


def quintile_score(position: int, count: int) -> int:
    """Score the ``position``-th smallest of ``count`` values on a 1..5 scale.

    Fewer than five values are spread evenly (n=2 -> 1,5; n=3 -> 1,3,5) and a
    single value gets 3.
    """
    if count == 1:
        return 3
    if count < 5:
        return int(math.floor(1 + position / (count - 1) * 4 + 0.5))
    return min(5, int(position / count * 5) + 1)


def assign_quintiles(values: list[float], invert: bool = False) -> list[int]:
    order = sorted(range(len(values)), key=lambda index: values[index])
    scores = [0] * len(values)
    for position, index in enumerate(order):
        score = quintile_score(position, len(values))
        scores[index] = 6 - score if invert else score
    return scores


def classify_rfm_segment(r: int, f: int, m: int) -> RfmSegment:
    if r >= 4 and f >= 4 and m >= 4:
        return RfmSegment.vip
    if f >= 3 and m >= 3:
        return RfmSegment.loyal
    if r >= 4 and m >= 2 and f < 3:
        return RfmSegment.potential
    if r <= 2 and f >= 3:
        return RfmSegment.at_risk
    if r <= 2 and f <= 2 and m >= 3:
        return RfmSegment.dormant
    if r <= 2 and f <= 2 and m <= 2:
        return RfmSegment.lost
    return RfmSegment.potential


def calc_rfm_scores(sales: Iterable[SalesRecord]) -> list[RfmScore]:
    sales = list(sales)
    reference = latest_month(sales)
    if not reference:
        return []
    customers = build_customer_aggregates(sales)
    if not customers:
        return []

    recency = [
        months_between(customer.last_month, reference) if customer.last_month else RFM_MISSING_RECENCY
        for customer in customers
    ]
    r_scores = assign_quintiles([float(value) for value in recency], invert=True)
    f_scores = assign_quintiles([float(customer.frequency) for customer in customers])
    m_scores = assign_quintiles([customer.monetary for customer in customers])

    results = [
        RfmScore(
            customer=customer.customer,
            customer_name=customer.name,
            recency=recency[index],
            frequency=customer.frequency,
            monetary=customer.monetary,
            r_score=r_scores[index],
            f_score=f_scores[index],
            m_score=m_scores[index],
            segment=classify_rfm_segment(r_scores[index], f_scores[index], m_scores[index]),
        )
        for index, customer in enumerate(customers)
    ]
    results.sort(key=lambda item: (-item.total_score, -item.monetary))
    return results


def summarize_rfm_segments(scores: Iterable[RfmScore]) -> list[RfmSegmentSummary]:
    scores = list(scores)
    if not scores:
        return []
    grouped: dict[RfmSegment, dict[str, float]] = {}
    for score in scores:
        entry = grouped.setdefault(score.segment, {"count": 0, "total": 0.0})
        entry["count"] += 1
        entry["total"] += score.monetary
    grand_total = sum(score.monetary for score in scores)

    summaries: list[RfmSegmentSummary] = []
    for segment in sorted(grouped, key=lambda item: RFM_SEGMENT_ORDER.index(item.value)):
        entry = grouped[segment]
        action = RFM_SEGMENT_ACTIONS.get(segment.value, RFM_DEFAULT_ACTION)
        summaries.append(
            RfmSegmentSummary(
                segment=segment,
                count=int(entry["count"]),
                total_sales=entry["total"],
                avg_sales=entry["total"] / entry["count"],
                share=safe_pct(entry["total"], grand_total),
                action=action["action"],
                description=action["description"],
                priority=action["priority"],
            )
        )
    return summaries
