from __future__ import annotations

from fastapi import APIRouter

from profitlens.api.deps import to_records
from profitlens.schemas.aggregation import (
    OrgProfitAggregateRequest,
    OrgProfitAggregateResponse,
    OrgProfitOut,
)
from profitlens.services.aggregation import aggregate_org_profit, aggregate_org_profit_leaves
from profitlens.services.filters import filter_by_org


router = APIRouter(tags=["aggregation"])


@router.post("/aggregation/org-profit", response_model=OrgProfitAggregateResponse)
def aggregate_org_profit_rows(payload: OrgProfitAggregateRequest) -> OrgProfitAggregateResponse:
    records = to_records(payload.records)
    merged = aggregate_org_profit_leaves(records) if payload.leaf_only else aggregate_org_profit(records)
    merged = filter_by_org(merged, payload.org_names, field="team")
    return OrgProfitAggregateResponse(
        items=[OrgProfitOut.model_validate(record) for record in merged],
        input_rows=len(records),
        output_rows=len(merged),
    )
