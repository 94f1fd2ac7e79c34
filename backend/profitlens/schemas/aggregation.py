from __future__ import annotations

from pydantic import Field

from profitlens.schemas.common import Amount, ApiModel, ResultModel
from profitlens.schemas.records import OrgProfitIn


class PlanActualOut(ResultModel):
    plan: Amount
    actual: Amount
    diff: Amount


class OrgProfitOut(ResultModel):
    division: str
    department: str
    team: str
    sales: PlanActualOut
    cost_of_sales: PlanActualOut
    gross_profit: PlanActualOut
    direct_selling_freight: PlanActualOut
    freight: PlanActualOut
    sga: PlanActualOut
    operating_profit: PlanActualOut
    contribution_margin: PlanActualOut
    cost_of_sales_ratio: PlanActualOut
    gross_margin_ratio: PlanActualOut
    sga_ratio: PlanActualOut
    operating_margin_ratio: PlanActualOut
    contribution_margin_ratio: PlanActualOut


class OrgProfitAggregateRequest(ApiModel):
    records: list[OrgProfitIn] = Field(default_factory=list)
    leaf_only: bool = True
    org_names: list[str] = Field(default_factory=list)


class OrgProfitAggregateResponse(ResultModel):
    items: list[OrgProfitOut]
    input_rows: int
    output_rows: int
