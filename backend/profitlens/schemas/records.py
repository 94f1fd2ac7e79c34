"""Request-side record shapes.

Field aliases follow the column headers of the source ledgers; the snake_case
names are accepted as well.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from profitlens.core.constants import COST_CATEGORIES_WITH_SUBTOTAL
from profitlens.models.records import (
    AgingRecord,
    CollectionRecord,
    ItemCostRecord,
    OrderRecord,
    OrgProfitRecord,
    PlanActualDiff,
    ProfitabilityRecord,
    SalesRecord,
    TeamContributionRecord,
)
from profitlens.schemas.common import ApiModel


class PlanActualIn(ApiModel):
    plan: float = Field(default=0.0, alias="계획")
    actual: float = Field(default=0.0, alias="실적")
    # Accepted for round-tripping source rows; always recomputed.
    diff: float | None = Field(default=None, alias="차이")

    def to_record(self) -> PlanActualDiff:
        return PlanActualDiff.of(self.plan, self.actual)


def _pad(alias: str) -> Any:
    return Field(default_factory=PlanActualIn, alias=alias)


def _record_kwargs(model: ApiModel) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, PlanActualIn):
            value = value.to_record()
        elif isinstance(value, dict):
            value = {key: item.to_record() for key, item in value.items()}
        values[name] = value
    return values


class OrgProfitIn(ApiModel):
    division: str = Field(default="", alias="판매사업본부")
    department: str = Field(default="", alias="판매사업부")
    team: str = Field(default="", alias="영업조직팀")
    sales: PlanActualIn = _pad("매출액")
    cost_of_sales: PlanActualIn = _pad("실적매출원가")
    gross_profit: PlanActualIn = _pad("매출총이익")
    direct_selling_freight: PlanActualIn = _pad("판관변동_직접판매운반비")
    freight: PlanActualIn = _pad("판관변동_운반비")
    sga: PlanActualIn = _pad("판매관리비")
    operating_profit: PlanActualIn = _pad("영업이익")
    contribution_margin: PlanActualIn = _pad("공헌이익")
    cost_of_sales_ratio: PlanActualIn = _pad("매출원가율")
    gross_margin_ratio: PlanActualIn = _pad("매출총이익율")
    sga_ratio: PlanActualIn = _pad("판관비율")
    operating_margin_ratio: PlanActualIn = _pad("영업이익율")
    contribution_margin_ratio: PlanActualIn = _pad("공헌이익율")

    def to_record(self) -> OrgProfitRecord:
        return OrgProfitRecord(**_record_kwargs(self))


class TeamContributionIn(ApiModel):
    group: str = Field(default="", alias="영업그룹")
    team: str = Field(default="", alias="영업조직팀")
    person: str = Field(default="", alias="영업담당사번")
    sales: PlanActualIn = _pad("매출액")
    cost_of_sales: PlanActualIn = _pad("실적매출원가")
    gross_profit: PlanActualIn = _pad("매출총이익")
    gross_margin_ratio: PlanActualIn = _pad("매출총이익율")
    direct_selling_freight: PlanActualIn = _pad("판관변동_직접판매운반비")
    sga: PlanActualIn = _pad("판매관리비")
    operating_profit: PlanActualIn = _pad("영업이익")
    operating_margin_ratio: PlanActualIn = _pad("영업이익율")
    sga_fixed_labor: PlanActualIn = _pad("판관고정_노무비")
    sga_fixed_depreciation: PlanActualIn = _pad("판관고정_감가상각비")
    sga_fixed_other: PlanActualIn = _pad("판관고정_기타경비")
    variable_cost_total: PlanActualIn = _pad("변동비합계")
    contribution_margin: PlanActualIn = _pad("공헌이익")
    contribution_margin_ratio: PlanActualIn = _pad("공헌이익율")
    variable_costs: dict[str, PlanActualIn] = Field(default_factory=dict, alias="변동비항목")

    def to_record(self) -> TeamContributionRecord:
        return TeamContributionRecord(**_record_kwargs(self))


class ProfitabilityIn(ApiModel):
    team: str = Field(default="", alias="영업조직팀")
    person: str = Field(default="", alias="영업담당사번")
    customer: str = Field(default="", alias="매출거래처")
    customer_name: str = Field(default="", alias="매출거래처명")
    product: str = Field(default="", alias="품목")
    product_name: str = Field(default="", alias="품목명")
    product_group: str = Field(default="", alias="제품군")
    quantity: PlanActualIn = _pad("매출수량")
    sales: PlanActualIn = _pad("매출액")
    cost_of_sales: PlanActualIn = _pad("실적매출원가")
    gross_profit: PlanActualIn = _pad("매출총이익")
    sga: PlanActualIn = _pad("판매관리비")
    operating_profit: PlanActualIn = _pad("영업이익")

    def to_record(self) -> ProfitabilityRecord:
        return ProfitabilityRecord(**_record_kwargs(self))


class ItemCostIn(ApiModel):
    division: str = Field(default="", alias="판매사업본부")
    team: str = Field(default="", alias="영업조직팀")
    product: str = Field(default="", alias="품목")
    quantity: PlanActualIn = _pad("매출수량")
    sales: PlanActualIn = _pad("매출액")
    cost_of_sales: PlanActualIn = _pad("실적매출원가")
    costs: dict[str, PlanActualIn] = Field(default_factory=dict, alias="원가항목")
    gross_profit: PlanActualIn = _pad("매출총이익")
    contribution_margin: PlanActualIn = _pad("공헌이익")
    contribution_margin_ratio: PlanActualIn = _pad("공헌이익율")

    @model_validator(mode="before")
    @classmethod
    def collect_cost_columns(cls, data: Any) -> Any:
        # Source rows carry one column per cost category.
        if not isinstance(data, dict):
            return data
        flat = {key: data[key] for key in COST_CATEGORIES_WITH_SUBTOTAL if key in data}
        if not flat:
            return data
        merged = {key: value for key, value in data.items() if key not in flat}
        costs = dict(merged.get("원가항목") or merged.get("costs") or {})
        costs.update(flat)
        merged.pop("costs", None)
        merged["원가항목"] = costs
        return merged

    def to_record(self) -> ItemCostRecord:
        return ItemCostRecord(**_record_kwargs(self))


class AgingIn(ApiModel):
    org: str = Field(default="", alias="영업조직")
    person: str = Field(default="", alias="담당자")
    customer: str = Field(default="", alias="판매처")
    customer_name: str = Field(default="", alias="판매처명")
    month1: float = 0.0
    month2: float = 0.0
    month3: float = 0.0
    month4: float = 0.0
    month5: float = 0.0
    month6: float = 0.0
    overdue: float = 0.0
    total: float | None = Field(default=None, alias="합계")
    credit_limit: float | None = Field(default=None, alias="여신한도")

    def to_record(self) -> AgingRecord:
        values = _record_kwargs(self)
        if self.total is None:
            values["total"] = sum(
                (self.month1, self.month2, self.month3, self.month4, self.month5, self.month6, self.overdue)
            )
        return AgingRecord(**values)


class SalesIn(ApiModel):
    date: str | int | float = Field(default="", alias="매출일")
    customer: str = Field(default="", alias="매출처")
    customer_name: str = Field(default="", alias="매출처명")
    amount: float = Field(default=0.0, alias="장부금액")
    org: str = Field(default="", alias="영업조직")
    person: str = Field(default="", alias="영업담당자")
    person_name: str = Field(default="", alias="영업담당자명")
    product: str = Field(default="", alias="품목")
    quantity: float = Field(default=0.0, alias="수량")

    def to_record(self) -> SalesRecord:
        values = _record_kwargs(self)
        values["date"] = str(self.date)
        return SalesRecord(**values)


class OrderIn(ApiModel):
    date: str | int | float = Field(default="", alias="수주일")
    amount: float = Field(default=0.0, alias="장부금액")
    org: str = Field(default="", alias="영업조직")
    person: str = Field(default="", alias="영업담당자")
    person_name: str = Field(default="", alias="영업담당자명")

    def to_record(self) -> OrderRecord:
        values = _record_kwargs(self)
        values["date"] = str(self.date)
        return OrderRecord(**values)


class CollectionIn(ApiModel):
    date: str | int | float = Field(default="", alias="수금일")
    amount: float = Field(default=0.0, alias="장부수금액")
    org: str = Field(default="", alias="영업조직")
    person: str = Field(default="", alias="영업담당자")

    def to_record(self) -> CollectionRecord:
        values = _record_kwargs(self)
        values["date"] = str(self.date)
        return CollectionRecord(**values)
