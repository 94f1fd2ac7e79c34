from profitlens.models.enums import (
    AnomalyType,
    ChurnRisk,
    CostDirection,
    CreditStatus,
    CycleGrade,
    InsightSeverity,
    Momentum,
    ParetoGrade,
    PlanDataQuality,
    RfmSegment,
    RiskLevel,
    TrendDirection,
    WaterfallBarType,
)
from profitlens.models.records import (
    AgingRecord,
    CollectionRecord,
    CustomerAggregate,
    ItemCostRecord,
    OrderRecord,
    OrgProfitRecord,
    PlanActualDiff,
    ProfitabilityRecord,
    SalesRecord,
    TeamContributionRecord,
)

__all__ = [
    "AnomalyType",
    "ChurnRisk",
    "CostDirection",
    "CreditStatus",
    "CycleGrade",
    "InsightSeverity",
    "Momentum",
    "ParetoGrade",
    "PlanDataQuality",
    "RfmSegment",
    "RiskLevel",
    "TrendDirection",
    "WaterfallBarType",
    "AgingRecord",
    "CollectionRecord",
    "CustomerAggregate",
    "ItemCostRecord",
    "OrderRecord",
    "OrgProfitRecord",
    "PlanActualDiff",
    "ProfitabilityRecord",
    "SalesRecord",
    "TeamContributionRecord",
]
