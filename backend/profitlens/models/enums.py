import enum


class RiskLevel(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ChurnRisk(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class RfmSegment(str, enum.Enum):
    vip = "VIP"
    loyal = "Loyal"
    potential = "Potential"
    at_risk = "At-risk"
    dormant = "Dormant"
    lost = "Lost"


class CycleGrade(str, enum.Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"


class CreditStatus(str, enum.Enum):
    normal = "normal"
    warning = "warning"
    danger = "danger"


class TrendDirection(str, enum.Enum):
    up = "up"
    down = "down"
    flat = "flat"


class AnomalyType(str, enum.Enum):
    upper = "upper"
    lower = "lower"


class PlanDataQuality(str, enum.Enum):
    none = "none"
    poor = "poor"
    partial = "partial"
    good = "good"


class InsightSeverity(str, enum.Enum):
    critical = "critical"
    warning = "warning"
    neutral = "neutral"
    positive = "positive"


class CostDirection(str, enum.Enum):
    increase = "increase"
    decrease = "decrease"
    neutral = "neutral"


class WaterfallBarType(str, enum.Enum):
    start = "start"
    decrease = "decrease"
    increase = "increase"
    subtotal = "subtotal"


class ParetoGrade(str, enum.Enum):
    a = "A"
    b = "B"
    c = "C"


class Momentum(str, enum.Enum):
    accelerating = "accelerating"
    stable = "stable"
    decelerating = "decelerating"
