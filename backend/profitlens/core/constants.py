"""Classification tables and fixed thresholds used by the analytics services."""

from __future__ import annotations


# ── concentration ──
HHI_HIGH = 0.25
HHI_MEDIUM = 0.15

# ── performance scoring ──
SCORE_TOTAL = 100.0
SCORE_AXES = ("sales", "profit", "collection", "growth", "diversity")

# ── RFM ──
RFM_MISSING_RECENCY = 999
RFM_SEGMENT_ORDER = ("VIP", "Loyal", "Potential", "At-risk", "Dormant", "Lost")
RFM_SEGMENT_ACTIONS: dict[str, dict[str, str]] = {
    "VIP": {
        "action": "VIP 전용 혜택 유지",
        "description": "개인화된 서비스와 우선 지원으로 이탈 방지",
        "priority": "high",
    },
    "Loyal": {
        "action": "크로스셀/업셀 추진",
        "description": "신규 제품군 제안 및 주문량 확대 유도",
        "priority": "high",
    },
    "Potential": {
        "action": "육성 프로그램 적용",
        "description": "정기 방문 및 샘플 제공으로 거래 빈도 증가 유도",
        "priority": "medium",
    },
    "At-risk": {
        "action": "긴급 리텐션 캠페인",
        "description": "할인 또는 특별 조건 제안, 이탈 원인 파악",
        "priority": "high",
    },
    "Dormant": {
        "action": "재활성화 캠페인",
        "description": "한정 프로모션으로 재구매 유도",
        "priority": "medium",
    },
    "Lost": {
        "action": "원인 분석 후 선별 접근",
        "description": "이탈 원인 분석, ROI 높은 고객만 선별 재접근",
        "priority": "low",
    },
}
RFM_DEFAULT_ACTION = {"action": "모니터링", "description": "정기적인 거래 현황 모니터링", "priority": "low"}

# ── churn ──
# (minimum months since last purchase, points, signal)
CHURN_RECENCY_TIERS: tuple[tuple[int, int, str], ...] = (
    (12, 40, "12개월 이상 미거래"),
    (9, 30, "9~11개월 미거래"),
    (6, 20, "6~8개월 미거래"),
    (3, 10, "3~5개월 미거래"),
)
# (maximum transaction count, points, signal)
CHURN_FREQUENCY_TIERS: tuple[tuple[int, int, str], ...] = (
    (1, 30, "단발 거래"),
    (3, 15, "거래 빈도 낮음"),
)
CHURN_DECLINE_MIN_MONTHS = 3
CHURN_DECLINE_TRIGGER = 0.8
CHURN_DECLINE_SEVERE_PCT = 50.0
CHURN_DECLINE_SEVERE_POINTS = 30
CHURN_DECLINE_POINTS = 20
CHURN_MAX_SCORE = 100
# (minimum score, tier), checked in order
CHURN_TIERS: tuple[tuple[int, str], ...] = (
    (60, "critical"),
    (40, "high"),
    (20, "medium"),
)

# ── CLV ──
CLV_DEFAULT_MARGIN = 0.10
CLV_MARGIN_FLOOR = -0.5
CLV_MARGIN_CEILING = 1.0
CLV_BASE_LIFESPAN_YEARS = 3.0
CLV_RETENTION_WEIGHT = 0.8
CLV_RETENTION_FLOOR = 0.2
CLV_MIN_TRANSACTIONS = 2

# ── time series ──
IQR_MULTIPLIER = 1.5
ANOMALY_MIN_POINTS = 4
ANOMALY_TOP_CONTRIBUTORS = 5
FORECAST_Z_95 = 1.96
TREND_THRESHOLD_RATIO = 0.01
MOVING_AVERAGE_WINDOWS = (3, 6)

# ── working capital ──
DAYS_PER_MONTH = 30
DSO_EXCELLENT_MAX = 30
DSO_GOOD_MAX = 45
DSO_FAIR_MAX = 60
# (minimum cost-of-sales ratio, estimated DPO days), checked in order
DPO_TIERS: tuple[tuple[float, int], ...] = ((0.8, 45), (0.6, 35))
DPO_DEFAULT_DAYS = 30
CCC_GOOD_MAX = 30
CCC_FAIR_MAX = 60

# ── aging / credit ──
AGING_HIGH_OVERDUE_RATIO = 0.5
AGING_MEDIUM_OVERDUE_RATIO = 0.2
AGING_HIGH_OVERDUE_AMOUNT = 100_000_000
AGING_MEDIUM_OVERDUE_AMOUNT = 50_000_000
CREDIT_DANGER_PCT = 100.0
CREDIT_WARNING_PCT = 80.0
# (minimum normal-bucket share in %, grade)
RECEIVABLE_EFFICIENCY_GRADES: tuple[tuple[float, str], ...] = ((80.0, "A"), (60.0, "B"), (40.0, "C"))

# ── break-even ──
BREAKEVEN_CHART_POINTS = 21

# ── cost taxonomy ──
VARIABLE_COST_CATEGORIES: tuple[str, ...] = (
    "원재료비",
    "부재료비",
    "상품매입",
    "노무비",
    "복리후생비",
    "소모품비",
    "수도광열비",
    "수선비",
    "연료비",
    "외주가공비",
    "운반비",
    "전력비",
    "지급수수료",
    "견본비",
)
FIXED_COST_CATEGORIES: tuple[str, ...] = ("제조고정노무비", "감가상각비", "기타경비")
COST_CATEGORIES: tuple[str, ...] = VARIABLE_COST_CATEGORIES + FIXED_COST_CATEGORIES
VARIABLE_SUBTOTAL = "제조변동비소계"
FIXED_SUBTOTAL = "제조고정비소계"
SUBTOTAL_CATEGORIES: tuple[str, ...] = (VARIABLE_SUBTOTAL, FIXED_SUBTOTAL)
COST_CATEGORIES_WITH_SUBTOTAL: tuple[str, ...] = (
    VARIABLE_COST_CATEGORIES + (VARIABLE_SUBTOTAL,) + FIXED_COST_CATEGORIES + (FIXED_SUBTOTAL,)
)
COST_BUCKETS: dict[str, tuple[str, ...]] = {
    "재료비": ("원재료비", "부재료비"),
    "상품매입비": ("상품매입",),
    "인건비": ("노무비", "복리후생비", "제조고정노무비"),
    "설비비": ("수도광열비", "전력비", "연료비", "감가상각비"),
    "외주비": ("외주가공비",),
    "물류비": ("운반비",),
    "일반경비": ("소모품비", "수선비", "지급수수료", "견본비", "기타경비"),
}

# ── plan vs actual ──
PLAN_COVERAGE_POOR_PCT = 30.0
PLAN_COVERAGE_PARTIAL_PCT = 70.0

# ── profitability ──
PARETO_A_MAX_PCT = 80.0
PARETO_B_MAX_PCT = 95.0

# contribution ranking drops one grade below this rate
LOW_CONTRIBUTION_RATE_PCT = 15.0

# ── insights ──
INSIGHT_SEVERITY_ORDER = {"critical": 0, "warning": 1, "neutral": 2, "positive": 3}
COLLECTION_RATE_CRITICAL = 70.0
COLLECTION_RATE_WARNING = 85.0
COLLECTION_RATE_POSITIVE = 95.0
OP_RATE_WARNING = 5.0
OP_RATE_POSITIVE = 10.0
PLAN_ACHIEVEMENT_WARNING = 80.0
DSO_CRITICAL_DAYS = 90
FORECAST_ACCURACY_WARNING = 70.0
FORECAST_ACCURACY_POSITIVE = 90.0
CONTRIBUTION_RATE_WARNING = 20.0
