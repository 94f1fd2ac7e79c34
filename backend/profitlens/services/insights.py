from __future__ import annotations

from dataclasses import dataclass

from profitlens.core.constants import (
    CCC_FAIR_MAX,
    COLLECTION_RATE_CRITICAL,
    COLLECTION_RATE_POSITIVE,
    COLLECTION_RATE_WARNING,
    CONTRIBUTION_RATE_WARNING,
    DSO_CRITICAL_DAYS,
    DSO_EXCELLENT_MAX,
    DSO_FAIR_MAX,
    FORECAST_ACCURACY_POSITIVE,
    FORECAST_ACCURACY_WARNING,
    INSIGHT_SEVERITY_ORDER,
    OP_RATE_POSITIVE,
    OP_RATE_WARNING,
    PLAN_ACHIEVEMENT_WARNING,
)
from profitlens.models.enums import InsightSeverity
from profitlens.services.kpi import OverviewKpis


@dataclass(frozen=True)
class Insight:
    code: str
    title: str
    message: str
    severity: InsightSeverity
    category: str
    metric: str | None = None
    value: float | None = None


@dataclass(frozen=True)
class InsightInput:
    kpis: OverviewKpis
    net_collection_rate: float | None = None
    dso: float | None = None
    ccc: float | None = None
    forecast_accuracy: float | None = None
    contribution_margin_rate: float | None = None


def _collection_insight(rate: float) -> Insight | None:
    if rate >= COLLECTION_RATE_POSITIVE:
        return Insight(
            code="col-high",
            title="순수 수금율 우수",
            message=f"순수 수금율 {rate:.1f}%로 매우 양호합니다 (선수금 제외 기준).",
            severity=InsightSeverity.positive,
            category="수금",
            metric="net_collection_rate",
            value=rate,
        )
    if rate < COLLECTION_RATE_CRITICAL:
        return Insight(
            code="col-low",
            title="순수 수금율 저조 경고",
            message=(
                f"순수 수금율 {rate:.1f}%로 목표({COLLECTION_RATE_CRITICAL:.0f}%) 미달입니다 (선수금 제외 기준). "
                "연체 거래처 집중 관리가 필요합니다."
            ),
            severity=InsightSeverity.critical,
            category="수금",
            metric="net_collection_rate",
            value=rate,
        )
    if rate < COLLECTION_RATE_WARNING:
        return Insight(
            code="col-med",
            title="순수 수금율 주의",
            message=f"순수 수금율 {rate:.1f}%로 개선이 필요합니다 (선수금 제외 기준).",
            severity=InsightSeverity.warning,
            category="수금",
            metric="net_collection_rate",
            value=rate,
        )
    return None


def _operating_profit_insight(rate: float) -> Insight | None:
    if rate < 0:
        return Insight(
            code="op-neg",
            title="영업적자 발생",
            message=f"영업이익율 {rate:.1f}%로 적자 상태입니다. 비용 구조 점검이 시급합니다.",
            severity=InsightSeverity.critical,
            category="수익성",
            metric="operating_profit_rate",
            value=rate,
        )
    if rate < OP_RATE_WARNING:
        return Insight(
            code="op-low",
            title="영업이익율 저조",
            message=f"영업이익율 {rate:.1f}%로 수익성 개선이 필요합니다. 원가절감 또는 고마진 제품 확대를 검토하세요.",
            severity=InsightSeverity.warning,
            category="수익성",
            metric="operating_profit_rate",
            value=rate,
        )
    if rate >= OP_RATE_POSITIVE:
        return Insight(
            code="op-high",
            title="영업이익율 양호",
            message=f"영업이익율 {rate:.1f}%로 수익성이 양호합니다.",
            severity=InsightSeverity.positive,
            category="수익성",
            metric="operating_profit_rate",
            value=rate,
        )
    return None


def _plan_insight(achievement: float) -> Insight | None:
    if achievement >= 100:
        return Insight(
            code="plan-over",
            title="매출 계획 초과 달성",
            message=f"매출계획달성률 {achievement:.1f}%로 목표를 초과 달성했습니다.",
            severity=InsightSeverity.positive,
            category="매출",
            metric="sales_plan_achievement",
            value=achievement,
        )
    if achievement < PLAN_ACHIEVEMENT_WARNING:
        return Insight(
            code="plan-low",
            title="매출 계획 미달",
            message=(
                f"매출계획달성률 {achievement:.1f}%로 목표({PLAN_ACHIEVEMENT_WARNING:.0f}%) 미달입니다. "
                "영업 활동 강화가 필요합니다."
            ),
            severity=InsightSeverity.warning,
            category="매출",
            metric="sales_plan_achievement",
            value=achievement,
        )
    return None


def _dso_insight(dso: float) -> Insight | None:
    if dso > DSO_CRITICAL_DAYS:
        return Insight(
            code="dso-high",
            title="DSO 과다",
            message=f"매출채권 회수기간 {dso:.0f}일로 매우 길어 현금흐름에 부정적입니다. 채권 회수 속도 개선이 시급합니다.",
            severity=InsightSeverity.critical,
            category="미수금",
            metric="dso",
            value=dso,
        )
    if dso > DSO_FAIR_MAX:
        return Insight(
            code="dso-med",
            title="DSO 주의",
            message=f"매출채권 회수기간 {dso:.0f}일로 업종 평균({DSO_FAIR_MAX}일) 이상입니다.",
            severity=InsightSeverity.warning,
            category="미수금",
            metric="dso",
            value=dso,
        )
    if dso <= DSO_EXCELLENT_MAX:
        return Insight(
            code="dso-low",
            title="DSO 우수",
            message=f"매출채권 회수기간 {dso:.0f}일로 현금 회수가 빠릅니다.",
            severity=InsightSeverity.positive,
            category="미수금",
            metric="dso",
            value=dso,
        )
    return None


def _ccc_insight(ccc: float) -> Insight | None:
    if ccc < 0:
        return Insight(
            code="ccc-neg",
            title="현금전환주기 우수",
            message=f"CCC {ccc:.0f}일로 매입 결제 전에 매출 회수가 이루어지고 있습니다.",
            severity=InsightSeverity.positive,
            category="수금",
            metric="ccc",
            value=ccc,
        )
    if ccc > CCC_FAIR_MAX:
        return Insight(
            code="ccc-high",
            title="현금전환주기 주의",
            message=f"CCC {ccc:.0f}일로 운전자본 부담이 큽니다. DSO 단축과 DPO 연장을 동시에 추진하세요.",
            severity=InsightSeverity.warning,
            category="수금",
            metric="ccc",
            value=ccc,
        )
    return None


def _forecast_insight(accuracy: float) -> Insight | None:
    if accuracy < FORECAST_ACCURACY_WARNING:
        return Insight(
            code="fc-low",
            title="예측 정확도 저조",
            message=f"매출 예측 정확도 {accuracy:.1f}%로 계획 수립 프로세스 개선이 필요합니다.",
            severity=InsightSeverity.warning,
            category="매출",
            metric="forecast_accuracy",
            value=accuracy,
        )
    if accuracy >= FORECAST_ACCURACY_POSITIVE:
        return Insight(
            code="fc-high",
            title="예측 정확도 우수",
            message=f"매출 예측 정확도 {accuracy:.1f}%로 계획 신뢰도가 높습니다.",
            severity=InsightSeverity.positive,
            category="매출",
            metric="forecast_accuracy",
            value=accuracy,
        )
    return None


def _contribution_insight(rate: float) -> Insight | None:
    if rate < CONTRIBUTION_RATE_WARNING:
        return Insight(
            code="cm-low",
            title="공헌이익률 저조",
            message=f"공헌이익률 {rate:.1f}%로 고정비 회수가 어려울 수 있습니다.",
            severity=InsightSeverity.warning,
            category="수익성",
            metric="contribution_margin_rate",
            value=rate,
        )
    return None


def generate_insights(data: InsightInput) -> list[Insight]:
    """Rule-based findings, critical first and positive last.

    Optional metrics that were not supplied produce no finding. The net
    collection rate (excluding prepayments) takes precedence over the gross
    rate from the KPIs.
    """
    collection_rate = (
        data.net_collection_rate if data.net_collection_rate is not None else data.kpis.collection_rate
    )
    candidates = [
        _collection_insight(collection_rate),
        _operating_profit_insight(data.kpis.operating_profit_rate),
        _plan_insight(data.kpis.sales_plan_achievement),
    ]
    if data.dso is not None:
        candidates.append(_dso_insight(data.dso))
    if data.ccc is not None:
        candidates.append(_ccc_insight(data.ccc))
    if data.forecast_accuracy is not None:
        candidates.append(_forecast_insight(data.forecast_accuracy))
    if data.contribution_margin_rate is not None:
        candidates.append(_contribution_insight(data.contribution_margin_rate))

    insights = [item for item in candidates if item is not None]
    insights.sort(key=lambda item: INSIGHT_SEVERITY_ORDER[item.severity.value])
    return insights
