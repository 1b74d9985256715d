"""Report assembly: compose stage outputs into the AnalysisReport handed to callers."""

from collections.abc import Mapping
from datetime import datetime, timezone

from foodguard.models.responses import AnalysisReport, DetectorSummary
from foodguard.models.schemas.alert import SafetyAlert
from foodguard.models.schemas.detector_result import (
    NEUTRAL_FALLBACK_SCORE,
    DetectorResult,
    DetectorResultSet,
    DetectorStatus,
)
from foodguard.models.schemas.recommendation import Recommendation
from foodguard.models.schemas.rules import RuleTables
from foodguard.models.schemas.verdict import OverallVerdict


def _headline(result: DetectorResult) -> str:
    if result.status == DetectorStatus.FALLBACK:
        return f"analysis unavailable, neutral score {NEUTRAL_FALLBACK_SCORE} applied"
    if result.status == DetectorStatus.ERROR:
        return "analysis failed"
    if result.class_label is not None:
        return f"{result.class_label.replace('_', ' ')} ({result.confidence:.0%} confidence)"
    return f"health score {result.raw_score:.0f}/100"


def _summarize(
    result: DetectorResult, verdict: OverallVerdict, display_names: Mapping[str, str]
) -> DetectorSummary:
    return DetectorSummary(
        detector_id=result.detector_id,
        display_name=display_names.get(result.detector_id, result.detector_id),
        status=result.status,
        score=verdict.per_detector_score.get(result.detector_id, round(result.effective_score)),
        confidence=result.confidence,
        class_label=result.class_label,
        profile=result.profile,
        findings=result.findings,
        headline=_headline(result),
    )


def assemble_report(
    result_set: DetectorResultSet,
    verdict: OverallVerdict,
    alerts: tuple[SafetyAlert, ...],
    recommendations: tuple[Recommendation, ...],
    insights: tuple[str, ...],
    rules: RuleTables,
    *,
    display_names: Mapping[str, str] | None = None,
    generated_at: datetime | None = None,
) -> AnalysisReport:
    """Pure composition, no I/O. Pass ``generated_at`` for reproducible output."""
    names = display_names or {}
    summaries = tuple(_summarize(r, verdict, names) for r in result_set.results)
    return AnalysisReport(
        verdict=verdict,
        overall_recommendation=rules.recommendations.verdict_messages.get(verdict.safety_level, ""),
        detector_summaries=summaries,
        detector_status=result_set.status_map(),
        alerts=alerts,
        recommendations=recommendations,
        health_insights=insights,
        degraded=any(not r.is_ok for r in result_set.results),
        config_version=rules.config_version,
        generated_at=generated_at or datetime.now(timezone.utc),
    )
