"""Analysis engine: the single entry point wiring all stages together.

Pipeline:
1. Image validation (the only step that can fail the call)
2. Detector fan-out on the engine's thread pool
3. Aggregation into an OverallVerdict
4. Alerts, recommendations and health insights from the frozen result set
5. Report assembly
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from foodguard.config import Settings, settings
from foodguard.errors import PreconditionError
from foodguard.models.responses import AnalysisReport
from foodguard.models.schemas.detector_result import DetectorResultSet
from foodguard.models.schemas.recommendation import UserHealthProfile
from foodguard.models.schemas.rules import RuleTables
from foodguard.services.image_input import validate_image
from foodguard.services.pipeline.aggregator import compute_overall_score
from foodguard.services.pipeline.alerts import generate_alerts
from foodguard.services.pipeline.detector_registry import DetectorRegistry, build_default_registry
from foodguard.services.pipeline.orchestrator import DetectorExecutor, run_detectors
from foodguard.services.pipeline.recommendations import (
    generate_health_insights,
    generate_recommendations,
)
from foodguard.services.pipeline.report import assemble_report
from foodguard.services.rules import load_rule_tables

logger = logging.getLogger(__name__)

ProfileLike = UserHealthProfile | Mapping[str, Any] | None


def _coerce_profile(profile: ProfileLike) -> UserHealthProfile | None:
    if profile is None or isinstance(profile, UserHealthProfile):
        return profile
    try:
        return UserHealthProfile.model_validate(dict(profile))
    except (TypeError, ValueError) as e:
        raise PreconditionError(f"invalid health profile: {e}") from e


class AnalysisEngine:
    """Owns the detector registry, the rule tables and the worker pool.

    Holds no per-request state; one engine serves concurrent analyze() calls.
    """

    def __init__(
        self,
        registry: DetectorRegistry,
        rules: RuleTables,
        *,
        task_timeout: float = 10.0,
        request_deadline: float | None = 30.0,
        max_workers: int = 8,
        max_recommendations: int = 10,
    ) -> None:
        self.registry = registry
        self.rules = rules
        self.weights = registry.validate(rules)
        self.task_timeout = task_timeout
        self.request_deadline = request_deadline
        self.max_recommendations = max_recommendations
        self._executor = DetectorExecutor(max_workers=max_workers)
        self._closed = False

    async def analyze(self, image: Any, profile: ProfileLike = None) -> AnalysisReport:
        """Run every detector on ``image`` and build the report.

        Raises PreconditionError for an invalid image or profile. Detector
        failures never raise; they show up as fallback/error statuses.
        """
        if self._closed:
            raise RuntimeError("analysis engine is closed")
        food_image = validate_image(image)
        health_profile = _coerce_profile(profile)

        result_set = await run_detectors(
            food_image,
            self.registry,
            self._executor,
            task_timeout=self.task_timeout,
            deadline=self.request_deadline,
        )
        report = self.evaluate(result_set, health_profile)
        logger.info(
            "Analysis complete: score=%d level=%s alerts=%d degraded=%s",
            report.verdict.score,
            report.verdict.safety_level.value,
            len(report.alerts),
            report.degraded,
        )
        return report

    def evaluate(
        self,
        result_set: DetectorResultSet,
        profile: ProfileLike = None,
        generated_at: datetime | None = None,
    ) -> AnalysisReport:
        """Pure half of analyze(): everything after fan-in, no I/O."""
        health_profile = _coerce_profile(profile)
        recs = self.rules.recommendations

        verdict = compute_overall_score(result_set, self.weights)
        alerts = generate_alerts(result_set, self.rules.criticality)
        recommendations = generate_recommendations(
            result_set, verdict, recs, health_profile, limit=self.max_recommendations
        )
        insights = generate_health_insights(result_set, recs)
        return assemble_report(
            result_set,
            verdict,
            alerts,
            recommendations,
            insights,
            self.rules,
            display_names={d.detector_id: d.display_name for d in self.registry.detectors()},
            generated_at=generated_at,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Analysis engine closed")

    def __enter__(self) -> "AnalysisEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_engine(config: Settings | None = None) -> AnalysisEngine:
    """Load rule tables, register the default detectors and build an engine."""
    cfg = config or settings
    rules = load_rule_tables(cfg.rules_dir)
    registry = build_default_registry(rules.weights, rules)
    return AnalysisEngine(
        registry,
        rules,
        task_timeout=cfg.detector_timeout_seconds,
        request_deadline=cfg.request_deadline_seconds,
        max_workers=cfg.max_workers,
        max_recommendations=cfg.max_recommendations,
    )


_engine: AnalysisEngine | None = None


def get_engine() -> AnalysisEngine:
    """Process-wide engine, built on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine()
    return _engine


def shutdown_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.close()
        _engine = None


async def analyze(image: Any, profile: ProfileLike = None) -> AnalysisReport:
    """Analyze one food image with the process-wide engine."""
    return await get_engine().analyze(image, profile)
