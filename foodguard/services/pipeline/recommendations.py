"""Recommendation engine: verdict guidance, detector-driven tips, personalization.

Sources, all data-driven from recommendations.yaml:
    verdict_guidance  keyed by safety level
    generic           keyed by a detector label or metric threshold
    personalized      generic condition + a profile tag (condition/allergy/diet)

Ordering tiers: critical, personalized, high, normal. Stable within a tier,
duplicate texts dropped (first occurrence wins), then capped.
"""

import logging

from foodguard.models.schemas.detector_result import DetectorResultSet
from foodguard.models.schemas.recommendation import (
    Recommendation,
    RecommendationPriority,
    UserHealthProfile,
)
from foodguard.models.schemas.rules import DetectorCondition, RecommendationRules
from foodguard.models.schemas.verdict import OverallVerdict

logger = logging.getLogger(__name__)


def _tier(rec: Recommendation) -> int:
    if rec.priority == RecommendationPriority.CRITICAL:
        return 0
    if rec.personalized:
        return 1
    if rec.priority == RecommendationPriority.HIGH:
        return 2
    return 3


def _fires(condition: DetectorCondition, result_set: DetectorResultSet) -> bool:
    result = result_set.get(condition.detector)
    return result is not None and condition.matches(result)


def generate_recommendations(
    result_set: DetectorResultSet,
    verdict: OverallVerdict,
    rules: RecommendationRules,
    profile: UserHealthProfile | None = None,
    limit: int = 10,
) -> tuple[Recommendation, ...]:
    """Build the ordered, de-duplicated, capped recommendation list.

    A missing or empty profile yields generic output only.
    """
    candidates: list[Recommendation] = []

    for template in rules.verdict_guidance.get(verdict.safety_level, ()):
        candidates.append(Recommendation(text=template.text, priority=template.priority))

    for rule in rules.generic:
        if _fires(rule, result_set):
            candidates.append(
                Recommendation(text=rule.text, priority=rule.priority, source_detector=rule.detector)
            )

    tags = profile.tags() if profile is not None else frozenset()
    if tags:
        for rule in rules.personalized:
            wanted = {t.strip().lower() for t in rule.when_profile}
            if tags & wanted and _fires(rule, result_set):
                candidates.append(
                    Recommendation(
                        text=rule.text,
                        priority=rule.priority,
                        personalized=True,
                        source_detector=rule.detector,
                    )
                )

    ordered = sorted(candidates, key=_tier)
    seen: set[str] = set()
    unique: list[Recommendation] = []
    for rec in ordered:
        if rec.text in seen:
            continue
        seen.add(rec.text)
        unique.append(rec)

    if len(unique) > limit:
        logger.debug("Capping recommendations at %d (had %d)", limit, len(unique))
    return tuple(unique[: max(limit, 0)])


def generate_health_insights(
    result_set: DetectorResultSet, rules: RecommendationRules
) -> tuple[str, ...]:
    insights: list[str] = []
    for rule in rules.insights:
        if _fires(rule, result_set) and rule.text not in insights:
            insights.append(rule.text)
    return tuple(insights)
