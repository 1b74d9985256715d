"""Externally supplied rule tables: weights, criticality, recommendation templates.

Loaded once from YAML (see services/rules.py) and read-only afterwards.
"""

import math
from collections.abc import Mapping

from pydantic import BaseModel, Field, model_validator

from foodguard.errors import ConfigurationError
from foodguard.models.schemas.alert import AlertSeverity
from foodguard.models.schemas.detector_result import DetectorResult
from foodguard.models.schemas.recommendation import RecommendationPriority
from foodguard.models.schemas.verdict import SafetyLevel

WEIGHT_SUM_TOLERANCE = 1e-6


class WeightTable(BaseModel):
    """detector_id -> weight in [0, 1]; weights sum to 1 within 1e-6."""
    model_config = {"frozen": True}

    weights: dict[str, float]

    @classmethod
    def from_mapping(cls, weights: Mapping[str, float]) -> "WeightTable":
        if not weights:
            raise ConfigurationError("weight table is empty")
        for detector_id, weight in weights.items():
            if not isinstance(weight, (int, float)) or isinstance(weight, bool):
                raise ConfigurationError(f"weight for {detector_id!r} is not a number: {weight!r}")
            if not 0.0 <= weight <= 1.0:
                raise ConfigurationError(f"weight for {detector_id!r} outside [0, 1]: {weight}")
        total = math.fsum(weights.values())
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ConfigurationError(f"weights must sum to 1.0, got {total:.6f}")
        return cls(weights={k: float(v) for k, v in weights.items()})

    def __getitem__(self, detector_id: str) -> float:
        return self.weights[detector_id]

    def ids(self) -> list[str]:
        return sorted(self.weights)


class DetectorCondition(BaseModel):
    """Match against one detector's output.

    Either by class label (``label`` / ``labels``) or, for regression
    detectors, by a profile metric crossing ``above`` / ``below`` (strict).
    Only ok results ever match.
    """
    model_config = {"frozen": True}

    detector: str
    label: str | None = None
    labels: tuple[str, ...] = ()
    metric: str | None = None
    above: float | None = None
    below: float | None = None

    @model_validator(mode="after")
    def _one_kind(self) -> "DetectorCondition":
        by_label = self.label is not None or bool(self.labels)
        by_metric = self.metric is not None
        if by_label == by_metric:
            raise ValueError(
                f"rule for {self.detector!r} needs exactly one of label(s) or metric"
            )
        if by_metric and self.above is None and self.below is None:
            raise ValueError(f"metric rule {self.detector}.{self.metric} needs above or below")
        return self

    def label_set(self) -> frozenset[str]:
        return frozenset(self.labels + ((self.label,) if self.label else ()))

    def matches(self, result: DetectorResult) -> bool:
        if result.detector_id != self.detector or not result.is_ok:
            return False
        if self.metric is None:
            return result.class_label in self.label_set()
        profile = result.profile or {}
        value = profile.get(self.metric)
        if value is None:
            return False
        if self.above is not None and not value > self.above:
            return False
        if self.below is not None and not value < self.below:
            return False
        return True


class CriticalityEntry(DetectorCondition):
    severity: AlertSeverity
    message: str
    action: str


class RecommendationRule(DetectorCondition):
    text: str
    priority: RecommendationPriority = RecommendationPriority.NORMAL


class PersonalizationRule(RecommendationRule):
    """Fires only when the user profile carries one of ``when_profile``."""
    when_profile: tuple[str, ...] = Field(..., min_length=1)
    priority: RecommendationPriority = RecommendationPriority.HIGH


class InsightRule(DetectorCondition):
    text: str


class GuidanceTemplate(BaseModel):
    model_config = {"frozen": True}

    text: str
    priority: RecommendationPriority = RecommendationPriority.NORMAL


class RecommendationRules(BaseModel):
    model_config = {"frozen": True}

    verdict_messages: dict[SafetyLevel, str] = {}
    verdict_guidance: dict[SafetyLevel, tuple[GuidanceTemplate, ...]] = {}
    generic: tuple[RecommendationRule, ...] = ()
    personalized: tuple[PersonalizationRule, ...] = ()
    insights: tuple[InsightRule, ...] = ()


class RuleTables(BaseModel):
    """Everything the engine reads from rules_dir."""
    model_config = {"frozen": True}

    weights: dict[str, float]
    criticality: tuple[CriticalityEntry, ...] = ()
    recommendations: RecommendationRules = RecommendationRules()
    config_version: str = "unversioned"

    def conditions(self) -> list[DetectorCondition]:
        """Every detector condition across all tables, for reference checks."""
        recs = self.recommendations
        return [*self.criticality, *recs.generic, *recs.personalized, *recs.insights]
