"""Pydantic contracts shared by the detectors and the engine stages."""

from foodguard.models.schemas.alert import AlertSeverity, SafetyAlert
from foodguard.models.schemas.detector_result import (
    NEUTRAL_FALLBACK_SCORE,
    ClassificationSignal,
    DetectorResult,
    DetectorResultSet,
    DetectorStatus,
    RegressionSignal,
)
from foodguard.models.schemas.recommendation import (
    Recommendation,
    RecommendationPriority,
    UserHealthProfile,
)
from foodguard.models.schemas.rules import (
    CriticalityEntry,
    RecommendationRules,
    RuleTables,
    WeightTable,
)
from foodguard.models.schemas.verdict import OverallVerdict, SafetyLevel

__all__ = [
    "NEUTRAL_FALLBACK_SCORE",
    "AlertSeverity",
    "ClassificationSignal",
    "CriticalityEntry",
    "DetectorResult",
    "DetectorResultSet",
    "DetectorStatus",
    "OverallVerdict",
    "Recommendation",
    "RecommendationPriority",
    "RecommendationRules",
    "RegressionSignal",
    "RuleTables",
    "SafetyAlert",
    "SafetyLevel",
    "UserHealthProfile",
    "WeightTable",
]
