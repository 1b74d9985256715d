"""Abstract base classes for all food safety detectors."""

from abc import ABC, abstractmethod
import logging

from foodguard.errors import DetectorError
from foodguard.models.schemas.detector_result import (
    ClassificationSignal,
    DetectorResult,
    DetectorStatus,
    RegressionSignal,
)
from foodguard.services.image_input import FoodImage

logger = logging.getLogger(__name__)


class BaseDetector(ABC):
    """Base class for detector capabilities.

    Subclasses must implement:
        - detector_id: identifier used in the weight and rule tables
        - analyze(image): produce an ok DetectorResult

    predict() is the public contract: it never raises. Any fault inside
    load() or analyze() comes back as a DetectorResult with status=error.
    Detectors must treat ``image.pixels`` as read-only and keep no
    per-request state on ``self``.
    """

    detector_id: str = ""
    display_name: str = ""
    kind: str = ""
    _loaded: bool = False

    def load(self) -> None:
        """Load weights/artifacts. Heuristic detectors have nothing to load."""

    @abstractmethod
    def analyze(self, image: FoodImage) -> DetectorResult:
        """Run the detector. May raise; predict() turns that into an error result."""

    @property
    def class_labels(self) -> tuple[str, ...]:
        return ()

    @property
    def metrics(self) -> tuple[str, ...]:
        return ()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def ensure_loaded(self) -> None:
        """Load detector if not already loaded."""
        if not self._loaded:
            logger.info("Loading detector: %s", self.detector_id)
            self.load()
            self._loaded = True

    def predict(self, image: FoodImage) -> DetectorResult:
        try:
            self.ensure_loaded()
            return self.analyze(image)
        except Exception as e:
            logger.warning("Detector %s failed: %s", self.detector_id, e)
            return DetectorResult.failed(
                self.detector_id, f"{type(e).__name__}: {e}", status=DetectorStatus.ERROR
            )


class ClassificationDetector(BaseDetector):
    """Detector emitting one class from a fixed taxonomy.

    ``class_scores`` maps every class to its 0-100 safety score; its keys
    are the taxonomy.
    """

    kind = "classification"
    class_scores: dict[str, int] = {}

    @abstractmethod
    def classify(self, image: FoodImage) -> tuple[str, float, list[str]]:
        """Return (class_label, confidence, findings)."""

    @property
    def class_labels(self) -> tuple[str, ...]:
        return tuple(self.class_scores)

    def analyze(self, image: FoodImage) -> DetectorResult:
        label, confidence, findings = self.classify(image)
        if label not in self.class_scores:
            raise DetectorError(self.detector_id, f"unknown class {label!r}")
        return DetectorResult(
            detector_id=self.detector_id,
            signal=ClassificationSignal(class_label=label),
            confidence=_clamp_confidence(confidence),
            raw_score=float(self.class_scores[label]),
            findings=tuple(findings),
        )


class RegressionDetector(BaseDetector):
    """Detector emitting a continuous profile mapped to a 0-100 health score."""

    kind = "regression"
    profile_keys: tuple[str, ...] = ()

    @abstractmethod
    def estimate(self, image: FoodImage) -> tuple[dict[str, float], float]:
        """Return (profile, confidence). Profile keys must cover profile_keys."""

    @abstractmethod
    def health_score(self, profile: dict[str, float]) -> int:
        """Map a profile to a 0-100 score."""

    def describe(self, profile: dict[str, float], score: int) -> list[str]:
        return []

    @property
    def metrics(self) -> tuple[str, ...]:
        return self.profile_keys + ("health_score",)

    def analyze(self, image: FoodImage) -> DetectorResult:
        profile, confidence = self.estimate(image)
        missing = [k for k in self.profile_keys if k not in profile]
        if missing:
            raise DetectorError(self.detector_id, f"profile missing {', '.join(missing)}")
        score = max(0, min(100, int(self.health_score(profile))))
        full_profile: dict[str, float] = {k: float(profile[k]) for k in self.profile_keys}
        full_profile["health_score"] = float(score)
        return DetectorResult(
            detector_id=self.detector_id,
            signal=RegressionSignal(profile=full_profile),
            confidence=_clamp_confidence(confidence),
            raw_score=float(score),
            findings=tuple(self.describe(full_profile, score)),
        )


def _clamp_confidence(confidence: float) -> float:
    return round(min(1.0, max(0.0, float(confidence))), 4)
