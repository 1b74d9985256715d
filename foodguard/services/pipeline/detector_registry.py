"""Detector registry: holds the registered detectors and their validated weights.

Detectors are created through a name-based factory with deferred imports,
registered with a weight, and checked once at startup. After validate()
the registry is frozen; per-request code only reads from it.
"""

import logging
from collections.abc import Mapping

from foodguard.errors import ConfigurationError
from foodguard.models.schemas.rules import (
    WEIGHT_SUM_TOLERANCE,
    DetectorCondition,
    RuleTables,
    WeightTable,
)
from foodguard.services.pipeline.base import BaseDetector

logger = logging.getLogger(__name__)

DEFAULT_DETECTOR_IDS = (
    "spoilage",
    "burntFood",
    "oilQuality",
    "nutritional",
    "saltSugar",
    "temperature",
    "chemical",
    "microplastics",
)


def _create_detector(detector_id: str) -> BaseDetector:
    """Factory: create a detector by id with deferred imports."""
    if detector_id == "spoilage":
        from foodguard.services.pipeline.detectors.spoilage import SpoilageDetector
        return SpoilageDetector()
    elif detector_id == "burntFood":
        from foodguard.services.pipeline.detectors.burnt_food import BurntFoodDetector
        return BurntFoodDetector()
    elif detector_id == "oilQuality":
        from foodguard.services.pipeline.detectors.oil_quality import OilQualityDetector
        return OilQualityDetector()
    elif detector_id == "nutritional":
        from foodguard.services.pipeline.detectors.nutritional import NutritionalDetector
        return NutritionalDetector()
    elif detector_id == "saltSugar":
        from foodguard.services.pipeline.detectors.salt_sugar import SaltSugarDetector
        return SaltSugarDetector()
    elif detector_id == "temperature":
        from foodguard.services.pipeline.detectors.temperature import TemperatureDetector
        return TemperatureDetector()
    elif detector_id == "chemical":
        from foodguard.services.pipeline.detectors.chemical_additive import ChemicalAdditiveDetector
        return ChemicalAdditiveDetector()
    elif detector_id == "microplastics":
        from foodguard.services.pipeline.detectors.microplastics import MicroplasticsDetector
        return MicroplasticsDetector()
    else:
        raise ConfigurationError(f"Unknown detector: {detector_id}")


class DetectorRegistry:
    """Registered detectors plus their weights.

    Usage:
        registry = DetectorRegistry()
        registry.register_detector("spoilage", 0.25, SpoilageDetector())
        ...
        registry.validate(rules)
    """

    def __init__(self) -> None:
        self._detectors: dict[str, BaseDetector] = {}
        self._weights: dict[str, float] = {}
        self._weight_table: WeightTable | None = None

    def register_detector(self, detector_id: str, weight: float, detector: BaseDetector) -> None:
        if self._weight_table is not None:
            raise ConfigurationError("registry is frozen; register detectors before validate()")
        if detector_id in self._detectors:
            raise ConfigurationError(f"detector {detector_id!r} registered twice")
        if detector.detector_id != detector_id:
            raise ConfigurationError(
                f"detector registered as {detector_id!r} reports id {detector.detector_id!r}"
            )
        if not isinstance(weight, (int, float)) or isinstance(weight, bool):
            raise ConfigurationError(f"weight for {detector_id!r} is not a number: {weight!r}")
        if not 0.0 <= weight <= 1.0:
            raise ConfigurationError(f"weight for {detector_id!r} outside [0, 1]: {weight}")
        self._detectors[detector_id] = detector
        self._weights[detector_id] = float(weight)

    def validate(self, rules: RuleTables | None = None) -> WeightTable:
        """Check weights and rule references, preload detectors, freeze.

        Raises ConfigurationError on any violation.
        """
        if rules is not None:
            if sorted(rules.weights) != self.ids():
                raise ConfigurationError("rule table weights do not cover the registered detectors")
            mismatched = [
                d for d in self.ids()
                if abs(rules.weights[d] - self._weights[d]) > WEIGHT_SUM_TOLERANCE
            ]
            if mismatched:
                raise ConfigurationError(
                    "registered weights differ from the rule table for "
                    + ", ".join(f"{d} ({self._weights[d]} vs {rules.weights[d]})" for d in mismatched)
                )
            for condition in rules.conditions():
                self._check_reference(condition)
        if self._weight_table is not None:
            return self._weight_table
        table = WeightTable.from_mapping(self._weights)
        for detector in self._detectors.values():
            detector.ensure_loaded()
        self._weight_table = table
        logger.info(
            "Detector registry validated: %d detectors (%s)",
            len(self._detectors),
            ", ".join(table.ids()),
        )
        return table

    def _check_reference(self, condition: DetectorCondition) -> None:
        detector = self._detectors.get(condition.detector)
        if detector is None:
            raise ConfigurationError(f"rule references unknown detector {condition.detector!r}")
        if condition.metric is not None:
            if condition.metric not in detector.metrics:
                raise ConfigurationError(
                    f"rule references unknown metric {condition.detector}.{condition.metric}"
                )
            return
        unknown = sorted(condition.label_set() - set(detector.class_labels))
        if unknown:
            raise ConfigurationError(
                f"rule references unknown label(s) {', '.join(unknown)} for {condition.detector!r}"
            )

    @property
    def is_validated(self) -> bool:
        return self._weight_table is not None

    @property
    def weight_table(self) -> WeightTable:
        if self._weight_table is None:
            raise ConfigurationError("registry has not been validated")
        return self._weight_table

    def detectors(self) -> list[BaseDetector]:
        """Registered detectors in registration order."""
        return list(self._detectors.values())

    def get(self, detector_id: str) -> BaseDetector:
        return self._detectors[detector_id]

    def ids(self) -> list[str]:
        return sorted(self._detectors)

    def __len__(self) -> int:
        return len(self._detectors)


def build_default_registry(
    weights: Mapping[str, float], rules: RuleTables | None = None
) -> DetectorRegistry:
    """Create every detector named in ``weights`` and validate the registry."""
    registry = DetectorRegistry()
    for detector_id, weight in weights.items():
        registry.register_detector(detector_id, weight, _create_detector(detector_id))
    registry.validate(rules)
    return registry
