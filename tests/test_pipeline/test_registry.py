"""Tests for detector registration and startup validation."""

import pytest

from conftest import DEFAULT_WEIGHTS, StubDetector
from foodguard.errors import ConfigurationError
from foodguard.models.schemas.rules import CriticalityEntry, RuleTables
from foodguard.services.pipeline.detector_registry import (
    DetectorRegistry,
    _create_detector,
    build_default_registry,
)


def _rules_with(entry: CriticalityEntry) -> RuleTables:
    return RuleTables(weights=dict(DEFAULT_WEIGHTS), criticality=(entry,))


class TestBuildDefaultRegistry:
    def test_registers_all_eight(self, rules):
        registry = build_default_registry(DEFAULT_WEIGHTS, rules)
        assert registry.ids() == sorted(DEFAULT_WEIGHTS)
        assert [d.detector_id for d in registry.detectors()] == list(DEFAULT_WEIGHTS)
        assert registry.weight_table["spoilage"] == 0.25
        assert all(d.is_loaded for d in registry.detectors())

    def test_detector_kinds(self, rules):
        registry = build_default_registry(DEFAULT_WEIGHTS, rules)
        assert registry.get("nutritional").kind == "regression"
        assert registry.get("saltSugar").kind == "regression"
        assert registry.get("spoilage").kind == "classification"
        assert "dangerous_food" in registry.get("spoilage").class_labels
        assert "salt_mg" in registry.get("saltSugar").metrics

    def test_unknown_detector_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown detector"):
            _create_detector("radiation")


class TestRegisterDetector:
    def setup_method(self):
        self.registry = DetectorRegistry()

    def test_duplicate_id(self):
        self.registry.register_detector("a", 0.5, StubDetector("a"))
        with pytest.raises(ConfigurationError, match="twice"):
            self.registry.register_detector("a", 0.5, StubDetector("a"))

    def test_id_mismatch(self):
        with pytest.raises(ConfigurationError, match="reports id"):
            self.registry.register_detector("a", 1.0, StubDetector("b"))

    @pytest.mark.parametrize("weight", [-0.1, 1.5, "0.5", True])
    def test_bad_weight(self, weight):
        with pytest.raises(ConfigurationError):
            self.registry.register_detector("a", weight, StubDetector("a"))

    def test_weights_must_sum_to_one(self):
        self.registry.register_detector("a", 0.5, StubDetector("a"))
        self.registry.register_detector("b", 0.4, StubDetector("b"))
        with pytest.raises(ConfigurationError, match="sum to 1.0"):
            self.registry.validate()

    def test_sum_within_tolerance_accepted(self):
        self.registry.register_detector("a", 0.1, StubDetector("a"))
        self.registry.register_detector("b", 0.2, StubDetector("b"))
        self.registry.register_detector("c", 0.7, StubDetector("c"))
        table = self.registry.validate()
        assert table.ids() == ["a", "b", "c"]

    def test_empty_registry_rejected(self):
        with pytest.raises(ConfigurationError, match="empty"):
            self.registry.validate()

    def test_frozen_after_validate(self):
        self.registry.register_detector("a", 1.0, StubDetector("a"))
        self.registry.validate()
        with pytest.raises(ConfigurationError, match="frozen"):
            self.registry.register_detector("b", 0.0, StubDetector("b"))

    def test_weight_table_requires_validation(self):
        self.registry.register_detector("a", 1.0, StubDetector("a"))
        with pytest.raises(ConfigurationError, match="not been validated"):
            _ = self.registry.weight_table


class TestRuleReferences:
    def _registry(self):
        registry = DetectorRegistry()
        for detector_id, weight in DEFAULT_WEIGHTS.items():
            registry.register_detector(detector_id, weight, _create_detector(detector_id))
        return registry

    def test_unknown_detector(self):
        entry = CriticalityEntry(detector="radiation", label="hot", severity="high",
                                 message="m", action="a")
        with pytest.raises(ConfigurationError, match="unknown detector"):
            self._registry().validate(_rules_with(entry))

    def test_unknown_label(self):
        entry = CriticalityEntry(detector="burntFood", label="charcoal", severity="high",
                                 message="m", action="a")
        with pytest.raises(ConfigurationError, match="charcoal"):
            self._registry().validate(_rules_with(entry))

    def test_unknown_metric(self):
        entry = CriticalityEntry(detector="saltSugar", metric="msg_mg", above=10,
                                 severity="medium", message="m", action="a")
        with pytest.raises(ConfigurationError, match="unknown metric"):
            self._registry().validate(_rules_with(entry))

    def test_label_rule_on_regression_detector(self):
        entry = CriticalityEntry(detector="saltSugar", label="salty", severity="medium",
                                 message="m", action="a")
        with pytest.raises(ConfigurationError):
            self._registry().validate(_rules_with(entry))

    def test_rule_weights_must_match_registry(self):
        rules = RuleTables(weights={"spoilage": 1.0})
        with pytest.raises(ConfigurationError, match="do not cover"):
            self._registry().validate(rules)

    def test_default_rules_are_consistent(self, rules):
        table = self._registry().validate(rules)
        assert table.ids() == sorted(DEFAULT_WEIGHTS)

    def test_rule_weight_values_must_match_registry(self):
        weights = dict(DEFAULT_WEIGHTS, spoilage=0.20, burntFood=0.25)
        with pytest.raises(ConfigurationError, match="spoilage \\(0.25 vs 0.2\\)"):
            self._registry().validate(RuleTables(weights=weights))
