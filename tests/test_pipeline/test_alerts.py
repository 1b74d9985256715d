"""Tests for the alert engine."""

from conftest import ok_result, regression_result, result_set
from foodguard.models.schemas.alert import AlertSeverity
from foodguard.models.schemas.detector_result import DetectorResult
from foodguard.models.schemas.rules import CriticalityEntry
from foodguard.services.pipeline.aggregator import compute_overall_score
from foodguard.services.pipeline.alerts import generate_alerts


def _salt(salt_mg: float, sugar_mg: float = 500):
    return regression_result(
        "saltSugar",
        {"salt_mg": salt_mg, "sugar_mg": sugar_mg, "sodium_equivalent_mg": salt_mg},
    )


class TestGenerateAlerts:
    def test_clean_results_raise_nothing(self, rules):
        assert generate_alerts(result_set(), rules.criticality) == ()

    def test_dangerous_food_is_critical_even_when_verdict_acceptable(self, rules, weights):
        rs = result_set(ok_result("spoilage", 0, label="dangerous_food"))
        verdict = compute_overall_score(rs, weights)
        alerts = generate_alerts(rs, rules.criticality)

        assert verdict.safety_level.value == "acceptable"
        assert len(alerts) == 1
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].source_detector == "spoilage"
        assert alerts[0].action == "Do not consume - severe health risk"

    def test_critical_sorted_before_high_and_medium(self, rules):
        rs = result_set(
            ok_result("temperature", 20, label="dangerous_temp"),
            ok_result("chemical", 30, label="harmful_chemicals"),
            ok_result("oilQuality", 5, label="dangerous_oil"),
            ok_result("burntFood", 5, label="severely_burnt"),
        )
        alerts = generate_alerts(rs, rules.criticality)
        assert [(a.severity.value, a.source_detector) for a in alerts] == [
            ("critical", "burntFood"),
            ("critical", "oilQuality"),
            ("high", "chemical"),
            ("medium", "temperature"),
        ]

    def test_one_alert_per_detector_keeps_most_severe(self):
        table = [
            CriticalityEntry(detector="spoilage", label="moldy_food", severity="medium",
                             message="m", action="a"),
            CriticalityEntry(detector="spoilage", labels=("moldy_food",), severity="critical",
                             message="worst", action="discard"),
            CriticalityEntry(detector="spoilage", label="moldy_food", severity="critical",
                             message="second critical", action="discard"),
        ]
        rs = result_set(ok_result("spoilage", 5, label="moldy_food"))
        alerts = generate_alerts(rs, table)
        assert len(alerts) == 1
        assert alerts[0].message == "worst"

    def test_failed_detectors_never_alert(self, rules):
        rs = result_set(DetectorResult.failed("spoilage", "timed out"))
        assert generate_alerts(rs, rules.criticality) == ()

    def test_metric_threshold_is_strict(self, rules):
        at_limit = generate_alerts(result_set(_salt(600)), rules.criticality)
        above = generate_alerts(result_set(_salt(800)), rules.criticality)
        assert at_limit == ()
        assert len(above) == 1
        assert above[0].severity == AlertSeverity.MEDIUM
        assert above[0].source_detector == "saltSugar"

    def test_salt_and_sugar_breach_still_one_alert(self, rules):
        alerts = generate_alerts(result_set(_salt(800, 15000)), rules.criticality)
        assert len(alerts) == 1
        assert alerts[0].message == "Very high salt content"

    def test_pure_and_repeatable(self, rules):
        rs = result_set(ok_result("microplastics", 10, label="critical_risk"))
        assert generate_alerts(rs, rules.criticality) == generate_alerts(rs, rules.criticality)
