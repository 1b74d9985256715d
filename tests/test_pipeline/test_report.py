"""Tests for report assembly and evaluate() idempotence."""

from datetime import datetime, timezone

from conftest import DEFAULT_WEIGHTS, ok_result, result_set
from foodguard.models.schemas.detector_result import DetectorResult, DetectorStatus
from foodguard.services.pipeline.aggregator import compute_overall_score
from foodguard.services.pipeline.alerts import generate_alerts
from foodguard.services.pipeline.report import assemble_report

FIXED_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _assemble(rs, rules, weights, **kwargs):
    verdict = compute_overall_score(rs, weights)
    alerts = generate_alerts(rs, rules.criticality)
    return assemble_report(rs, verdict, alerts, (), (), rules, generated_at=FIXED_TIME, **kwargs)


class TestAssembleReport:
    def test_one_summary_per_detector_in_id_order(self, rules, weights):
        report = _assemble(result_set(), rules, weights)
        ids = [s.detector_id for s in report.detector_summaries]
        assert ids == sorted(DEFAULT_WEIGHTS)
        assert report.degraded is False
        assert set(report.detector_status.values()) == {DetectorStatus.OK}

    def test_overall_message_follows_level(self, rules, weights):
        report = _assemble(result_set(), rules, weights)
        assert report.overall_recommendation == (
            "This food is excellent and safe for consumption. Enjoy!"
        )

    def test_fallback_marks_report_degraded(self, rules, weights):
        rs = result_set(DetectorResult.failed("burntFood", "timed out after 10.00s"))
        report = _assemble(rs, rules, weights)
        summary = next(s for s in report.detector_summaries if s.detector_id == "burntFood")

        assert report.degraded is True
        assert report.detector_status["burntFood"] == DetectorStatus.FALLBACK
        assert summary.score == 50
        assert summary.headline == "analysis unavailable, neutral score 50 applied"
        assert summary.findings == ("timed out after 10.00s",)

    def test_headlines(self, rules, weights):
        rs = result_set(
            ok_result("oilQuality", 40, label="highly_used_oil", confidence=0.8),
            DetectorResult.failed("chemical", "boom", status=DetectorStatus.ERROR),
        )
        report = _assemble(rs, rules, weights, display_names={"oilQuality": "Oil quality"})
        by_id = {s.detector_id: s for s in report.detector_summaries}
        assert by_id["oilQuality"].headline == "highly used oil (80% confidence)"
        assert by_id["oilQuality"].display_name == "Oil quality"
        assert by_id["chemical"].headline == "analysis failed"
        assert by_id["chemical"].display_name == "chemical"

    def test_config_version_carried(self, rules, weights):
        report = _assemble(result_set(), rules, weights)
        assert report.config_version == rules.config_version
        assert report.config_version.startswith("rules@")

    def test_same_input_is_byte_identical(self, rules, weights):
        rs = result_set(ok_result("spoilage", 0, label="dangerous_food"))
        first = _assemble(rs, rules, weights).model_dump_json()
        second = _assemble(rs, rules, weights).model_dump_json()
        assert first == second
