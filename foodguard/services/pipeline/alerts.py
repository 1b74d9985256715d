"""Alert engine: match ok detector outputs against the criticality table.

At most one alert per detector (the most severe matching entry, ties keep
table order). Output is sorted critical > high > medium, then by detector id.
Alerts are driven by the individual detector outcome, never by the blended
verdict, so a single dangerous finding is surfaced even when the overall
score looks acceptable.
"""

from collections.abc import Iterable

from foodguard.models.schemas.alert import SEVERITY_RANK, SafetyAlert
from foodguard.models.schemas.detector_result import DetectorResultSet
from foodguard.models.schemas.rules import CriticalityEntry


def generate_alerts(
    result_set: DetectorResultSet, criticality: Iterable[CriticalityEntry]
) -> tuple[SafetyAlert, ...]:
    entries = list(criticality)
    alerts: list[SafetyAlert] = []
    for result in result_set.results:
        if not result.is_ok:
            continue
        matched = [e for e in entries if e.matches(result)]
        if not matched:
            continue
        # min() keeps the first of equally severe entries
        worst = min(matched, key=lambda e: SEVERITY_RANK[e.severity])
        alerts.append(
            SafetyAlert(
                severity=worst.severity,
                message=worst.message,
                action=worst.action,
                source_detector=result.detector_id,
            )
        )
    alerts.sort(key=lambda a: (SEVERITY_RANK[a.severity], a.source_detector))
    return tuple(alerts)
