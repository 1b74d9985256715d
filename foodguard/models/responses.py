from datetime import datetime

from pydantic import BaseModel

from foodguard.models.schemas.alert import SafetyAlert
from foodguard.models.schemas.detector_result import DetectorStatus
from foodguard.models.schemas.recommendation import Recommendation
from foodguard.models.schemas.verdict import OverallVerdict


class DetectorSummary(BaseModel):
    model_config = {"frozen": True}

    detector_id: str
    display_name: str
    status: DetectorStatus
    score: int  # effective score, neutral when not ok
    confidence: float = 0.0
    class_label: str | None = None
    profile: dict[str, float] | None = None
    findings: tuple[str, ...] = ()
    headline: str = ""


class AnalysisReport(BaseModel):
    model_config = {"frozen": True}

    verdict: OverallVerdict
    overall_recommendation: str = ""
    detector_summaries: tuple[DetectorSummary, ...] = ()
    detector_status: dict[str, DetectorStatus] = {}
    alerts: tuple[SafetyAlert, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    health_insights: tuple[str, ...] = ()
    degraded: bool = False  # at least one detector fell back to the neutral score
    config_version: str = ""
    generated_at: datetime


class DetectorInfo(BaseModel):
    detector_id: str
    display_name: str
    kind: str
    weight: float
    class_labels: list[str] = []
    metrics: list[str] = []


class HealthResponse(BaseModel):
    status: str = "ok"
    detectors: list[str] = []
    config_version: str = ""
