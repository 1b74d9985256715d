"""AlertEngine output."""

from enum import Enum

from pydantic import BaseModel


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


# Lower rank sorts first.
SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.HIGH: 1,
    AlertSeverity.MEDIUM: 2,
}


class SafetyAlert(BaseModel):
    model_config = {"frozen": True}

    severity: AlertSeverity
    message: str
    action: str
    source_detector: str
