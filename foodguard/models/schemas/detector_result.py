"""Detector output: one immutable result per detector, and the frozen per-request set."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

# Substitute score for any detector that did not report ``ok``.
NEUTRAL_FALLBACK_SCORE = 50


class DetectorStatus(str, Enum):
    OK = "ok"
    FALLBACK = "fallback"  # orchestrator filled the slot (timeout, contract breach)
    ERROR = "error"  # detector caught its own fault


class ClassificationSignal(BaseModel):
    """Discrete class from the detector's fixed taxonomy."""
    model_config = {"frozen": True}

    kind: Literal["classification"] = "classification"
    class_label: str


class RegressionSignal(BaseModel):
    """Continuous profile, e.g. {"salt_mg": 500.0, "sugar_mg": 3000.0}."""
    model_config = {"frozen": True}

    kind: Literal["regression"] = "regression"
    profile: dict[str, float]


Signal = Annotated[ClassificationSignal | RegressionSignal, Field(discriminator="kind")]


class DetectorResult(BaseModel):
    """Structured output of a single detector invocation.

    ``signal`` is present only when ``status`` is ok. Failed slots carry the
    neutral score, zero confidence and the reason in ``error``.
    """
    model_config = {"frozen": True}

    detector_id: str
    signal: Signal | None = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    raw_score: float = Field(float(NEUTRAL_FALLBACK_SCORE), ge=0.0, le=100.0)
    findings: tuple[str, ...] = ()
    status: DetectorStatus = DetectorStatus.OK
    error: str | None = None

    @model_validator(mode="after")
    def _signal_matches_status(self) -> "DetectorResult":
        if self.status == DetectorStatus.OK and self.signal is None:
            raise ValueError(f"ok result from {self.detector_id!r} has no signal")
        return self

    @property
    def is_ok(self) -> bool:
        return self.status == DetectorStatus.OK

    @property
    def class_label(self) -> str | None:
        if isinstance(self.signal, ClassificationSignal):
            return self.signal.class_label
        return None

    @property
    def profile(self) -> dict[str, float] | None:
        if isinstance(self.signal, RegressionSignal):
            return self.signal.profile
        return None

    @property
    def effective_score(self) -> float:
        """Score the aggregator blends: raw score when ok, neutral otherwise."""
        return self.raw_score if self.is_ok else float(NEUTRAL_FALLBACK_SCORE)

    @classmethod
    def failed(
        cls,
        detector_id: str,
        reason: str,
        status: DetectorStatus = DetectorStatus.FALLBACK,
    ) -> "DetectorResult":
        return cls(
            detector_id=detector_id,
            signal=None,
            confidence=0.0,
            raw_score=float(NEUTRAL_FALLBACK_SCORE),
            findings=(reason,),
            status=status,
            error=reason,
        )


class DetectorResultSet(BaseModel):
    """All detector results for one request, keyed by detector id.

    Results are stored sorted by id so nothing downstream can observe the
    order in which detectors finished.
    """
    model_config = {"frozen": True}

    results: tuple[DetectorResult, ...] = ()

    @field_validator("results")
    @classmethod
    def _canonical_order(cls, v: tuple[DetectorResult, ...]) -> tuple[DetectorResult, ...]:
        ids = [r.detector_id for r in v]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate detector results: {', '.join(dupes)}")
        return tuple(sorted(v, key=lambda r: r.detector_id))

    def __getitem__(self, detector_id: str) -> DetectorResult:
        for result in self.results:
            if result.detector_id == detector_id:
                return result
        raise KeyError(detector_id)

    def __contains__(self, detector_id: object) -> bool:
        return any(r.detector_id == detector_id for r in self.results)

    def __len__(self) -> int:
        return len(self.results)

    def get(self, detector_id: str) -> DetectorResult | None:
        try:
            return self[detector_id]
        except KeyError:
            return None

    def ids(self) -> list[str]:
        return [r.detector_id for r in self.results]

    def status_map(self) -> dict[str, DetectorStatus]:
        return {r.detector_id: r.status for r in self.results}
