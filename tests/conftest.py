"""Shared test configuration, fixtures and stub detectors."""

import threading
import time

import numpy as np
import pytest

from foodguard.config import DEFAULT_RULES_DIR
from foodguard.models.schemas.detector_result import (
    ClassificationSignal,
    DetectorResult,
    DetectorResultSet,
    RegressionSignal,
)
from foodguard.models.schemas.rules import WeightTable
from foodguard.services.image_input import validate_image
from foodguard.services.pipeline.base import ClassificationDetector
from foodguard.services.pipeline.detector_registry import DetectorRegistry
from foodguard.services.pipeline.orchestrator import DetectorExecutor
from foodguard.services.rules import load_rule_tables

DEFAULT_WEIGHTS = {
    "spoilage": 0.25,
    "burntFood": 0.20,
    "oilQuality": 0.15,
    "nutritional": 0.10,
    "saltSugar": 0.10,
    "temperature": 0.10,
    "chemical": 0.05,
    "microplastics": 0.05,
}


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: waits on real timeouts (about a second)"
    )


# --- Result factories ---


def ok_result(detector_id: str, raw_score: float = 90, label: str = "stub", confidence: float = 0.9):
    return DetectorResult(
        detector_id=detector_id,
        signal=ClassificationSignal(class_label=label),
        confidence=confidence,
        raw_score=raw_score,
    )


def regression_result(detector_id: str, profile: dict[str, float], raw_score: float = 80):
    return DetectorResult(
        detector_id=detector_id,
        signal=RegressionSignal(profile={**profile, "health_score": float(raw_score)}),
        confidence=0.8,
        raw_score=raw_score,
    )


def result_set(*results: DetectorResult, default_score: float = 90) -> DetectorResultSet:
    """Full default-weight result set; ``results`` override the all-90 baseline."""
    by_id = {d: ok_result(d, default_score) for d in DEFAULT_WEIGHTS}
    for r in results:
        by_id[r.detector_id] = r
    return DetectorResultSet(results=tuple(by_id.values()))


# --- Stub detector ---


class StubDetector(ClassificationDetector):
    """Scripted classification detector.

    ``gate`` blocks classify() until set; ``calls`` records which detectors
    actually ran; ``started`` is set once classify() is entered.
    """

    def __init__(
        self,
        detector_id: str,
        label: str = "ok",
        score: int = 90,
        delay: float = 0.0,
        gate: threading.Event | None = None,
        started: threading.Event | None = None,
        calls: list[str] | None = None,
    ) -> None:
        self.detector_id = detector_id
        self.display_name = detector_id
        self.class_scores = {label: score}
        self.label = label
        self.delay = delay
        self.gate = gate
        self.started = started
        self.calls = calls

    def classify(self, image):
        if self.calls is not None:
            self.calls.append(self.detector_id)
        if self.started is not None:
            self.started.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.delay:
            time.sleep(self.delay)
        return self.label, 0.9, [f"{self.detector_id} ran"]


def stub_registry(detectors, weights: dict[str, float] | None = None) -> DetectorRegistry:
    detectors = list(detectors)
    if weights is None:
        weights = {d.detector_id: 1.0 / len(detectors) for d in detectors}
    registry = DetectorRegistry()
    for d in detectors:
        registry.register_detector(d.detector_id, weights[d.detector_id], d)
    registry.validate()
    return registry


# --- Fixtures ---


@pytest.fixture(scope="session")
def rules():
    return load_rule_tables(DEFAULT_RULES_DIR)


@pytest.fixture
def weights():
    return WeightTable.from_mapping(DEFAULT_WEIGHTS)


@pytest.fixture
def executor():
    pool = DetectorExecutor(max_workers=8)
    yield pool
    pool.shutdown(wait=False, cancel_futures=True)


@pytest.fixture
def gate():
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def warm_image():
    """Uniform golden-brown plate: fresh, hot, no additives."""
    return validate_image(np.full((32, 32, 3), (0.8, 0.6, 0.4), dtype=np.float32))


@pytest.fixture
def black_image():
    return validate_image(np.zeros((32, 32, 3), dtype=np.float32))


@pytest.fixture
def white_image():
    return validate_image(np.ones((32, 32, 3), dtype=np.float32))
