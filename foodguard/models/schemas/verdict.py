"""Aggregator output: blended score and safety band."""

from enum import Enum

from pydantic import BaseModel, Field


class SafetyLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    CONCERNING = "concerning"
    DANGEROUS = "dangerous"
    UNSAFE = "unsafe"


class OverallVerdict(BaseModel):
    """Structured output of the Aggregator.

    Recomputed every request from the frozen result set; never persisted here.
    """
    model_config = {"frozen": True}

    score: int = Field(0, ge=0, le=100)
    safety_level: SafetyLevel = SafetyLevel.UNSAFE
    per_detector_score: dict[str, int] = {}  # effective score per detector, 0-100
