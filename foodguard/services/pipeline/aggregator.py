"""Aggregator: weighted overall safety score and band from a frozen result set.

    score = round_half_up( sum(weight[d] * effective_score[d]) ), clamped to 0-100

effective_score is the detector's raw score when ok, the neutral fallback
otherwise. Summation runs over ids in sorted order with math.fsum, so the
verdict never depends on which detector finished first.
"""

import math

from foodguard.models.schemas.detector_result import DetectorResultSet
from foodguard.models.schemas.rules import WeightTable
from foodguard.models.schemas.verdict import OverallVerdict, SafetyLevel

# (minimum score, level), checked top-down.
SAFETY_BANDS: tuple[tuple[int, SafetyLevel], ...] = (
    (90, SafetyLevel.EXCELLENT),
    (75, SafetyLevel.GOOD),
    (60, SafetyLevel.ACCEPTABLE),
    (40, SafetyLevel.CONCERNING),
    (20, SafetyLevel.DANGEROUS),
)


def classify_safety_level(score: int) -> SafetyLevel:
    for minimum, level in SAFETY_BANDS:
        if score >= minimum:
            return level
    return SafetyLevel.UNSAFE


def round_half_up(value: float) -> int:
    # Half-up on the value snapped to 6 decimals; 67.49999999 and 67.5 both give 68.
    return int(math.floor(round(value, 6) + 0.5))


def compute_overall_score(result_set: DetectorResultSet, weights: WeightTable) -> OverallVerdict:
    """Blend per-detector scores into one verdict.

    Raises ValueError if the result set and the weight table cover
    different detectors.
    """
    ids = weights.ids()
    if result_set.ids() != ids:
        missing = sorted(set(ids) - set(result_set.ids()))
        extra = sorted(set(result_set.ids()) - set(ids))
        raise ValueError(f"result set does not match weights (missing={missing}, extra={extra})")

    per_detector = {d: result_set[d].effective_score for d in ids}
    total = math.fsum(weights[d] * per_detector[d] for d in ids)
    score = max(0, min(100, round_half_up(total)))

    return OverallVerdict(
        score=score,
        safety_level=classify_safety_level(score),
        per_detector_score={d: round_half_up(s) for d, s in per_detector.items()},
    )
