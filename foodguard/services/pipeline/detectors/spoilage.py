"""Spoilage detector: freshness from discoloration and texture breakdown.

Composite spoilage score over five cues (weights sum to 1):
    green/grey mould tint   0.25
    dark spots              0.30
    yellow/brown oxidation  0.15
    texture deterioration   0.20
    moisture (brightness variance) 0.10
"""

import numpy as np

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import ClassificationDetector
from foodguard.services.pipeline.detectors.features import (
    gradient_energy,
    hue_between,
    margin_confidence,
    ratio,
    rgb_to_hsv,
)

# Upper bound of the composite score for each class, in severity order.
_THRESHOLDS = [
    (0.10, "fresh_food"),
    (0.25, "slightly_stale"),
    (0.50, "spoiled_food"),
    (0.75, "moldy_food"),
]

_FINDINGS = {
    "fresh_food": ["Color and texture consistent with fresh food"],
    "slightly_stale": ["Minor discoloration at the surface", "Texture starting to lose firmness"],
    "spoiled_food": ["Discoloration and texture breakdown indicate spoilage"],
    "moldy_food": ["Patches consistent with visible mould growth"],
    "dangerous_food": ["Extensive discoloration and decay; likely heavy contamination"],
}


class SpoilageDetector(ClassificationDetector):
    detector_id = "spoilage"
    display_name = "Spoilage"
    class_scores = {
        "fresh_food": 95,
        "slightly_stale": 75,
        "spoiled_food": 20,
        "moldy_food": 5,
        "dangerous_food": 0,
    }

    def classify(self, image: FoodImage) -> tuple[str, float, list[str]]:
        score = self.spoilage_score(image.pixels)
        label = "dangerous_food"
        for bound, name in _THRESHOLDS:
            if score < bound:
                label = name
                break
        confidence = margin_confidence(score, [b for b, _ in _THRESHOLDS])
        findings = list(_FINDINGS[label])
        findings.append(f"Spoilage index {score * 100:.0f}/100")
        return label, confidence, findings

    @staticmethod
    def spoilage_score(pixels: np.ndarray) -> float:
        hue, sat, val = rgb_to_hsv(pixels)
        mould = ratio(hue_between(hue, 0.20, 0.45) & (sat > 0.25) & (val < 0.55))
        dark = ratio(val < 0.20)
        oxidation = ratio(hue_between(hue, 0.10, 0.17) & (sat > 0.40) & (val < 0.60))
        texture = min(gradient_energy(val) * 4.0, 1.0)
        moisture = min(float(val.std()) * 2.0, 1.0)
        return (
            mould * 0.25
            + dark * 0.30
            + oxidation * 0.15
            + texture * 0.20
            + moisture * 0.10
        )
