"""Oil quality detector: cooking-oil degradation from hue stability and browning.

quality = 100 * (0.3 * hue stability + 0.4 * saturation normality + 0.3 * colour ratio)
"""

import numpy as np

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import ClassificationDetector
from foodguard.services.pipeline.detectors.features import (
    hue_between,
    margin_confidence,
    ratio,
    rgb_to_hsv,
)

# Minimum quality score for each class, best first.
_BANDS = [
    (80, "fresh_oil"),
    (65, "slightly_used_oil"),
    (45, "highly_used_oil"),
    (25, "adulterated_oil"),
]

_FINDINGS = {
    "fresh_oil": ["Oil colour is clear and consistent"],
    "slightly_used_oil": ["Slight darkening consistent with light reuse"],
    "highly_used_oil": ["Darkened, uneven oil colour suggests repeated reuse"],
    "adulterated_oil": ["Colour profile inconsistent with a single pure oil"],
    "dangerous_oil": ["Heavy browning indicates degraded, oxidized oil"],
}


class OilQualityDetector(ClassificationDetector):
    detector_id = "oilQuality"
    display_name = "Oil quality"
    class_scores = {
        "fresh_oil": 90,
        "slightly_used_oil": 70,
        "highly_used_oil": 40,
        "adulterated_oil": 20,
        "dangerous_oil": 5,
    }

    def classify(self, image: FoodImage) -> tuple[str, float, list[str]]:
        quality = self.quality_score(image.pixels)
        label = "dangerous_oil"
        for floor, name in _BANDS:
            if quality >= floor:
                label = name
                break
        confidence = margin_confidence(quality / 100.0, [b / 100.0 for b, _ in _BANDS])
        findings = list(_FINDINGS[label])
        findings.append(f"Oil quality index {quality:.0f}/100")
        return label, confidence, findings

    @staticmethod
    def quality_score(pixels: np.ndarray) -> float:
        hue, sat, val = rgb_to_hsv(pixels)
        hue_stability = 1.0 - min(float(hue.std()) * 4.0, 1.0)
        saturation_normal = 1.0 - min(abs(float(sat.mean()) - 0.45) * 2.0, 1.0)
        browning = ratio(hue_between(hue, 0.02, 0.10) & (val < 0.45) & (sat > 0.40))
        colour_ratio = 1.0 - min(browning * 2.0, 1.0)
        return (hue_stability * 0.3 + saturation_normal * 0.4 + colour_ratio * 0.3) * 100.0
