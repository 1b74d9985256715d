"""Burnt food detector: charring from darkness, carbon tint and edge roughness."""

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import ClassificationDetector
from foodguard.services.pipeline.detectors.features import (
    gradient_energy,
    margin_confidence,
    ratio,
    rgb_to_hsv,
)

_THRESHOLDS = [
    (0.15, "fresh_food"),
    (0.35, "slightly_overcooked"),
    (0.60, "burnt_food"),
]

_FINDINGS = {
    "fresh_food": ["Food has optimal color and texture", "No signs of burning or overcooking"],
    "slightly_overcooked": ["Minor browning detected"],
    "burnt_food": [
        "Visible charring and burnt areas",
        "Dark spots indicating potential acrylamide formation",
    ],
    "severely_burnt": [
        "Extensive carbonization across the surface",
        "High likelihood of harmful combustion compounds",
    ],
}


class BurntFoodDetector(ClassificationDetector):
    detector_id = "burntFood"
    display_name = "Burnt food"
    class_scores = {
        "fresh_food": 90,
        "slightly_overcooked": 70,
        "burnt_food": 30,
        "severely_burnt": 5,
    }

    def classify(self, image: FoodImage) -> tuple[str, float, list[str]]:
        _, sat, val = rgb_to_hsv(image.pixels)
        darkness = ratio(val < 0.15)
        carbon = ratio((val < 0.25) & (sat < 0.30))
        edges = min(gradient_energy(val) * 4.0, 1.0)
        severity = darkness * 0.4 + carbon * 0.3 + edges * 0.3

        label = "severely_burnt"
        for bound, name in _THRESHOLDS:
            if severity < bound:
                label = name
                break
        confidence = margin_confidence(severity, [b for b, _ in _THRESHOLDS])
        findings = list(_FINDINGS[label])
        if darkness > 0.05:
            findings.append(f"{darkness:.0%} of the surface is very dark")
        return label, confidence, findings
