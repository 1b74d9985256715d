"""Chemical additive detector: artificial colouring, coatings and over-uniform texture."""

import numpy as np

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import ClassificationDetector
from foodguard.services.pipeline.detectors.features import (
    gradient_energy,
    hue_between,
    ratio,
    rgb_to_hsv,
)

_FINDINGS = {
    "natural_food": ["Natural colour variation, no additive indicators"],
    "minimal_additives": ["Slightly uniform appearance; natural preservatives possible"],
    "preservatives": ["Smooth, uniform texture typical of preserved products"],
    "artificial_colors": ["Vivid, saturated colours suggest artificial colourants"],
    "harmful_chemicals": ["Uniform glossy coating consistent with chemical surface treatment"],
}


class ChemicalAdditiveDetector(ClassificationDetector):
    detector_id = "chemical"
    display_name = "Chemical additives"
    class_scores = {
        "natural_food": 85,
        "minimal_additives": 85,
        "preservatives": 60,
        "artificial_colors": 60,
        "harmful_chemicals": 30,
    }

    def classify(self, image: FoodImage) -> tuple[str, float, list[str]]:
        hue, sat, val = rgb_to_hsv(image.pixels)
        artificial = ratio((sat > 0.85) & (val > 0.60))
        neon = ratio(hue_between(hue, 0.25, 0.90) & (sat > 0.90) & (val > 0.90))
        coating = ratio((val > 0.85) & (sat < 0.15))
        uniformity = 1.0 - min(float(np.std(val)) * 5.0, 1.0)
        smoothness = 1.0 - min(gradient_energy(val) * 8.0, 1.0)

        if artificial > 0.20 or neon > 0.10:
            label, confidence = "artificial_colors", min((artificial + neon) * 2.0, 1.0)
        elif coating > 0.15 and uniformity > 0.90:
            label, confidence = "harmful_chemicals", min(coating * 3.0, 1.0)
        elif smoothness > 0.90 and uniformity > 0.80:
            label, confidence = "preservatives", 0.5 + 0.4 * smoothness * uniformity
        elif uniformity > 0.60:
            label, confidence = "minimal_additives", 0.5 + (uniformity - 0.6)
        else:
            label, confidence = "natural_food", 0.5 + 0.4 * (1.0 - uniformity)

        return label, confidence, list(_FINDINGS[label])
