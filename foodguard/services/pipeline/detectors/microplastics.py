"""Microplastics detector: reflective specks, synthetic hues and packaging residue."""

import numpy as np

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import ClassificationDetector
from foodguard.services.pipeline.detectors.features import (
    gradient_energy,
    hue_between,
    local_contrast,
    ratio,
    rgb_to_hsv,
)

_FINDINGS = {
    "low_risk": ["No particle or packaging contamination indicators"],
    "moderate_risk": ["Surface patterns typical of packaged, processed food"],
    "high_risk": ["Synthetic-coloured fragments or packaging residue detected"],
    "critical_risk": ["Reflective micro-particles consistent with plastic contamination"],
}


class MicroplasticsDetector(ClassificationDetector):
    detector_id = "microplastics"
    display_name = "Microplastics"
    class_scores = {
        "low_risk": 85,
        "moderate_risk": 60,
        "high_risk": 30,
        "critical_risk": 10,
    }

    def classify(self, image: FoodImage) -> tuple[str, float, list[str]]:
        hue, sat, val = rgb_to_hsv(image.pixels)
        particles = ratio((local_contrast(val) > 0.30) & (sat < 0.15))
        reflective = ratio((val > 0.95) & (sat < 0.05))
        plastic = ratio(hue_between(hue, 0.50, 0.75) & (sat > 0.50) & (val > 0.50))
        residue = ratio((sat < 0.08) & (val > 0.75) & (val <= 0.95))
        edge_density = min(gradient_energy(val) * 4.0, 1.0)
        edge_variance = float(np.var(np.diff(val, axis=1))) if val.shape[1] > 1 else 0.0

        if particles > 0.05 or reflective > 0.03:
            label = "critical_risk"
            confidence = min(particles * 5.0 + reflective * 10.0, 1.0)
        elif plastic > 0.02 or residue > 0.30:
            label = "high_risk"
            confidence = min((plastic + residue) * 2.0, 1.0)
        elif edge_density > 0.40 or edge_variance > 0.01:
            label = "moderate_risk"
            confidence = 0.5 + min(edge_variance * 20.0, 0.4)
        else:
            label = "low_risk"
            confidence = 0.7

        return label, max(confidence, 0.5), list(_FINDINGS[label])
