"""Temperature safety detector: serving temperature from warmth, steam and frost cues.

Food between cold storage and hot holding (roughly 5-60 C) sits in the
bacterial danger zone.
"""

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import ClassificationDetector
from foodguard.services.pipeline.detectors.features import (
    hue_between,
    ratio,
    rgb_to_hsv,
)

_ESTIMATED_CELSIUS = {
    "too_hot": 80,
    "safe_hot": 65,
    "safe_cold": 3,
    "dangerous_temp": 25,
}

_FINDINGS = {
    "too_hot": ["Dense steam suggests food is above 74 C"],
    "safe_hot": ["Warm tones and sheen consistent with hot-holding temperature"],
    "safe_cold": ["Frost or condensation consistent with refrigeration"],
    "dangerous_temp": ["No heat or cold cues; food likely at room temperature"],
}


class TemperatureDetector(ClassificationDetector):
    detector_id = "temperature"
    display_name = "Temperature safety"
    class_scores = {
        "safe_hot": 90,
        "safe_cold": 90,
        "too_hot": 60,
        "dangerous_temp": 20,
    }

    def classify(self, image: FoodImage) -> tuple[str, float, list[str]]:
        hue, sat, val = rgb_to_hsv(image.pixels)
        brightness = float(val.mean())
        saturation = float(sat.mean())
        warm = ratio((hue_between(hue, 0.0, 0.12) | (hue >= 0.92)) & (sat > 0.30))
        steam = ratio((sat < 0.12) & (val > 0.85))
        cold = ratio(hue_between(hue, 0.50, 0.70) & (sat > 0.10) & (val > 0.60))

        if brightness > 0.55 and saturation > 0.35 and warm > 0.5:
            if steam > 0.15:
                label, confidence = "too_hot", 0.6 + min(steam, 0.35)
            else:
                label, confidence = "safe_hot", 0.55 + 0.4 * warm
        elif cold > 0.10 or brightness > 0.80:
            label, confidence = "safe_cold", 0.55 + min(cold, 0.4)
        else:
            label, confidence = "dangerous_temp", 0.6

        findings = list(_FINDINGS[label])
        findings.append(f"Estimated temperature about {_ESTIMATED_CELSIUS[label]} C")
        return label, confidence, findings
