"""Salt/sugar detector: crystalline surface cues mapped to per-serving salt and sugar (mg)."""

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import RegressionDetector
from foodguard.services.pipeline.detectors.features import local_contrast, ratio, rgb_to_hsv

# (min crystal ratio, min bright-spot ratio, level mg), checked top-down.
_SALT_LEVELS = [(0.15, 0.10, 800.0), (0.08, 0.0, 500.0), (0.03, 0.0, 300.0)]
_SUGAR_LEVELS = [(0.20, 0.15, 15000.0), (0.12, 0.0, 8000.0), (0.05, 0.0, 3000.0)]
_SALT_FLOOR = 50.0
_SUGAR_FLOOR = 500.0


def _level(crystals: float, spots: float, table: list[tuple[float, float, float]], floor: float) -> float:
    for min_crystals, min_spots, level in table:
        if crystals > min_crystals and spots >= min_spots:
            return level
    return floor


class SaltSugarDetector(RegressionDetector):
    detector_id = "saltSugar"
    display_name = "Salt and sugar"
    profile_keys = ("salt_mg", "sugar_mg", "sodium_equivalent_mg")

    def estimate(self, image: FoodImage) -> tuple[dict[str, float], float]:
        _, sat, val = rgb_to_hsv(image.pixels)
        crystals = ratio((val > 0.85) & (sat < 0.20))
        spots = ratio(local_contrast(val) > 0.15)

        salt = _level(crystals, spots, _SALT_LEVELS, _SALT_FLOOR)
        sugar = _level(crystals, spots, _SUGAR_LEVELS, _SUGAR_FLOOR)
        profile = {
            "salt_mg": salt,
            "sugar_mg": sugar,
            "sodium_equivalent_mg": round(salt + sugar * 0.001),
        }
        return profile, 0.5 + min(crystals, 0.4)

    def health_score(self, profile: dict[str, float]) -> int:
        score = 80
        salt, sugar = profile["salt_mg"], profile["sugar_mg"]
        if salt > 600:
            score -= 30
        elif salt > 300:
            score -= 15
        if sugar > 10000:
            score -= 25
        elif sugar > 5000:
            score -= 10
        return max(score, 0)

    def describe(self, profile: dict[str, float], score: int) -> list[str]:
        salt, sugar = profile["salt_mg"], profile["sugar_mg"]
        findings = [f"Estimated {salt:.0f} mg salt and {sugar:.0f} mg sugar per serving"]
        if salt > 600:
            findings.append("High sodium level")
        elif salt > 300:
            findings.append("Moderate sodium level")
        if sugar > 10000:
            findings.append("Very high sugar level")
        elif sugar > 5000:
            findings.append("High sugar level")
        return findings
