"""Nutritional detector: rough per-serving macro estimate from food composition colours.

Estimates calories, macros, fiber, sugar and sodium from the share of
protein-, carb-, fat- and vegetable-coloured regions, then scores balance:

    base 50
    +20 protein supplies more than 15% of energy
    +15 fiber above 2 g per 100 kcal
    +10 fat supplies less than 30% of energy
    +15 vegetables cover more than 30% of the plate
"""

from foodguard.services.image_input import FoodImage
from foodguard.services.pipeline.base import RegressionDetector
from foodguard.services.pipeline.detectors.features import hue_between, ratio, rgb_to_hsv


class NutritionalDetector(RegressionDetector):
    detector_id = "nutritional"
    display_name = "Nutrition"
    profile_keys = (
        "calories",
        "protein_g",
        "carbs_g",
        "fat_g",
        "fiber_g",
        "sugar_g",
        "sodium_mg",
        "vegetable_ratio",
    )

    def estimate(self, image: FoodImage) -> tuple[dict[str, float], float]:
        hue, sat, val = rgb_to_hsv(image.pixels)
        reds = (hue < 0.05) | (hue >= 0.93)
        protein = ratio((reds & (sat > 0.35) & (val > 0.25)) | ((sat < 0.15) & (val > 0.85)))
        carbs = ratio(hue_between(hue, 0.08, 0.17) & (sat < 0.35) & (val > 0.60))
        fat = ratio(hue_between(hue, 0.05, 0.17) & (sat >= 0.50) & (val > 0.50))
        veg = ratio(hue_between(hue, 0.20, 0.45) & (sat > 0.25) & (val > 0.20))
        coverage = 1.0 - ratio(val < 0.08)

        protein_g = 4.0 + 30.0 * protein
        carbs_g = 10.0 + 55.0 * carbs
        fat_g = 3.0 + 25.0 * fat
        fiber_g = 1.0 + 10.0 * veg + 2.0 * carbs
        sugar_g = 2.0 + 12.0 * carbs + 4.0 * veg
        sodium_mg = 150.0 + 450.0 * fat + 200.0 * protein
        calories = 4.0 * protein_g + 4.0 * carbs_g + 9.0 * fat_g

        profile = {
            "calories": round(calories),
            "protein_g": round(protein_g, 1),
            "carbs_g": round(carbs_g, 1),
            "fat_g": round(fat_g, 1),
            "fiber_g": round(fiber_g, 1),
            "sugar_g": round(sugar_g, 1),
            "sodium_mg": round(sodium_mg),
            "vegetable_ratio": round(veg, 3),
        }
        return profile, 0.45 + 0.4 * coverage

    def health_score(self, profile: dict[str, float]) -> int:
        calories = max(profile["calories"], 1.0)
        score = 50
        if profile["protein_g"] * 4.0 / calories > 0.15:
            score += 20
        if profile["fiber_g"] / calories > 0.02:
            score += 15
        if profile["fat_g"] * 9.0 / calories < 0.30:
            score += 10
        if profile["vegetable_ratio"] > 0.30:
            score += 15
        return min(max(score, 0), 100)

    def describe(self, profile: dict[str, float], score: int) -> list[str]:
        findings = [
            f"About {profile['calories']:.0f} kcal per serving "
            f"({profile['protein_g']:.0f} g protein, {profile['carbs_g']:.0f} g carbs, "
            f"{profile['fat_g']:.0f} g fat)"
        ]
        if profile["protein_g"] < 10:
            findings.append("Low in protein")
        if profile["fiber_g"] < 3:
            findings.append("Low fiber content")
        if profile["fat_g"] > 20:
            findings.append("High fat content")
        return findings
