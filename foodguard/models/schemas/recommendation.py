"""RecommendationEngine output and the optional user health profile it reads."""

from enum import Enum

from pydantic import BaseModel, field_validator


class RecommendationPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"


class Recommendation(BaseModel):
    model_config = {"frozen": True}

    text: str
    priority: RecommendationPriority = RecommendationPriority.NORMAL
    personalized: bool = False
    source_detector: str | None = None  # None for verdict-level guidance


class UserHealthProfile(BaseModel):
    """Health context supplied by the caller. Every field is optional.

    Values are free-form tags (e.g. "diabetes", "peanuts", "vegan"), matched
    case-insensitively against personalization rules.
    """
    model_config = {"frozen": True}

    health_conditions: tuple[str, ...] = ()
    allergies: tuple[str, ...] = ()
    dietary_restrictions: tuple[str, ...] = ()

    @field_validator("health_conditions", "allergies", "dietary_restrictions", mode="before")
    @classmethod
    def _normalize(cls, v):
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set, frozenset)):
            raise ValueError("expected a string or a list of strings")
        return tuple(str(item).strip().lower() for item in v if str(item).strip())

    def tags(self) -> frozenset[str]:
        return frozenset(self.health_conditions + self.allergies + self.dietary_restrictions)
