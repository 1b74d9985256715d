import os
from pathlib import Path

from pydantic_settings import BaseSettings

DEFAULT_RULES_DIR = Path(__file__).parent / "data"


def _parse_cors_origins() -> list[str] | None:
    """Parse FOODGUARD_CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("FOODGUARD_CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    # Detector fan-out
    detector_timeout_seconds: float = 10.0  # per-task budget, missed -> fallback
    request_deadline_seconds: float | None = 30.0  # whole fan-out budget, None disables
    max_workers: int = 8

    # Report shaping
    max_recommendations: int = 10
    rules_dir: str = str(DEFAULT_RULES_DIR)  # weights.yaml, criticality.yaml, recommendations.yaml

    # HTTP surface
    max_upload_size_mb: int = 10
    max_image_side: int = 512  # uploads are downscaled before analysis
    rate_limit: str = "30/minute"
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    log_level: str = "INFO"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "FOODGUARD_"}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
