"""Rule table loader.

Reads weights.yaml, criticality.yaml and recommendations.yaml from a rules
directory, validates them into RuleTables, and stamps a deterministic
fingerprint of the parsed content as config_version.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from foodguard.errors import ConfigurationError
from foodguard.models.schemas.rules import (
    CriticalityEntry,
    RecommendationRules,
    RuleTables,
    WeightTable,
)

logger = logging.getLogger(__name__)

RULE_FILES = ("weights.yaml", "criticality.yaml", "recommendations.yaml")


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"cannot read rule file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


def compute_fingerprint(data: dict[str, Any]) -> str:
    """sha256 over canonical JSON of the parsed tables, first 12 hex chars."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:12]


def load_rule_tables(rules_dir: str | Path) -> RuleTables:
    """Load and validate all rule tables. Raises ConfigurationError on any problem."""
    root = Path(rules_dir)
    if not root.is_dir():
        raise ConfigurationError(f"rules directory not found: {root}")

    raw = {name: _load_yaml(root / name) for name in RULE_FILES}
    weights = raw["weights.yaml"].get("weights") or {}
    criticality = raw["criticality.yaml"].get("criticality") or []
    if not isinstance(weights, dict) or not isinstance(criticality, list):
        raise ConfigurationError(f"weights must be a mapping and criticality a list in {root}")

    # Weight sum and ranges are checked here and again at registration.
    WeightTable.from_mapping(weights)

    try:
        tables = RuleTables(
            weights=weights,
            criticality=tuple(CriticalityEntry.model_validate(e) for e in criticality),
            recommendations=RecommendationRules.model_validate(raw["recommendations.yaml"]),
            config_version=f"rules@{compute_fingerprint(raw)}",
        )
    except ValidationError as e:
        raise ConfigurationError(f"invalid rule tables in {root}: {e}") from e

    logger.info(
        "Loaded rule tables from %s (%s): %d weights, %d criticality entries",
        root,
        tables.config_version,
        len(tables.weights),
        len(tables.criticality),
    )
    return tables
