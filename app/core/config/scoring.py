from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any

import yaml

_DEFAULT_SCORING_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"
_WEIGHT_TOLERANCE = 1e-6
_SECTION_KEYS = frozenset({"gap_based", "interest_based", "career_based"})

_cache_lock = threading.Lock()
_SCORING_CONFIG_CACHE: dict[str, Any] | None = None


def scoring_config_path() -> Path:
    override = (os.getenv("SCORING_CONFIG_PATH") or "").strip()
    return Path(override) if override else _DEFAULT_SCORING_CONFIG_PATH


def _validate(parsed: dict[str, Any], path: Path) -> None:
    thresholds = (parsed.get("levels") or {}).get("thresholds") or {}
    high = thresholds.get("high", 70)
    medium = thresholds.get("medium", 40)
    if not (0 <= medium < high <= 100):
        raise RuntimeError(
            f"Invalid scoring config '{path}': levels.thresholds must satisfy 0 <= medium < high <= 100."
        )

    order = (parsed.get("recommendation") or {}).get("section_order")
    if order is not None and not (
        isinstance(order, list)
        and all(isinstance(key, str) for key in order)
        and len(order) == len(_SECTION_KEYS)
        and set(order) == _SECTION_KEYS
    ):
        raise RuntimeError(
            f"Invalid scoring config '{path}': recommendation.section_order must list each section exactly once."
        )

    weights = ((parsed.get("recommendation") or {}).get("weights")) or {}
    if not isinstance(weights, dict) or not weights:
        raise RuntimeError(f"Invalid scoring config '{path}': recommendation.weights is missing.")
    for policy, factors in weights.items():
        if not isinstance(factors, dict) or not factors:
            raise RuntimeError(f"Invalid scoring config '{path}': no factors for policy '{policy}'.")
        total = sum(float(value) for value in factors.values())
        if abs(total - 1.0) > _WEIGHT_TOLERANCE:
            raise RuntimeError(
                f"Invalid scoring config '{path}': weights for policy '{policy}' sum to {total:.4f}, expected 1.0."
            )


def get_scoring_config() -> dict[str, Any]:
    """Load config/scoring.yaml (or SCORING_CONFIG_PATH) once and keep it for the process."""
    global _SCORING_CONFIG_CACHE

    with _cache_lock:
        if _SCORING_CONFIG_CACHE is not None:
            return _SCORING_CONFIG_CACHE

        path = scoring_config_path()
        if not path.exists():
            raise RuntimeError(f"Scoring config not found at '{path}'. Expected file: config/scoring.yaml")

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(f"Failed to read scoring config '{path}': {exc}") from exc

        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise RuntimeError(f"Invalid YAML in scoring config '{path}': {exc}") from exc

        if not isinstance(parsed, dict):
            raise RuntimeError(f"Invalid scoring config '{path}': expected a top-level mapping.")

        _validate(parsed, path)
        _SCORING_CONFIG_CACHE = parsed
        return _SCORING_CONFIG_CACHE


def clear_scoring_config_cache() -> None:
    global _SCORING_CONFIG_CACHE
    with _cache_lock:
        _SCORING_CONFIG_CACHE = None


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Dot-path lookup, e.g. 'recommendation.weights.skill_based_only.skill_match'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def get_policy_weights(policy: str) -> dict[str, float]:
    raw = get_scoring_value(f"recommendation.weights.{policy}", None)
    if not isinstance(raw, dict) or not raw:
        raise RuntimeError(f"No weights configured for scoring policy '{policy}'.")
    return {str(key): float(value) for key, value in raw.items()}
