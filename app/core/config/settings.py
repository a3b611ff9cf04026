from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    sentry_traces_sample_rate: float
    rate_limit: str
    submit_rate_limit: str
    rate_limit_enabled: bool
    cors_allowed_origins: tuple[str, ...]
    results_db_path: str
    catalog_path: str
    recommendation_limit: int
    enrichment_enabled: bool
    llm_enabled: bool
    llm_timeout_s: float
    ai_model: str
    graph_api_base_url: str | None
    graph_token_url: str | None
    graph_client_id: str | None
    graph_client_secret: str | None
    graph_timeout_s: float
    graph_token_skew_s: int


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    sentry_traces_sample_rate=_get_env_float("SENTRY_TRACES_SAMPLE_RATE", 0.0),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    submit_rate_limit=_get_env("SUBMIT_RATE_LIMIT", "20/minute") or "20/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    results_db_path=_get_env("RESULTS_DB_PATH", "data/skill_results.db") or "data/skill_results.db",
    catalog_path=_get_env("CATALOG_PATH", "data/catalog.json") or "data/catalog.json",
    recommendation_limit=_get_env_int("RECOMMENDATION_LIMIT", 10),
    enrichment_enabled=_get_env_bool("ENRICHMENT_ENABLED", False),
    llm_enabled=_get_env_bool("LLM_ENABLED", True),
    llm_timeout_s=_get_env_float("LLM_TIMEOUT_S", 20.0),
    ai_model=_get_env("AI_MODEL", "gpt-4o-mini") or "gpt-4o-mini",
    graph_api_base_url=_get_env("GRAPH_API_BASE_URL"),
    graph_token_url=_get_env("GRAPH_TOKEN_URL"),
    graph_client_id=_get_env("GRAPH_CLIENT_ID"),
    graph_client_secret=_get_env("GRAPH_CLIENT_SECRET"),
    graph_timeout_s=_get_env_float("GRAPH_TIMEOUT_S", 10.0),
    graph_token_skew_s=_get_env_int("GRAPH_TOKEN_SKEW_S", 300),
)

if settings.recommendation_limit <= 0:
    raise RuntimeError("RECOMMENDATION_LIMIT must be greater than 0.")
