from __future__ import annotations

import json
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TypeVar

from openai import OpenAI
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.storage.results_store import log_ai_analysis_run

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_PLACEHOLDER_PREFIXES = ("your_", "replace_")
_PLACEHOLDER_VALUES = frozenset({"changeme", "todo"})


def _api_key() -> str | None:
    key = (os.getenv("OPENAI_API_KEY") or "").strip()
    lowered = key.lower()
    if not key or lowered.startswith(_PLACEHOLDER_PREFIXES) or lowered in _PLACEHOLDER_VALUES:
        return None
    return key


def llm_enabled() -> bool:
    return settings.llm_enabled and _api_key() is not None


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=_api_key(),
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        timeout=settings.llm_timeout_s,
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


@dataclass
class AIRun:
    """One model call, written to ai_analysis_runs when it finishes."""

    task: str
    model: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started: float = field(default_factory=time.perf_counter)

    def finish(self, status: str, *, schema_valid: bool = False, error_code: str | None = None) -> None:
        try:
            log_ai_analysis_run(
                run_id=self.run_id,
                task=self.task,
                model=self.model,
                schema_valid=schema_valid,
                status=status,
                error_code=error_code,
                latency_ms=int((time.perf_counter() - self.started) * 1000),
            )
        except Exception:  # noqa: BLE001 - a broken run log must not fail the analysis
            logger.debug("ai_run_logging_failed task=%s run_id=%s", self.task, self.run_id, exc_info=True)


def _request_json(run: AIRun, system_prompt: str, user_prompt: str, temperature: float, max_output_tokens: int) -> str:
    response = _client().chat.completions.create(
        model=run.model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=temperature,
        response_format={"type": "json_object"},
        max_tokens=max_output_tokens,
    )
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def json_completion(
    schema: type[ModelT],
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.2,
    max_output_tokens: int = 900,
    task: str = "unknown",
) -> ModelT | None:
    """Ask the model for a JSON object and validate it as ``schema``.

    Every failure (model disabled, transport error, empty reply, bad JSON,
    schema mismatch) is logged as an AI run and returns None so callers can
    keep their deterministic result.
    """
    run = AIRun(task=task or "unknown", model=settings.ai_model.strip())
    if not llm_enabled():
        run.finish("skipped", error_code="llm_disabled")
        return None

    try:
        content = _request_json(run, system_prompt, user_prompt, temperature, max_output_tokens)
    except Exception as exc:  # noqa: BLE001 - deterministic fallback is expected
        logger.warning("llm_request_failed task=%s model=%s prompt_len=%s: %s", run.task, run.model, len(user_prompt), exc)
        run.finish("error", error_code="llm_exception")
        return None

    if not content.strip():
        run.finish("empty", error_code="empty_response")
        return None

    try:
        result = schema.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.info("llm_schema_invalid task=%s schema=%s: %s", run.task, schema.__name__, exc)
        run.finish("invalid_schema", error_code="invalid_schema")
        return None

    run.finish("success", schema_valid=True)
    return result
