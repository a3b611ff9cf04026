from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any

import httpx

from app.core.config import settings
from app.core.token_cache import TokenCache
from app.schemas.catalog import CourseEnrichment, EnrichmentPayload

logger = logging.getLogger(__name__)

_ENRICHMENT_FIELDS = (
    "extracted_skills",
    "learning_outcomes",
    "career_paths",
    "industry_tags",
    "target_audience",
    "quality_indicators",
    "summary_ar",
    "summary_en",
)

_ENRICHMENT_QUERY = (
    "MATCH (c:Course {course_id: $course_id}) RETURN "
    + ", ".join(f"c.{name} AS {name}" for name in _ENRICHMENT_FIELDS)
)


class GraphServiceError(RuntimeError):
    pass


def _decode(value: Any) -> Any:
    # The graph service stores list and object properties as JSON strings.
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("[") or text.startswith("{"):
            try:
                return json.loads(text)
            except ValueError:
                return None
    return value


def _first_row(payload: Any) -> dict[str, Any] | None:
    if isinstance(payload, dict):
        for key in ("data", "records", "results"):
            rows = payload.get(key)
            if isinstance(rows, list):
                return _first_row(rows)
        return None
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return payload[0]
    return None


def row_to_enrichment(row: dict[str, Any]) -> CourseEnrichment:
    decoded = {name: _decode(row.get(name)) for name in _ENRICHMENT_FIELDS}
    return EnrichmentPayload.model_validate(decoded).to_enrichment()


class GraphClient:
    """Client-credentials client for the course graph service."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        token_url: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        timeout_s: float | None = None,
        token_cache: TokenCache | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.graph_api_base_url or "").rstrip("/")
        self.token_url = token_url or settings.graph_token_url
        self.client_id = client_id or settings.graph_client_id
        self.client_secret = client_secret or settings.graph_client_secret
        self.timeout_s = timeout_s if timeout_s is not None else settings.graph_timeout_s
        self.token_cache = token_cache or TokenCache(skew_s=settings.graph_token_skew_s)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.token_url and self.client_id and self.client_secret)

    def _http(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout_s, transport=self._transport)

    def access_token(self) -> str:
        cached = self.token_cache.get()
        if cached:
            return cached
        if not self.configured:
            raise GraphServiceError("Graph service credentials are not configured.")

        with self._http() as client:
            response = client.post(
                self.token_url,
                data={"grant_type": "client_credentials", "scope": "neo4j"},
                auth=(self.client_id, self.client_secret),
            )
        if response.status_code >= 400:
            raise GraphServiceError(f"Token request failed with HTTP {response.status_code}.")
        payload = response.json()
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise GraphServiceError("Token response did not include an access token.")
        self.token_cache.set(token, payload.get("expires_in"))
        logger.info("graph_token_refreshed expires_in=%s", payload.get("expires_in"))
        return token

    def query(self, statement: str, parameters: dict[str, Any] | None = None) -> Any:
        token = self.access_token()
        with self._http() as client:
            response = client.post(
                f"{self.base_url}/query",
                json={"query": statement, "parameters": parameters or {}},
                headers={"Authorization": f"Bearer {token}"},
            )
        if response.status_code == 401:
            self.token_cache.clear()
        if response.status_code >= 400:
            raise GraphServiceError(f"Graph query failed with HTTP {response.status_code}.")
        return response.json()

    def fetch_course_enrichment(self, course_id: str) -> CourseEnrichment | None:
        row = _first_row(self.query(_ENRICHMENT_QUERY, {"course_id": course_id}))
        if row is None:
            return None
        return row_to_enrichment(row)


@lru_cache(maxsize=1)
def shared_graph_client() -> GraphClient:
    """Process-wide client; its token cache outlives individual requests."""
    return GraphClient()
