from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import CatalogLoadError
from app.schemas.catalog import Course, Skill

logger = logging.getLogger(__name__)

_cache_lock = threading.Lock()
_cache: dict[str, tuple[float, "CatalogSnapshot"]] = {}


@dataclass(frozen=True)
class CatalogSnapshot:
    courses: tuple[Course, ...] = ()
    skills: dict[str, Skill] = field(default_factory=dict)
    visible_course_ids: frozenset[str] = frozenset()


def _parse(raw: object, path: Path) -> CatalogSnapshot:
    if not isinstance(raw, dict):
        raise CatalogLoadError(f"Catalog file '{path}' must contain a JSON object.")
    try:
        courses = tuple(Course.model_validate(item) for item in raw.get("courses") or [])
        skills = [Skill.model_validate(item) for item in raw.get("skills") or []]
    except ValidationError as exc:
        raise CatalogLoadError(f"Catalog file '{path}' has invalid entries: {exc.error_count()} errors.") from exc
    visible = frozenset(str(item) for item in raw.get("visible_course_ids") or [])
    return CatalogSnapshot(courses=courses, skills={skill.id: skill for skill in skills}, visible_course_ids=visible)


def load_catalog(path: str | None = None) -> CatalogSnapshot:
    """Read the local catalog file, reusing the parsed copy until the file changes.

    A missing file is an empty catalog, which shows no recommendations.
    """
    catalog_path = Path(path or settings.catalog_path)
    if not catalog_path.exists():
        logger.warning("catalog_missing path=%s", catalog_path)
        return CatalogSnapshot()

    mtime = catalog_path.stat().st_mtime
    key = str(catalog_path.resolve())
    with _cache_lock:
        cached = _cache.get(key)
        if cached is not None and cached[0] == mtime:
            return cached[1]

    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogLoadError(f"Failed to read catalog '{catalog_path}': {exc}") from exc

    snapshot = _parse(raw, catalog_path)
    with _cache_lock:
        _cache[key] = (mtime, snapshot)
    logger.info(
        "catalog_loaded path=%s courses=%s skills=%s visible=%s",
        catalog_path,
        len(snapshot.courses),
        len(snapshot.skills),
        len(snapshot.visible_course_ids),
    )
    return snapshot
