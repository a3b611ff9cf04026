from __future__ import annotations

import json
import re
from pathlib import Path

from .provider import TaxonomyProvider

_SPACE_RE = re.compile(r"\s+")


def normalize_name(raw: str | None) -> str:
    return _SPACE_RE.sub(" ", (raw or "").strip()).casefold()


class LocalTaxonomy(TaxonomyProvider):
    """Skill-name synonyms loaded from a JSON file of ``{canonical_key: [variants]}``."""

    def __init__(self, synonyms_path: str | Path | None = None) -> None:
        path = Path(synonyms_path) if synonyms_path else Path(__file__).with_name("synonyms.json")
        self._synonyms = self._load_synonyms(path)

    @staticmethod
    def _load_synonyms(path: Path) -> dict[str, str]:
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        lookup: dict[str, str] = {}
        for canonical, variants in raw.items():
            key = str(canonical).strip()
            lookup[normalize_name(key)] = key
            for variant in variants or []:
                lookup[normalize_name(str(variant))] = key
        return lookup

    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        normalized = normalize_name(raw)
        return normalized, self._synonyms.get(normalized)

    def same_skill(self, left: str, right: str) -> bool:
        left_norm, left_key = self.normalize_skill(left)
        right_norm, right_key = self.normalize_skill(right)
        if not left_norm or not right_norm:
            return False
        if left_norm == right_norm:
            return True
        return left_key is not None and left_key == right_key
