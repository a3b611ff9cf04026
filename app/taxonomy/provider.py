from __future__ import annotations

from typing import Protocol


class TaxonomyProvider(Protocol):
    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        """Return the case-folded, trimmed name and its canonical skill key, if known."""

    def same_skill(self, left: str, right: str) -> bool:
        """True when both names denote the same logical skill."""
