from __future__ import annotations


def token_set(text: str | None) -> set[str]:
    return set((text or "").lower().split())


def jaccard_similarity(left: set[str], right: set[str]) -> float:
    if not left and not right:
        return 0.0
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def text_similarity(left: str | None, right: str | None) -> float:
    """Intersection over union of lowercase whitespace tokens."""
    return jaccard_similarity(token_set(left), token_set(right))


def contains_either(left: str, right: str) -> bool:
    if not left or not right:
        return False
    return left in right or right in left


def fuzzy_match(left: str | None, right: str | None, threshold: float) -> bool:
    left_clean = (left or "").strip().lower()
    right_clean = (right or "").strip().lower()
    if not left_clean or not right_clean:
        return False
    if contains_either(left_clean, right_clean):
        return True
    return text_similarity(left_clean, right_clean) > threshold
