from .engine import build_recommendation_sections, parse_terms
from .policies import DEFAULT_POLICY, SCORING_POLICIES, PolicyInput, PolicyScore, resolve_policy, score_with_policy
from .ranker import DEFAULT_SECTION_ORDER, dedupe_sections, filter_visible, rank_key, score_matches
from .reasons import compose_reason

__all__ = [
    "build_recommendation_sections",
    "parse_terms",
    "DEFAULT_POLICY",
    "SCORING_POLICIES",
    "PolicyInput",
    "PolicyScore",
    "resolve_policy",
    "score_with_policy",
    "DEFAULT_SECTION_ORDER",
    "dedupe_sections",
    "filter_visible",
    "rank_key",
    "score_matches",
    "compose_reason",
]
