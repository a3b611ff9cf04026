from .matcher import (
    SOURCE_AI_EXTRACTED,
    SOURCE_CATALOG_LINK,
    SOURCE_NAME_DESCRIPTION,
    MatchInfo,
    match_course,
    match_courses,
)
from .similarity import fuzzy_match, jaccard_similarity, text_similarity, token_set

__all__ = [
    "SOURCE_AI_EXTRACTED",
    "SOURCE_CATALOG_LINK",
    "SOURCE_NAME_DESCRIPTION",
    "MatchInfo",
    "match_course",
    "match_courses",
    "fuzzy_match",
    "jaccard_similarity",
    "text_similarity",
    "token_set",
]
