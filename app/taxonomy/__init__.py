from functools import lru_cache

from .local_taxonomy import LocalTaxonomy, normalize_name
from .provider import TaxonomyProvider


@lru_cache(maxsize=1)
def get_default_taxonomy_provider() -> TaxonomyProvider:
    return LocalTaxonomy()


__all__ = ["TaxonomyProvider", "LocalTaxonomy", "normalize_name", "get_default_taxonomy_provider"]
