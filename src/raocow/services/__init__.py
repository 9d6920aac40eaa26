"""Service layer wiring repositories and relationship managers together.

Example:
    >>> from raocow.services import Catalog, seed_sample_data
    >>>
    >>> catalog = Catalog(store)
    >>> result = await seed_sample_data(catalog, video_count=10)
"""

from .catalog import Catalog, SeedResult, seed_sample_data

__all__ = [
    "Catalog",
    "SeedResult",
    "seed_sample_data",
]
