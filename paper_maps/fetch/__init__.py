"""Network fetch layer.

- cache: resumable, content-addressed fetch cache with a not-found set
- session: reference-counted shared ``httpx.AsyncClient``
- pacing: minimum-interval request pacing
"""

from paper_maps.fetch.cache import (
    FetchCache,
    FetchError,
    NotFoundError,
    derive_cache_key,
)
from paper_maps.fetch.pacing import Pacer
from paper_maps.fetch.session import SharedClient

__all__ = [
    "FetchCache",
    "FetchError",
    "NotFoundError",
    "Pacer",
    "SharedClient",
    "derive_cache_key",
]
