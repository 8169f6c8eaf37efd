from enum import Enum


class PriceSourceTag(str, Enum):
    """Provenance of a resolved price: which resolution tier produced it."""

    CACHE = "cache"
    STORE = "store"
    LIVE = "live"
    INTERPOLATED = "interpolated"
