from .keys import options_key
from .coordinator import CacheCoordinator, CacheEntry, CacheStats

__all__ = ["options_key", "CacheCoordinator", "CacheEntry", "CacheStats"]
