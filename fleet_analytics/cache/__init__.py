"""Analytics cache: key derivation, TTL policy, stores and background writes."""

from fleet_analytics.cache.analytics_cache import AnalyticsCache, CacheStats
from fleet_analytics.cache.keys import derive_cache_key
from fleet_analytics.cache.store import CacheStore, InMemoryCacheStore, RedisCacheStore, TTLSentinel
from fleet_analytics.cache.ttl import DEFAULT_REPORT_TTLS, TTLPolicy
from fleet_analytics.cache.writer import BackgroundCacheWriter

__all__ = [
    "AnalyticsCache",
    "BackgroundCacheWriter",
    "CacheStats",
    "CacheStore",
    "DEFAULT_REPORT_TTLS",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "TTLPolicy",
    "TTLSentinel",
    "derive_cache_key",
]
