"""Fleet analytics aggregation and report caching service."""
