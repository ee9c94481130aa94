"""Fleet analytics service: FastAPI application entry point."""

import logging
import logging.config
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from fleet_analytics.api import analytics, health
from fleet_analytics.audit import AuditTrail
from fleet_analytics.cache import AnalyticsCache, BackgroundCacheWriter, InMemoryCacheStore, RedisCacheStore
from fleet_analytics.config import Settings, get_settings, load_ttl_policy
from fleet_analytics.engine import AnalyticsEngine
from fleet_analytics.errors import AnalyticsError
from fleet_analytics.logging_setup import configure_structured_logging, get_default_logger, silence_noisy_loggers
from fleet_analytics.repositories.mongo import (
    MongoFleetDataRepository,
    create_mongo_client,
    ensure_indexes,
    get_database,
)
from fleet_analytics.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Load logging configuration from YAML."""
    log_config_path = Path("config/logging.yaml")
    if log_config_path.exists():
        with open(log_config_path) as f:
            config = yaml.safe_load(f)
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    configure_structured_logging()
    silence_noisy_loggers()


def create_cache_store(settings: Settings) -> RedisCacheStore | InMemoryCacheStore:
    """Build the configured cache store backend."""
    if settings.cache_backend == "memory":
        return InMemoryCacheStore()
    return RedisCacheStore.from_url(settings.redis_url or "")


async def run_cache_cleanup(cache: AnalyticsCache, threshold: timedelta) -> int:
    """Scheduled job: drop entries about to expire. Store failures are logged, not raised."""
    try:
        return await cache.cleanup_expired(threshold)
    except AnalyticsError as exc:
        get_default_logger().bind(component="scheduler").warning(
            "cache_cleanup_failed",
            error=exc.internal_detail or exc.message,
        )
        return 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    setup_logging()
    logger.info("Fleet analytics starting up...")
    mongo_client = None
    cache_store = None
    cache_writer: BackgroundCacheWriter | None = None
    scheduler: AsyncIOScheduler | None = None

    try:
        settings = get_settings()
        ttl_policy = load_ttl_policy(settings.ttl_policy_config_path)
        logger.info(
            "Configuration loaded successfully (cache_backend=%s, namespace=%s).",
            settings.cache_backend,
            settings.cache_namespace,
        )

        mongo_client = await create_mongo_client(settings.mongodb_uri)
        mongo_db = get_database(mongo_client, settings.mongodb_database)
        await ensure_indexes(mongo_db)
        app.state.mongo_client = mongo_client
        app.state.mongo_db = mongo_db
        app.state.settings = settings

        struct_logger = get_default_logger()
        data_repo = MongoFleetDataRepository(mongo_db, retry_attempts=settings.data_access_retry_attempts)
        cache_store = create_cache_store(settings)
        analytics_cache = AnalyticsCache(
            cache_store,
            ttl_policy=ttl_policy,
            namespace=settings.cache_namespace,
            circuit_breaker=CircuitBreaker(
                failure_threshold=settings.cache_circuit_breaker_failure_threshold,
                recovery_seconds=settings.cache_circuit_breaker_recovery_seconds,
            ),
            audit=AuditTrail(struct_logger),
            logger=struct_logger,
        )
        cache_writer = BackgroundCacheWriter(
            analytics_cache,
            max_pending=settings.cache_write_queue_size,
            logger=struct_logger,
        )
        await cache_writer.start()
        engine = AnalyticsEngine(
            data_repo,
            analytics_cache,
            cache_writer=cache_writer,
            single_flight=settings.cache_single_flight,
            logger=struct_logger,
        )
        app.state.data_repo = data_repo
        app.state.cache_store = cache_store
        app.state.analytics_cache = analytics_cache
        app.state.cache_writer = cache_writer
        app.state.analytics_engine = engine

        scheduler = AsyncIOScheduler()
        app.state.scheduler = scheduler
        if settings.cache_cleanup_enabled:
            scheduler.add_job(
                run_cache_cleanup,
                trigger="interval",
                seconds=settings.cache_cleanup_interval_seconds,
                args=[analytics_cache, timedelta(seconds=settings.cache_cleanup_threshold_seconds)],
                id="cache_cleanup",
                replace_existing=True,
                coalesce=True,
                max_instances=1,
            )
            scheduler.start()
            logger.info("Scheduler started (cache_cleanup_interval=%ss).", settings.cache_cleanup_interval_seconds)
        else:
            logger.info("Scheduler initialization skipped because cache cleanup is disabled.")

        logger.info("Fleet analytics ready.")
        yield
    finally:
        logger.info("Fleet analytics shutting down...")
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)
        if cache_writer is not None:
            await cache_writer.stop(drain=True)
        if cache_store is not None:
            await cache_store.close()
        if mongo_client is not None:
            mongo_client.close()


app = FastAPI(
    title="Fleet Analytics",
    description="Cached fleet analytics reports over vehicle, trip, fuel and maintenance data",
    version="0.1.0",
    lifespan=lifespan,
)
analytics.register_error_handlers(app)
app.include_router(health.router)
app.include_router(analytics.router)


@app.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
