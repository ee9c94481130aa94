"""Tests for application lifespan startup/shutdown wiring."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi import FastAPI

import fleet_analytics.main as main_module
from fleet_analytics.cache.analytics_cache import AnalyticsCache
from fleet_analytics.cache.store import InMemoryCacheStore
from fleet_analytics.errors import DependencyError


class _Stub:
    def __init__(self, *args: Any, **kwargs: Any):
        del args, kwargs


class _FakeMongoClient:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


class _ClosingStore(InMemoryCacheStore):
    def __init__(self) -> None:
        super().__init__()
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class _FakeScheduler:
    def __init__(self) -> None:
        self.jobs: list[dict[str, Any]] = []
        self.running = False
        self.shutdown_called = False
        self.shutdown_wait: bool | None = None

    def add_job(self, func: Any, **kwargs: Any) -> None:
        self.jobs.append({"func": func, **kwargs})

    def start(self) -> None:
        self.running = True

    def shutdown(self, wait: bool = False) -> None:
        self.shutdown_called = True
        self.shutdown_wait = wait
        self.running = False


def _settings(tmp_path: Path, **overrides: Any) -> SimpleNamespace:
    values = {
        "mongodb_uri": "mongodb://example",
        "mongodb_database": "fleet_test",
        "data_access_retry_attempts": 2,
        "cache_backend": "memory",
        "redis_url": None,
        "cache_namespace": "analytics",
        "cache_write_queue_size": 10,
        "cache_single_flight": True,
        "cache_circuit_breaker_failure_threshold": 3,
        "cache_circuit_breaker_recovery_seconds": 30,
        "cache_cleanup_enabled": True,
        "cache_cleanup_interval_seconds": 120,
        "cache_cleanup_threshold_seconds": 45,
        "ttl_policy_config_path": tmp_path / "ttl_policy.yaml",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _patch_dependencies(
    monkeypatch: pytest.MonkeyPatch,
    settings: SimpleNamespace,
    mongo_client: _FakeMongoClient,
    store: _ClosingStore,
    scheduler: _FakeScheduler,
) -> None:
    async def _fake_create_mongo_client(uri: str) -> _FakeMongoClient:
        assert uri == "mongodb://example"
        return mongo_client

    async def _fake_ensure_indexes(db: Any) -> None:
        del db

    monkeypatch.setattr(main_module, "setup_logging", lambda: None)
    monkeypatch.setattr(main_module, "get_settings", lambda: settings)
    monkeypatch.setattr(main_module, "create_mongo_client", _fake_create_mongo_client)
    monkeypatch.setattr(main_module, "get_database", lambda client, db_name: {"client": client, "db_name": db_name})
    monkeypatch.setattr(main_module, "ensure_indexes", _fake_ensure_indexes)
    monkeypatch.setattr(main_module, "MongoFleetDataRepository", _Stub)
    monkeypatch.setattr(main_module, "create_cache_store", lambda _settings: store)
    monkeypatch.setattr(main_module, "AsyncIOScheduler", lambda: scheduler)


@pytest.mark.asyncio
async def test_lifespan_wires_engine_and_cleanup_job(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake_mongo_client = _FakeMongoClient()
    fake_scheduler = _FakeScheduler()
    store = _ClosingStore()
    _patch_dependencies(monkeypatch, _settings(tmp_path), fake_mongo_client, store, fake_scheduler)

    app = FastAPI()
    async with main_module.lifespan(app):
        assert app.state.scheduler is fake_scheduler
        assert fake_scheduler.running is True
        assert app.state.analytics_engine.cache is app.state.analytics_cache
        assert app.state.analytics_cache.store is store
        assert app.state.cache_writer.running is True

        jobs_by_id = {job["id"]: job for job in fake_scheduler.jobs}
        assert set(jobs_by_id) == {"cache_cleanup"}
        job = jobs_by_id["cache_cleanup"]
        assert job["func"] is main_module.run_cache_cleanup
        assert job["seconds"] == 120
        assert job["args"] == [app.state.analytics_cache, timedelta(seconds=45)]
        assert job["coalesce"] is True
        assert job["max_instances"] == 1

    assert fake_scheduler.shutdown_called is True
    assert fake_scheduler.shutdown_wait is False
    assert store.closed is True
    assert fake_mongo_client.closed is True


@pytest.mark.asyncio
async def test_lifespan_skips_scheduler_when_cleanup_disabled(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    fake_scheduler = _FakeScheduler()
    settings = _settings(tmp_path, cache_cleanup_enabled=False)
    _patch_dependencies(monkeypatch, settings, _FakeMongoClient(), _ClosingStore(), fake_scheduler)

    app = FastAPI()
    async with main_module.lifespan(app):
        assert fake_scheduler.jobs == []
        assert fake_scheduler.running is False

    assert fake_scheduler.shutdown_called is False


def test_create_cache_store_selects_backend() -> None:
    memory = main_module.create_cache_store(SimpleNamespace(cache_backend="memory", redis_url=None))
    redis_store = main_module.create_cache_store(
        SimpleNamespace(cache_backend="redis", redis_url="redis://localhost:6379/0")
    )

    assert isinstance(memory, InMemoryCacheStore)
    assert isinstance(redis_store, main_module.RedisCacheStore)


class _FailingKeysStore(InMemoryCacheStore):
    async def keys_matching(self, pattern: str) -> list[str]:
        raise DependencyError("Cache store is unavailable", internal_detail="SCAN refused")


@pytest.mark.asyncio
async def test_cache_cleanup_job_logs_store_failures() -> None:
    removed = await main_module.run_cache_cleanup(
        AnalyticsCache(_FailingKeysStore()),
        timedelta(seconds=60),
    )

    assert removed == 0
