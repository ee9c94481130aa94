"""Background worker that populates the cache off the response path."""

from __future__ import annotations

import asyncio
from typing import Any

from fleet_analytics.cache.analytics_cache import AnalyticsCache
from fleet_analytics.logging_setup import get_default_logger
from fleet_analytics.models.request import ReportRequest
from fleet_analytics.models.response import ReportResponse


class BackgroundCacheWriter:
    """Consume queued (request, response) pairs and write them to the cache.

    Write failures are logged and never reach the request that produced the
    response. The worker is independent of any request task.
    """

    def __init__(self, cache: AnalyticsCache, *, max_pending: int = 1000, logger: Any | None = None):
        if max_pending <= 0:
            raise ValueError("max_pending must be > 0")
        self.cache = cache
        self.max_pending = max_pending
        self.log = (logger or get_default_logger()).bind(component="cache_writer")
        self._queue: asyncio.Queue[tuple[ReportRequest, ReportResponse]] | None = None
        self._worker: asyncio.Task[None] | None = None
        self.written = 0
        self.failed = 0
        self.dropped = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self) -> None:
        self._ensure_worker()

    def submit(self, request: ReportRequest, response: ReportResponse) -> bool:
        """Queue a cache write. Returns False when the queue is full."""
        queue = self._ensure_worker()
        try:
            queue.put_nowait((request, response))
        except asyncio.QueueFull:
            self.dropped += 1
            self.log.warning("cache_write_dropped", report_type=str(request.report_type), pending=self.pending)
            return False
        return True

    async def drain(self) -> None:
        """Wait until every queued write has been attempted."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self, *, drain: bool = True) -> None:
        if drain and self.running:
            await self.drain()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        self.log.info(
            "cache_writer_stopped",
            written=self.written,
            failed=self.failed,
            dropped=self.dropped,
            skipped=self.skipped,
        )

    def _ensure_worker(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.max_pending)
        if not self.running:
            self._worker = asyncio.get_running_loop().create_task(self._run(self._queue), name="cache-writer")
        return self._queue

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            request, response = await queue.get()
            try:
                if await self.cache.set(request, response):
                    self.written += 1
                else:
                    self.skipped += 1
            except Exception as exc:  # noqa: BLE001
                self.failed += 1
                self.log.warning(
                    "cache_write_failed",
                    report_type=str(request.report_type),
                    company_id=request.company_id,
                    error=getattr(exc, "internal_detail", None) or str(exc),
                )
            finally:
                queue.task_done()
