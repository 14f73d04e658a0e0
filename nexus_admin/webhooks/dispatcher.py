"""
Outbound webhook delivery.

``fire`` launches the POST as a detached asyncio task and returns at once;
the request that triggered it never awaits the task and never sees its
outcome. Failures (non-2xx, network errors, timeouts) are logged and counted
only. Tasks are kept in ``_pending`` so they are not garbage collected
mid-flight, and ``aclose`` gives them a short grace period at shutdown.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, Optional, Set

import aiohttp
from starlette.concurrency import run_in_threadpool

from config.settings import WebhookSettings
from nexus_admin.log import get_logger
from nexus_admin.observability.metrics import metrics

logger = get_logger(__name__)


class WebhookDispatcher:
    def __init__(self, config: WebhookSettings):
        self._config = config
        self._pending: Set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = self._config.api_key
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
            headers["X-API-Key"] = api_key
        return headers

    async def _post(self, payload: Dict[str, Any]) -> int:
        timeout = aiohttp.ClientTimeout(total=self._config.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self._config.url, json=payload, headers=self._build_headers()) as resp:
                return resp.status

    async def deliver(self, payload: Dict[str, Any]) -> bool:
        """POST *payload* to the configured URL. Returns True on 2xx, never raises."""
        if not self.enabled:
            return False
        start = time.perf_counter()
        try:
            status = await self._post(payload)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            metrics.webhook_dispatch_total.labels(outcome="failed").inc()
            logger.error("webhook dispatch error event=%s: %r", payload.get("event"), e)
            return False
        finally:
            metrics.webhook_dispatch_duration_seconds.observe(time.perf_counter() - start)

        if 200 <= status < 300:
            metrics.webhook_dispatch_total.labels(outcome="sent").inc()
            return True
        metrics.webhook_dispatch_total.labels(outcome="http_error").inc()
        logger.warning("webhook endpoint answered %s for event=%s", status, payload.get("event"))
        return False

    async def _resolve_and_deliver(
        self, payload: Dict[str, Any], resolve_user_id: Callable[[], Optional[str]]
    ) -> bool:
        payload["userId"] = await run_in_threadpool(resolve_user_id)
        return await self.deliver(payload)

    def fire(
        self,
        payload: Dict[str, Any],
        resolve_user_id: Optional[Callable[[], Optional[str]]] = None,
    ) -> Optional[asyncio.Task]:
        """Schedule delivery without waiting for it. Must be called on the event loop.

        *resolve_user_id* is a blocking lookup for ``payload["userId"]``; it runs
        inside the detached task, never in the request path.
        """
        if not self.enabled:
            return None
        if resolve_user_id is None:
            coro = self.deliver(payload)
        else:
            coro = self._resolve_and_deliver(payload, resolve_user_id)
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            metrics.webhook_dispatch_total.labels(outcome="failed").inc()
            logger.error("failed to dispatch webhook: %r", exc)

    async def aclose(self) -> None:
        """Wait up to the grace period for in-flight deliveries, then cancel the rest."""
        if not self._pending:
            return
        pending = list(self._pending)
        _, still_running = await asyncio.wait(pending, timeout=self._config.shutdown_grace_seconds)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning("cancelled %d webhook deliveries at shutdown", len(still_running))
