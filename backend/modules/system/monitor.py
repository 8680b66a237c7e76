"""
modules/system/monitor.py — Periodic health monitor.

Constructed with its checks and handed to the app (app.state.health_monitor);
the app lifespan calls start() and stop(). Each check is a plain callable
returning truthy when healthy. Checks run in a worker thread so a slow
database or function host never blocks the event loop.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from core.event_bus import get_event_bus, publish
from core.events import HEALTH_CHANGED

log = logging.getLogger("shop.health")

OK = "ok"
DEGRADED = "degraded"
UNKNOWN = "unknown"


class HealthMonitor:

    def __init__(self, checks: dict[str, Callable[[], Any]], interval: float = 60, bus=None):
        self.checks = dict(checks)
        self.interval = interval
        self.bus = bus or get_event_bus()
        self._task: Optional[asyncio.Task] = None
        self._snapshot = {"status": UNKNOWN, "checked_at": None, "checks": {}}

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> dict:
        """Result of the last run; status is "unknown" before the first one."""
        return {
            "status": self._snapshot["status"],
            "checked_at": self._snapshot["checked_at"],
            "checks": {name: dict(result) for name, result in self._snapshot["checks"].items()},
        }

    @staticmethod
    def _run_check(fn: Callable[[], Any]) -> dict:
        try:
            ok = bool(fn())
            return {"ok": ok, "error": None if ok else "check returned false"}
        except Exception as e:
            return {"ok": False, "error": str(e)}

    async def check_now(self) -> dict:
        """Run every check once, store the snapshot and return it."""
        results = {}
        for name, fn in self.checks.items():
            results[name] = await asyncio.to_thread(self._run_check, fn)
            if not results[name]["ok"]:
                log.warning(f"Health check {name} failed: {results[name]['error']}")

        status = OK if all(r["ok"] for r in results.values()) else DEGRADED
        previous = self._snapshot["status"]
        self._snapshot = {
            "status": status,
            "checked_at": datetime.now(timezone.utc).isoformat(),
            "checks": results,
        }
        if status != previous:
            log.info(f"Health status {previous} -> {status}")
            publish(self.bus, HEALTH_CHANGED, "system", status=status, previous=previous)
        return self.snapshot()

    async def _loop(self):
        while True:
            try:
                await self.check_now()
            except Exception as e:
                log.error(f"Health monitor run failed: {e}", exc_info=True)
            await asyncio.sleep(self.interval)

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        log.info(f"Health monitor started ({len(self.checks)} checks every {self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("Health monitor stopped")
