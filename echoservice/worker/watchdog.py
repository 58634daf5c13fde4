# echoservice/worker/watchdog.py
"""
Supervisor liveness loop.

Every interval/3 seconds the service GETs its own root URL; when the request
completes (any status code) one WATCHDOG=1 is sent. A failed probe is simply
skipped until the next tick. The loop has no exit condition in production;
it runs on a daemon thread and dies with the process.
"""

from __future__ import annotations

import ipaddress
import threading
from collections.abc import Callable

import httpx

from echoservice.infra.notify import WATCHDOG, SystemdNotifier
from echoservice.metrics import WATCHDOG_NOTIFICATIONS_TOTAL, WATCHDOG_PROBES_TOTAL


def self_url(host: str, port: int) -> str:
    """Root URL of the service itself; IPv6 literals are bracketed."""
    try:
        if ipaddress.ip_address(host).version == 6:
            host = f"[{host}]"
    except ValueError:
        pass
    return f"http://{host}:{port}/"


class HttpProbe:
    """GET the service itself; only transport errors count as failure."""

    def __init__(self, url: str, client: httpx.Client | None = None):
        self.url = url
        self._client = client or httpx.Client(timeout=None)

    def __call__(self) -> bool:
        try:
            self._client.get(self.url)
        except httpx.HTTPError:
            return False
        return True


class Watchdog:
    def __init__(
        self,
        interval: float,
        probe: Callable[[], bool],
        notifier: SystemdNotifier,
        wait: Callable[[float], bool] | None = None,
    ):
        if interval <= 0:
            raise ValueError("watchdog interval must be positive")
        self.interval = interval
        self._probe = probe
        self._notifier = notifier
        self._stop = threading.Event()
        # wait(period) -> True ends the loop
        self._wait = wait or self._stop.wait
        self._thread: threading.Thread | None = None

    @property
    def period(self) -> float:
        return self.interval / 3

    def tick(self) -> bool:
        """One probe; returns True when a liveness notification was sent."""
        if not self._probe():
            WATCHDOG_PROBES_TOTAL.labels(outcome="failed").inc()
            return False
        WATCHDOG_PROBES_TOTAL.labels(outcome="ok").inc()
        self._notifier.notify(WATCHDOG)
        WATCHDOG_NOTIFICATIONS_TOTAL.inc()
        return True

    def run(self) -> None:
        while True:
            self.tick()
            if self._wait(self.period):
                return

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="watchdog", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
