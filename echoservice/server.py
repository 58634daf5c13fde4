# echoservice/server.py
"""
Process entry point.

Order of startup:
  route table -> bind address -> listener -> signal handlers -> READY=1
  -> listener thread -> watchdog thread

The main thread then blocks until SIGTERM/SIGINT (or, with graceful shutdown
disabled, until the listener exits). Fatal startup errors are logged and
turned into exit code 1.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import FastAPI

from echoservice.config import Settings
from echoservice.errors import NoBindAddressError, ServiceError
from echoservice.infra.address import select_address
from echoservice.infra.listener import Listener
from echoservice.infra.notify import READY, STOPPING, SystemdNotifier, watchdog_interval
from echoservice.main import create_app
from echoservice.worker.shutdown import ShutdownCoordinator
from echoservice.worker.watchdog import HttpProbe, Watchdog, self_url

log = logging.getLogger("echoservice")


@dataclass
class Service:
    app: FastAPI
    listener: Listener
    notifier: SystemdNotifier
    coordinator: ShutdownCoordinator | None = None
    watchdog: Watchdog | None = None

    def stop(self) -> None:
        self.notifier.notify(STOPPING)
        self.listener.stop()

    def wait(self) -> int:
        if self.coordinator is not None:
            return self.coordinator.wait()
        self.listener.join()
        return 0


def resolve_host(cfg: Settings, selector: Callable[[str], str] | None = None) -> str:
    selector = selector or select_address
    host = cfg.host or selector(cfg.excluded_prefix)
    if not host:
        raise NoBindAddressError(
            f'no non-loopback IPv4 interface outside prefix "{cfg.excluded_prefix}"'
        )
    return host


def bootstrap(
    cfg: Settings,
    notifier: SystemdNotifier | None = None,
    selector: Callable[[str], str] | None = None,
) -> Service:
    app = create_app(cfg)
    host = resolve_host(cfg, selector)
    notifier = notifier or SystemdNotifier()

    service = Service(app=app, listener=Listener(app, host, cfg.port), notifier=notifier)

    if cfg.graceful_shutdown:
        service.coordinator = ShutdownCoordinator(service.stop)
        service.coordinator.install()

    notifier.notify(READY)
    service.listener.start()

    interval = watchdog_interval() if cfg.watchdog_enabled else 0.0
    if interval:
        probe = HttpProbe(self_url(host, cfg.port))
        service.watchdog = Watchdog(interval, probe, notifier)
        service.watchdog.start()
        log.info(f"watchdog enabled interval={interval}s period={service.watchdog.period}s")
    return service


def run(cfg: Settings | None = None) -> int:
    cfg = cfg or Settings.from_env()
    try:
        service = bootstrap(cfg)
    except ServiceError as e:
        log.error(f'startup_failed err="{e}"')
        return e.exit_code
    return service.wait()


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
