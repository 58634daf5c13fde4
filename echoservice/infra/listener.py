# echoservice/infra/listener.py
# uvicorn server on its own thread. Off the main thread uvicorn installs no
# signal handlers, so shutdown stays with the ShutdownCoordinator.

from __future__ import annotations

import logging
import threading
import time

import uvicorn
from fastapi import FastAPI

from echoservice.errors import ListenerStartupError

log = logging.getLogger("echoservice")


class Listener:
    def __init__(self, app: FastAPI, host: str, port: int, poll_interval: float = 0.05):
        self.host = host
        self.port = port
        self._poll = poll_interval
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        self.server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._serve, name="http-listener", daemon=True)
        self._exit_code: int | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def _serve(self) -> None:
        try:
            self.server.run()
        except SystemExit as e:
            # uvicorn exits the thread with status 1 when it cannot bind
            self._exit_code = e.code if isinstance(e.code, int) else 1

    def start(self) -> None:
        """Start serving and block until the socket is bound or startup failed."""
        log.info(f"creating listener on {self.address}")
        self._thread.start()
        while not self.server.started:
            if not self._thread.is_alive():
                raise ListenerStartupError(
                    f"listener on {self.address} failed to start (exit={self._exit_code})"
                )
            time.sleep(self._poll)

    def stop(self) -> None:
        """Stop accepting connections and wait for in-flight requests. No deadline."""
        self.server.should_exit = True
        self.join()

    def join(self) -> None:
        if self._thread.is_alive():
            self._thread.join()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()
