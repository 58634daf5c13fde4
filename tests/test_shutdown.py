import signal
import socket

import httpx
import pytest

from echoservice.config import Settings
from echoservice.errors import ListenerStartupError
from echoservice.infra.listener import Listener
from echoservice.main import create_app
from echoservice.worker.shutdown import ShutdownCoordinator, ShutdownState


def test_coordinator_stops_once_and_exits_zero():
    calls = []
    c = ShutdownCoordinator(lambda: calls.append("stop"))
    assert c.state == ShutdownState.RUNNING

    c.trigger(signal.SIGTERM)
    c.trigger(signal.SIGINT)
    assert c.wait() == 0
    assert calls == ["stop"]
    assert c.signum == signal.SIGTERM
    assert c.state == ShutdownState.TERMINATED


def test_install_registers_handlers():
    c = ShutdownCoordinator(lambda: None, signals=[signal.SIGUSR1])
    previous = signal.getsignal(signal.SIGUSR1)
    try:
        c.install()
        assert signal.getsignal(signal.SIGUSR1) == c._handle
        signal.raise_signal(signal.SIGUSR1)
        assert c.signum == signal.SIGUSR1
    finally:
        signal.signal(signal.SIGUSR1, previous)


def test_graceful_shutdown_stops_accepting_connections(free_port):
    port = free_port
    listener = Listener(create_app(Settings()), "127.0.0.1", port)
    listener.start()
    url = f"http://127.0.0.1:{port}/hello/Ada"

    r = httpx.get(url)
    assert r.status_code == 200
    assert r.text == "Hello Ada\n"

    c = ShutdownCoordinator(listener.stop)
    c.trigger(signal.SIGTERM)
    assert c.wait() == 0
    assert not listener.running

    with pytest.raises(httpx.ConnectError):
        httpx.get(url)


def test_bind_failure_is_startup_error():
    with socket.socket() as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen()
        port = busy.getsockname()[1]
        listener = Listener(create_app(Settings()), "127.0.0.1", port)
        with pytest.raises(ListenerStartupError):
            listener.start()
