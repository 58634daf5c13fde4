import signal

import pytest

from echoservice import server
from echoservice.config import Settings
from echoservice.errors import NoBindAddressError
from echoservice.server import bootstrap, resolve_host, run
from echoservice.worker.shutdown import ShutdownState


class RecordingNotifier:
    def __init__(self):
        self.states = []

    def notify(self, state):
        self.states.append(state)
        return True


@pytest.fixture
def restore_signals():
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGTERM, signal.SIGINT)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)


def test_explicit_host_skips_selection():
    def selector(prefix):
        raise AssertionError("selector should not run")

    assert resolve_host(Settings(host="127.0.0.1"), selector) == "127.0.0.1"


def test_selected_host_used():
    assert resolve_host(Settings(excluded_prefix="172."), lambda p: "192.168.1.10") == "192.168.1.10"


def test_empty_address_is_fatal():
    with pytest.raises(NoBindAddressError):
        resolve_host(Settings(), lambda p: "")


def test_run_returns_one_without_bind_address(monkeypatch):
    monkeypatch.setattr(server, "select_address", lambda prefix: "")
    assert run(Settings()) == 1


def test_bootstrap_ready_then_graceful_exit(restore_signals, monkeypatch, free_port):
    monkeypatch.delenv("WATCHDOG_USEC", raising=False)
    notifier = RecordingNotifier()
    cfg = Settings(host="127.0.0.1", port=free_port)

    svc = bootstrap(cfg, notifier=notifier)
    assert notifier.states == ["READY=1"]
    assert svc.listener.running
    assert svc.watchdog is None
    assert signal.getsignal(signal.SIGTERM) == svc.coordinator._handle

    svc.coordinator.trigger(signal.SIGTERM)
    assert svc.wait() == 0
    assert svc.coordinator.state == ShutdownState.TERMINATED
    assert notifier.states == ["READY=1", "STOPPING=1"]
    assert not svc.listener.running


def test_bootstrap_starts_watchdog_when_supervised(restore_signals, monkeypatch, free_port):
    monkeypatch.setenv("WATCHDOG_USEC", "30000000")
    monkeypatch.delenv("WATCHDOG_PID", raising=False)
    notifier = RecordingNotifier()
    svc = bootstrap(Settings(host="127.0.0.1", port=free_port), notifier=notifier)
    try:
        assert svc.watchdog is not None
        assert svc.watchdog.period == 10
    finally:
        svc.watchdog.stop()
        svc.stop()
    assert "WATCHDOG=1" in notifier.states


def test_watchdog_can_be_disabled(restore_signals, monkeypatch, free_port):
    monkeypatch.setenv("WATCHDOG_USEC", "30000000")
    cfg = Settings(host="127.0.0.1", port=free_port, watchdog_enabled=False, graceful_shutdown=False)
    svc = bootstrap(cfg, notifier=RecordingNotifier())
    try:
        assert svc.watchdog is None
        assert svc.coordinator is None
    finally:
        svc.stop()


def test_sigterm_through_installed_handler_exits_zero(restore_signals, monkeypatch, free_port):
    monkeypatch.delenv("WATCHDOG_USEC", raising=False)
    notifier = RecordingNotifier()
    svc = bootstrap(Settings(host="127.0.0.1", port=free_port), notifier=notifier)

    signal.raise_signal(signal.SIGTERM)
    assert svc.wait() == 0
    assert svc.coordinator.signum == signal.SIGTERM
    assert not svc.listener.running
    assert notifier.states == ["READY=1", "STOPPING=1"]
