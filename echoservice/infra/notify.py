# echoservice/infra/notify.py
"""
Supervisor notification protocol (systemd sd_notify).

- NOTIFY_SOCKET names a unix datagram socket; '@' prefix = abstract namespace.
- WATCHDOG_USEC is the watchdog interval in microseconds.
- WATCHDOG_PID, when set, restricts the watchdog to that process.

Without NOTIFY_SOCKET every notify() is a no-op, so the service runs fine
outside a supervisor.
"""

from __future__ import annotations

import logging
import os
import socket
from collections.abc import Mapping

READY = "READY=1"
WATCHDOG = "WATCHDOG=1"
STOPPING = "STOPPING=1"

log = logging.getLogger("echoservice")


def _socket_address(path: str) -> str:
    if path.startswith("@"):
        return "\0" + path[1:]
    return path


class SystemdNotifier:
    def __init__(self, env: Mapping[str, str] | None = None):
        env = os.environ if env is None else env
        self.socket_path = env.get("NOTIFY_SOCKET", "")

    @property
    def enabled(self) -> bool:
        return bool(self.socket_path)

    def notify(self, state: str) -> bool:
        """Send one state datagram. Returns True if it was delivered to the socket."""
        if not self.enabled:
            return False
        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
                sock.connect(_socket_address(self.socket_path))
                sock.sendall(state.encode("utf-8"))
        except OSError as e:
            log.warning(f'sd_notify_failed state="{state}" err="{e}"')
            return False
        return True


def watchdog_interval(env: Mapping[str, str] | None = None) -> float:
    """Watchdog interval in seconds, or 0.0 when the supervisor did not ask for one."""
    env = os.environ if env is None else env
    raw = env.get("WATCHDOG_USEC", "").strip()
    if not raw:
        return 0.0
    try:
        usec = int(raw)
    except ValueError:
        log.warning(f'watchdog_usec_invalid value="{raw}"')
        return 0.0
    if usec <= 0:
        log.warning(f'watchdog_usec_invalid value="{raw}"')
        return 0.0

    pid = env.get("WATCHDOG_PID", "").strip()
    if pid:
        try:
            if int(pid) != os.getpid():
                return 0.0
        except ValueError:
            log.warning(f'watchdog_pid_invalid value="{pid}"')
            return 0.0
    return usec / 1_000_000
