from __future__ import annotations

import logging
import subprocess
from typing import Callable

import psutil

from sutcontrol.agent.errors import CapabilityUnavailable

logger = logging.getLogger(__name__)


def netsh_command(adapter: str, enabled: bool) -> list[str]:
    state = "enable" if enabled else "disable"
    return ["netsh", "interface", "set", "interface", f"name={adapter}", f"admin={state}"]


def ip_link_command(adapter: str, enabled: bool) -> list[str]:
    return ["ip", "link", "set", "dev", adapter, "up" if enabled else "down"]


def _is_loopback(name: str) -> bool:
    return name == "lo" or "loopback" in name.lower()


class CommandNetworkController:
    """Toggles adapters by running a platform tool once per adapter."""

    def __init__(
        self,
        *,
        build_command: Callable[[str, bool], list[str]],
        run: Callable[..., object] = subprocess.run,
        net_if_stats: Callable[[], dict] = psutil.net_if_stats,
        timeout_seconds: float = 30,
    ):
        self._build_command = build_command
        self._run = run
        self._net_if_stats = net_if_stats
        self.timeout_seconds = timeout_seconds

    def list_adapters(self) -> list[str]:
        # only adapters that are currently up; those are the ones to restore
        stats = self._net_if_stats()
        return sorted(name for name, st in stats.items() if st.isup and not _is_loopback(name))

    def _set(self, adapter: str, enabled: bool) -> None:
        cmd = self._build_command(adapter, enabled)
        logger.info("%s adapter %s", "enabling" if enabled else "disabling", adapter)
        self._run(cmd, check=True, capture_output=True, text=True, timeout=self.timeout_seconds)

    def disable(self, adapter: str) -> None:
        self._set(adapter, False)

    def enable(self, adapter: str) -> None:
        self._set(adapter, True)


class UnsupportedNetworkController:
    def list_adapters(self) -> list[str]:
        return []

    def disable(self, adapter: str) -> None:
        raise CapabilityUnavailable(code="CAPABILITY_UNAVAILABLE", message="network adapter control is not supported")

    def enable(self, adapter: str) -> None:
        raise CapabilityUnavailable(code="CAPABILITY_UNAVAILABLE", message="network adapter control is not supported")
