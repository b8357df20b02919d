from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable

import psutil

from sutcontrol.agent.model import ConnectionParameters
from sutcontrol.agent.payload import build_client_arguments

logger = logging.getLogger(__name__)


def _process_matches(name: str | None, process_name: str) -> bool:
    if not name:
        return False
    name = name.lower()
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    return name == process_name.lower()


class ProcessConnectionController:
    """
    Drives a remote-desktop client executable.

    ``descriptor_path`` is where descriptor text is written before the client
    is pointed at it; without one, starting from a descriptor is unsupported.
    """

    def __init__(
        self,
        *,
        executable: str,
        process_name: str,
        descriptor_path: Path | None = None,
        popen: Callable[..., object] = subprocess.Popen,
    ):
        self.executable = executable
        self.process_name = process_name
        self.descriptor_path = descriptor_path
        self._popen = popen

    def _launch(self, args: list[str]) -> None:
        cmd = [self.executable, *args]
        logger.info("launching client: %s", " ".join(cmd))
        self._popen(cmd)

    def start_from_descriptor(self, text: str) -> bool:
        if self.descriptor_path is None:
            return False
        self.descriptor_path.parent.mkdir(parents=True, exist_ok=True)
        self.descriptor_path.write_text(text, encoding="utf-8")
        self._launch([str(self.descriptor_path)])
        return True

    def start_from_arguments(self, params: ConnectionParameters) -> bool:
        self._launch(build_client_arguments(params))
        return True

    def close_all(self) -> bool:
        killed = 0
        for proc in psutil.process_iter(["name"]):
            if not _process_matches(proc.info.get("name"), self.process_name):
                continue
            try:
                proc.kill()
                killed += 1
            except psutil.NoSuchProcess:
                continue
        logger.info("closed %d %s process(es)", killed, self.process_name)
        return True


class UnsupportedConnectionController:
    def start_from_descriptor(self, text: str) -> bool:
        return False

    def start_from_arguments(self, params: ConnectionParameters) -> bool:
        return False

    def close_all(self) -> bool:
        return False
