from __future__ import annotations

import logging
import platform
from pathlib import Path

from .base import Capabilities
from .connection import ProcessConnectionController, UnsupportedConnectionController
from .network import CommandNetworkController, UnsupportedNetworkController, ip_link_command, netsh_command
from .screen import DEFAULT_REGION, PillowScreenCapture, UnsupportedScreenCapture

logger = logging.getLogger(__name__)

PLATFORMS = ("windows", "linux", "unsupported")


def detect_platform() -> str:
    system = platform.system().lower()
    if system in ("windows", "linux"):
        return system
    return "unsupported"


def select_capabilities(
    platform_name: str = "auto",
    *,
    descriptor_path: Path = Path("Connect.rdp"),
    screenshot_region: tuple[int, int, int, int] | None = DEFAULT_REGION,
) -> Capabilities:
    name = detect_platform() if platform_name == "auto" else platform_name
    description = platform.platform()
    logger.info("selected %s capabilities on %s", name, description)

    if name == "windows":
        return Capabilities(
            platform_description=description,
            connection=ProcessConnectionController(
                executable="mstsc.exe", process_name="mstsc", descriptor_path=descriptor_path
            ),
            network=CommandNetworkController(build_command=netsh_command),
            screen=PillowScreenCapture(region=screenshot_region),
        )
    if name == "linux":
        return Capabilities(
            platform_description=description,
            connection=ProcessConnectionController(executable="xfreerdp", process_name="xfreerdp"),
            network=CommandNetworkController(build_command=ip_link_command),
            screen=PillowScreenCapture(region=screenshot_region),
        )
    if name == "unsupported":
        return Capabilities(
            platform_description=description,
            connection=UnsupportedConnectionController(),
            network=UnsupportedNetworkController(),
            screen=UnsupportedScreenCapture(),
        )
    raise ValueError(f"unknown platform: {platform_name}")
