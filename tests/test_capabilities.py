from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest
from PIL import Image

from sutcontrol.agent.errors import CapabilityUnavailable
from sutcontrol.agent.model import ConnectionParameters, ScreenType
from sutcontrol.capabilities import connection as connection_mod
from sutcontrol.capabilities.connection import ProcessConnectionController, UnsupportedConnectionController
from sutcontrol.capabilities.network import (
    CommandNetworkController,
    UnsupportedNetworkController,
    ip_link_command,
    netsh_command,
)
from sutcontrol.capabilities.screen import PillowScreenCapture, UnsupportedScreenCapture
from sutcontrol.capabilities.selection import select_capabilities


class FakeProcess:
    def __init__(self, name: str, gone: bool = False):
        self.info = {"name": name}
        self.gone = gone
        self.killed = False

    def kill(self) -> None:
        if self.gone:
            raise psutil.NoSuchProcess(pid=1)
        self.killed = True


def test_start_from_descriptor_writes_file_and_launches(tmp_path: Path):
    launched = []
    descriptor = tmp_path / "run" / "Connect.rdp"
    ctl = ProcessConnectionController(
        executable="mstsc.exe", process_name="mstsc", descriptor_path=descriptor, popen=launched.append
    )
    assert ctl.start_from_descriptor("full address:s:10.0.0.5")
    assert descriptor.read_text(encoding="utf-8") == "full address:s:10.0.0.5"
    assert launched == [["mstsc.exe", str(descriptor)]]


def test_start_from_descriptor_without_path_is_unsupported():
    launched = []
    ctl = ProcessConnectionController(executable="xfreerdp", process_name="xfreerdp", popen=launched.append)
    assert ctl.start_from_descriptor("anything") is False
    assert launched == []


def test_start_from_arguments_builds_command_line():
    launched = []
    ctl = ProcessConnectionController(executable="xfreerdp", process_name="xfreerdp", popen=launched.append)
    params = ConnectionParameters(
        address="10.0.0.5", port=3389, screen_type=ScreenType.WINDOWED, desktop_width=1024, desktop_height=768
    )
    assert ctl.start_from_arguments(params)
    assert launched == [["xfreerdp", "/v:10.0.0.5:3389", "/w:1024", "/h:768"]]


def test_close_all_kills_matching_processes(monkeypatch):
    procs = [FakeProcess("mstsc.exe"), FakeProcess("MSTSC.EXE", gone=True), FakeProcess("explorer.exe"), FakeProcess(None)]
    monkeypatch.setattr(connection_mod.psutil, "process_iter", lambda attrs: iter(procs))
    ctl = ProcessConnectionController(executable="mstsc.exe", process_name="mstsc")
    assert ctl.close_all()
    assert [p.killed for p in procs] == [True, False, False, False]


def test_unsupported_connection_controller():
    ctl = UnsupportedConnectionController()
    assert ctl.start_from_descriptor("x") is False
    assert ctl.start_from_arguments(ConnectionParameters(address="h")) is False
    assert ctl.close_all() is False


def test_network_controller_lists_up_adapters_and_runs_commands():
    stats = {
        "lo": SimpleNamespace(isup=True),
        "eth1": SimpleNamespace(isup=True),
        "eth0": SimpleNamespace(isup=True),
        "wlan0": SimpleNamespace(isup=False),
        "Loopback Pseudo-Interface 1": SimpleNamespace(isup=True),
    }
    runs = []
    ctl = CommandNetworkController(
        build_command=ip_link_command,
        run=lambda cmd, **kwargs: runs.append((cmd, kwargs["check"])),
        net_if_stats=lambda: stats,
    )
    assert ctl.list_adapters() == ["eth0", "eth1"]
    ctl.disable("eth0")
    ctl.enable("eth0")
    assert runs == [
        (["ip", "link", "set", "dev", "eth0", "down"], True),
        (["ip", "link", "set", "dev", "eth0", "up"], True),
    ]


def test_netsh_command():
    assert netsh_command("Ethernet 2", False) == [
        "netsh", "interface", "set", "interface", "name=Ethernet 2", "admin=disable"
    ]
    assert netsh_command("Ethernet 2", True)[-1] == "admin=enable"


def test_unsupported_network_controller():
    ctl = UnsupportedNetworkController()
    assert ctl.list_adapters() == []
    with pytest.raises(CapabilityUnavailable):
        ctl.disable("eth0")


def test_pillow_capture_returns_rgb_rows():
    calls = []

    def grabber(bbox=None):
        calls.append(bbox)
        img = Image.new("RGBA", (2, 2), (0, 0, 0, 255))
        img.putpixel((1, 0), (255, 0, 0, 255))
        img.putpixel((0, 1), (0, 0, 255, 255))
        return img

    image = PillowScreenCapture(region=(10, 20, 2, 2), grabber=grabber).grab()
    assert calls == [(10, 20, 12, 22)]
    assert (image.width, image.height) == (2, 2)
    assert image.pixels == bytes([0, 0, 0, 255, 0, 0, 0, 0, 255, 0, 0, 0])


def test_pillow_capture_full_screen():
    calls = []

    def grabber(bbox=None):
        calls.append(bbox)
        return Image.new("RGB", (4, 3))

    image = PillowScreenCapture(region=None, grabber=grabber).grab()
    assert calls == [None]
    assert len(image.pixels) == 4 * 3 * 3


def test_unsupported_screen_capture():
    with pytest.raises(CapabilityUnavailable):
        UnsupportedScreenCapture().grab()


def test_select_capabilities(tmp_path: Path):
    caps = select_capabilities("windows", descriptor_path=tmp_path / "Connect.rdp")
    assert isinstance(caps.connection, ProcessConnectionController)
    assert caps.connection.executable == "mstsc.exe"
    assert caps.connection.descriptor_path == tmp_path / "Connect.rdp"

    caps = select_capabilities("linux", screenshot_region=None)
    assert caps.connection.executable == "xfreerdp"
    assert caps.connection.descriptor_path is None
    assert caps.screen.region is None

    caps = select_capabilities("unsupported")
    assert isinstance(caps.connection, UnsupportedConnectionController)
    assert caps.platform_description

    with pytest.raises(ValueError):
        select_capabilities("amiga")
