from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from sutcontrol.agent.model import ConnectionParameters, ScreenImage


class ConnectionController(Protocol):
    def start_from_descriptor(self, text: str) -> bool: ...

    def start_from_arguments(self, params: ConnectionParameters) -> bool: ...

    def close_all(self) -> bool: ...


class NetworkController(Protocol):
    def list_adapters(self) -> Sequence[str]: ...

    def disable(self, adapter: str) -> None: ...

    def enable(self, adapter: str) -> None: ...


class ScreenCapture(Protocol):
    def grab(self) -> ScreenImage: ...


@dataclass(frozen=True)
class Capabilities:
    """The platform collaborators handed to the dispatcher."""

    platform_description: str
    connection: ConnectionController
    network: NetworkController
    screen: ScreenCapture
