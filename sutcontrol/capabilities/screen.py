from __future__ import annotations

from typing import Callable

from PIL import ImageGrab

from sutcontrol.agent.errors import CapabilityUnavailable
from sutcontrol.agent.model import ScreenImage

# left, top, width, height
DEFAULT_REGION = (0, 0, 300, 400)


class PillowScreenCapture:
    def __init__(
        self,
        region: tuple[int, int, int, int] | None = DEFAULT_REGION,
        grabber: Callable[..., object] = ImageGrab.grab,
    ):
        self.region = region
        self._grabber = grabber

    def grab(self) -> ScreenImage:
        bbox = None
        if self.region is not None:
            left, top, width, height = self.region
            bbox = (left, top, left + width, top + height)
        image = self._grabber(bbox=bbox).convert("RGB")
        return ScreenImage(width=image.width, height=image.height, pixels=image.tobytes())


class UnsupportedScreenCapture:
    def grab(self) -> ScreenImage:
        raise CapabilityUnavailable(code="CAPABILITY_UNAVAILABLE", message="screen capture is not supported")
