from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SutControlError(Exception):
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


@dataclass(frozen=True, eq=False)
class MessageDecodeError(SutControlError):
    # header fields read before the failure, keyed by field name
    fields: dict[str, Any] = field(default_factory=dict)


class PayloadDecodeError(SutControlError):
    pass


class ConfigInvalid(SutControlError):
    pass


class CapabilityUnavailable(SutControlError):
    pass


class TransportClosed(SutControlError):
    pass


class MessageTooLarge(SutControlError):
    pass
