from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Union


class MessageType(IntEnum):
    SUT_CONTROL_REQUEST = 0x0000
    SUT_CONTROL_RESPONSE = 0x0001


class TestsuiteId(IntEnum):
    __test__ = False  # not a pytest class

    RDP_TESTSUITE = 0x0001


class CommandId(IntEnum):
    START_CONNECTION = 0x0001
    CLOSE_CONNECTION = 0x0002
    AUTO_RECONNECT = 0x0003
    SCREEN_SHOT = 0x0004


class ResultCode(IntEnum):
    SUCCESS = 0x00000000
    FAIL = 0x00000001


class ConnectPayloadType(IntEnum):
    FILE = 0x00
    PARAMETERS = 0x01


class ScreenType(IntEnum):
    FULL_SCREEN = 0x00
    WINDOWED = 0x01


DeferredAction = Callable[[], None]


def command_name(command_id: int) -> str:
    try:
        return CommandId(command_id).name
    except ValueError:
        return str(command_id)


@dataclass(frozen=True)
class RequestMessage:
    testsuite_id: int
    command_id: int
    case_name: str
    request_id: int
    payload: bytes = b""
    message_type: int = MessageType.SUT_CONTROL_REQUEST

    @property
    def payload_length(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class ResponseMessage:
    testsuite_id: int
    command_id: int
    case_name: str
    request_id: int
    result_code: ResultCode
    error_message: str | None = None
    payload: bytes | None = None

    @property
    def ok(self) -> bool:
        return self.result_code == ResultCode.SUCCESS


@dataclass(frozen=True)
class FileConnectionConfig:
    descriptor: str

    @property
    def type(self) -> ConnectPayloadType:
        return ConnectPayloadType.FILE


@dataclass(frozen=True)
class ConnectionParameters:
    address: str
    port: int = 0
    screen_type: ScreenType = ScreenType.FULL_SCREEN
    desktop_width: int = 0
    desktop_height: int = 0

    @property
    def type(self) -> ConnectPayloadType:
        return ConnectPayloadType.PARAMETERS


ConnectionConfig = Union[FileConnectionConfig, ConnectionParameters]


@dataclass(frozen=True)
class ScreenImage:
    width: int
    height: int
    pixels: bytes


def response_for(
    request: RequestMessage,
    *,
    result_code: ResultCode,
    error_message: str | None = None,
    payload: bytes | None = None,
) -> ResponseMessage:
    return ResponseMessage(
        testsuite_id=request.testsuite_id,
        command_id=request.command_id,
        case_name=request.case_name,
        request_id=request.request_id,
        result_code=result_code,
        error_message=error_message,
        payload=payload,
    )
