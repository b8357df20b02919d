from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from sutcontrol.capabilities.base import Capabilities, NetworkController

from .errors import PayloadDecodeError
from .model import CommandId, DeferredAction, FileConnectionConfig, RequestMessage
from .payload import decode_connection_config, encode_screenshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    error_message: str | None = None
    payload: bytes | None = None
    # runs only after the response has been sent
    deferred: DeferredAction | None = None


@dataclass(frozen=True)
class HandlerContext:
    capabilities: Capabilities
    reconnect_wait_seconds: float = 5
    sleep: Callable[[float], None] = field(default=time.sleep)


class CommandHandler(Protocol):
    def handle_command(self, *, request: RequestMessage, context: HandlerContext) -> CommandResult: ...


def unsupported(context: HandlerContext, command: CommandId, detail: str | None = None) -> CommandResult:
    msg = f"SUT control agent in '{context.capabilities.platform_description}' doesn't support this command: {command.name}"
    if detail:
        msg += f" {detail}"
    return CommandResult(ok=False, error_message=msg)


class StartConnectionHandler:
    def handle_command(self, *, request: RequestMessage, context: HandlerContext) -> CommandResult:
        try:
            config, _ = decode_connection_config(request.payload, request.payload_length)
        except PayloadDecodeError as e:
            return CommandResult(
                ok=False,
                error_message=(
                    f"Failed to decode payload of {CommandId.START_CONNECTION.name} "
                    f"in '{context.capabilities.platform_description}': {e.message}"
                ),
            )

        controller = context.capabilities.connection
        if isinstance(config, FileConnectionConfig):
            if controller.start_from_descriptor(config.descriptor):
                return CommandResult(ok=True)
            return unsupported(context, CommandId.START_CONNECTION, "when it is a connection descriptor file")

        if controller.start_from_arguments(config):
            return CommandResult(ok=True)
        return unsupported(context, CommandId.START_CONNECTION)


class CloseConnectionHandler:
    def handle_command(self, *, request: RequestMessage, context: HandlerContext) -> CommandResult:
        if context.capabilities.connection.close_all():
            return CommandResult(ok=True)
        return unsupported(context, CommandId.CLOSE_CONNECTION)


def network_cycle(
    network: NetworkController,
    wait_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> DeferredAction:
    """Build an action that takes every adapter down, waits, then brings them back."""

    def cycle() -> None:
        adapters = list(network.list_adapters())
        logger.info("network cycle: disabling %d adapter(s) for %ss", len(adapters), wait_seconds)
        disabled: list[str] = []
        try:
            for adapter in adapters:
                network.disable(adapter)
                disabled.append(adapter)
            sleep(wait_seconds)
        finally:
            for adapter in disabled:
                try:
                    network.enable(adapter)
                except Exception:
                    logger.exception("network cycle: failed to re-enable adapter %s", adapter)
            logger.info("network cycle: restored %d adapter(s)", len(disabled))

    return cycle


class AutoReconnectHandler:
    def handle_command(self, *, request: RequestMessage, context: HandlerContext) -> CommandResult:
        action = network_cycle(context.capabilities.network, context.reconnect_wait_seconds, context.sleep)
        return CommandResult(ok=True, deferred=action)


class ScreenShotHandler:
    def handle_command(self, *, request: RequestMessage, context: HandlerContext) -> CommandResult:
        image = context.capabilities.screen.grab()
        return CommandResult(ok=True, payload=encode_screenshot(image))


def default_handlers() -> dict[CommandId, CommandHandler]:
    return {
        CommandId.START_CONNECTION: StartConnectionHandler(),
        CommandId.CLOSE_CONNECTION: CloseConnectionHandler(),
        CommandId.AUTO_RECONNECT: AutoReconnectHandler(),
        CommandId.SCREEN_SHOT: ScreenShotHandler(),
    }
