from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from .handlers import CommandHandler, CommandResult, HandlerContext, default_handlers
from .model import DeferredAction, RequestMessage, ResponseMessage, ResultCode, command_name, response_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    response: ResponseMessage
    deferred: DeferredAction | None = None


class CommandDispatcher:
    """
    Routes a decoded request to its handler and builds the response.

    ``dispatch`` never raises: a handler fault becomes a FAIL response.
    """

    def __init__(self, context: HandlerContext, handlers: Mapping[int, CommandHandler] | None = None):
        self.context = context
        self.handlers: dict[int, CommandHandler] = dict(default_handlers() if handlers is None else handlers)

    def register(self, command_id: int, handler: CommandHandler) -> None:
        self.handlers[int(command_id)] = handler

    def _run_handler(self, request: RequestMessage) -> CommandResult:
        handler = self.handlers.get(request.command_id)
        if handler is None:
            return CommandResult(
                ok=False,
                error_message=f"SUT control agent doesn't support this command: {request.command_id}",
            )
        try:
            return handler.handle_command(request=request, context=self.context)
        except Exception as e:
            logger.exception(
                "command %s failed (request %s, case %r)",
                command_name(request.command_id),
                request.request_id,
                request.case_name,
            )
            return CommandResult(
                ok=False,
                error_message=(
                    f"Exception found when processing {command_name(request.command_id)} "
                    f"(request {request.request_id}): {e}"
                ),
            )

    def dispatch(self, request: RequestMessage) -> DispatchOutcome:
        result = self._run_handler(request)
        response = response_for(
            request,
            result_code=ResultCode.SUCCESS if result.ok else ResultCode.FAIL,
            error_message=result.error_message,
            payload=result.payload,
        )
        logger.info(
            "dispatched %s request=%s case=%r result=%s",
            command_name(request.command_id),
            request.request_id,
            request.case_name,
            response.result_code.name,
        )
        if not result.ok and result.error_message:
            logger.warning("request %s failed: %s", request.request_id, result.error_message)
        return DispatchOutcome(response=response, deferred=result.deferred if result.ok else None)
