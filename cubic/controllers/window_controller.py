import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable

from loguru import logger
from PySide6.QtCore import QObject

from cubic.models.envelope import WindowActionResult
from cubic.models.operation_result import OperationResult, OperationStatus
from cubic.utils.backend.gateway import CommandGateway
from cubic.utils.exception import (
    GatewayError,
    SchemaValidationError,
    WrongVariantError,
)
from cubic.utils.payload import expect_window_action
from cubic.utils.response_validator import parse_response


class WindowCommand(str, Enum):
    CLOSE = "close_window"
    MINIMIZE = "minimize_window"
    MAXIMIZE = "maximize_window"


_EXPECTED_RESULT = {
    WindowCommand.CLOSE: WindowActionResult.CLOSE_SUCCESS,
    WindowCommand.MINIMIZE: WindowActionResult.MINIMIZE_SUCCESS,
    WindowCommand.MAXIMIZE: WindowActionResult.MAXIMIZE_SUCCESS,
}


class WindowController(QObject):
    """Forwards window lifecycle actions to the backend, which owns the native window."""

    def __init__(self, gateway: CommandGateway) -> None:
        super().__init__()
        self.gateway = gateway
        self._tasks: set[asyncio.Task[OperationResult]] = set()

    def _method(self, command: WindowCommand) -> Callable[[], Awaitable[Any]]:
        return {
            WindowCommand.CLOSE: self.gateway.close_window,
            WindowCommand.MINIMIZE: self.gateway.minimize_window,
            WindowCommand.MAXIMIZE: self.gateway.maximize_window,
        }[command]

    async def run(self, command: WindowCommand) -> OperationResult:
        try:
            raw = await self._method(command)()
            envelope = parse_response(raw, command.value)
        except GatewayError as e:
            logger.warning(f"Window action {command.value} failed: {e}")
            return OperationResult(OperationStatus.TRANSPORT_ERROR, detail=str(e))
        except SchemaValidationError as e:
            return OperationResult(OperationStatus.INVALID_RESPONSE, detail=str(e))

        if not envelope.success:
            result = OperationResult(
                OperationStatus.BACKEND_ERROR, envelope=envelope, error=envelope.error
            )
            logger.warning(f"Window action {command.value} refused: {result.describe()}")
            return result

        try:
            outcome = expect_window_action(envelope.data)
        except WrongVariantError as e:
            logger.warning(f"Window action {command.value}: {e}")
            return OperationResult(
                OperationStatus.UNEXPECTED_PAYLOAD, envelope=envelope, detail=str(e)
            )
        expected = _EXPECTED_RESULT[command]
        if outcome is not expected:
            detail = f"Expected {expected.value} but got {outcome.value}"
            logger.warning(f"Window action {command.value}: {detail}")
            return OperationResult(
                OperationStatus.UNEXPECTED_PAYLOAD, envelope=envelope, detail=detail
            )
        return OperationResult(OperationStatus.OK, envelope=envelope)

    async def close(self) -> OperationResult:
        return await self.run(WindowCommand.CLOSE)

    async def minimize(self) -> OperationResult:
        return await self.run(WindowCommand.MINIMIZE)

    async def maximize(self) -> OperationResult:
        return await self.run(WindowCommand.MAXIMIZE)

    def fire(self, command: WindowCommand) -> asyncio.Task[OperationResult]:
        """Schedule ``command`` without waiting for it; needs a running event loop."""
        task = asyncio.get_running_loop().create_task(self.run(command))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
