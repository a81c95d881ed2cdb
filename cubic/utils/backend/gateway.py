from typing import Any

from loguru import logger

from cubic.models.instance import Instance
from cubic.utils.backend.transport import Transport
from cubic.utils.exception import CommandRejected, GatewayError


class CommandGateway:
    """
    Async call surface of the launcher backend.

    Every method returns the backend's raw reply; validation is left to
    the response validator. A command the backend rejects with a reply body
    yields that body, so application faults travel the same path as
    successful replies. Anything else that prevents the call from completing
    is raised as GatewayError.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    async def _call(self, command: str, args: dict[str, Any] | None = None) -> Any:
        try:
            return await self.transport.invoke(command, args)
        except CommandRejected as e:
            if e.payload is None:
                raise GatewayError(command, "rejected without a reply") from e
            logger.debug(f"Backend rejected '{command}' with a reply body")
            return e.payload
        except GatewayError:
            raise
        except (OSError, EOFError) as e:
            # ConnectionError and asyncio.IncompleteReadError land here too
            raise GatewayError(command, str(e) or type(e).__name__) from e

    async def save_instance(self, instance: Instance) -> Any:
        return await self._call("save_instance", {"instance": instance.to_wire()})

    async def get_instances(self) -> Any:
        return await self._call("get_instances")

    async def close_window(self) -> Any:
        return await self._call("close_window")

    async def minimize_window(self) -> Any:
        return await self._call("minimize_window")

    async def maximize_window(self) -> Any:
        return await self._call("maximize_window")
