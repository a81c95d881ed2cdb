import asyncio

from loguru import logger
from PySide6.QtCore import QObject

from cubic.controllers.instance_store import InstanceStore
from cubic.controllers.window_controller import WindowController
from cubic.models.operation_result import OperationResult
from cubic.models.settings import Settings
from cubic.utils.app_info import AppInfo
from cubic.utils.backend.gateway import CommandGateway
from cubic.utils.backend.transport import ProcessTransport, Transport


class AppController(QObject):
    """
    Wires the backend bridge, the instance store and the window controller
    together. The rendering layer connects to the store's signals.
    """

    def __init__(
        self,
        app_info: AppInfo,
        settings: Settings,
        transport: Transport | None = None,
    ) -> None:
        super().__init__()
        self.app_info = app_info
        self.settings = settings
        if transport is None:
            transport = ProcessTransport(settings.backend_command)
        self.transport = transport
        self.gateway = CommandGateway(self.transport)
        self.store = InstanceStore(self.gateway)
        self.window_controller = WindowController(self.gateway)

    async def connect(self) -> None:
        """Start the backend process if this controller owns the transport."""
        if isinstance(self.transport, ProcessTransport):
            await self.transport.start()

    async def start(self) -> OperationResult:
        await self.connect()
        result = await self.store.load_instances()
        if not result.ok:
            logger.warning(f"Starting without instances: {result.describe()}")
        return result

    async def shutdown(self) -> None:
        if isinstance(self.transport, ProcessTransport):
            await self.transport.close()

    async def _run(self) -> int:
        try:
            result = await self.start()
            for instance in self.store.instances:
                logger.info(
                    f"Instance '{instance.name}': {instance.loader.value} {instance.version}"
                )
        finally:
            await self.shutdown()
        return 0 if result.ok else 1

    def run(self) -> int:
        logger.info(f"Running {self.app_info.app_name} {self.app_info.app_version}")
        return asyncio.run(self._run())
