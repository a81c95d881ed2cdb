from itertools import count

from loguru import logger
from PySide6.QtCore import QObject, Signal

from cubic.controllers.navigation_controller import NavigationController, ViewState
from cubic.models.instance import Instance
from cubic.models.operation_result import OperationResult, OperationStatus
from cubic.utils.backend.gateway import CommandGateway
from cubic.utils.exception import (
    GatewayError,
    SchemaValidationError,
    WrongVariantError,
)
from cubic.utils.payload import expect_instances_vec
from cubic.utils.response_validator import parse_response


class InstanceStore(QObject):
    """
    Authoritative holder of the instance collection and the current selection.

    The collection only changes after a backend reply has been fully
    validated and discriminated, in a single synchronous step, so a failed
    call never leaves it half-updated. Concurrent loads are not serialized:
    whichever resolves last is applied.
    """

    instances_changed = Signal(object)
    operation_failed = Signal(object)

    def __init__(
        self,
        gateway: CommandGateway,
        navigation: NavigationController | None = None,
    ) -> None:
        super().__init__()
        self.gateway = gateway
        if navigation is None:
            navigation = NavigationController()
        self.navigation = navigation
        self.instances: list[Instance] = []
        self._load_tokens = count(1)
        self.last_applied_load = 0

    @property
    def current_instance(self) -> Instance | None:
        return self.navigation.current_instance

    @property
    def view_state(self) -> ViewState:
        return self.navigation.state()

    def instance_names(self) -> list[str]:
        return [instance.name for instance in self.instances]

    def find_instance(self, name: str) -> Instance | None:
        """Return the first instance called ``name``, if any."""
        for instance in self.instances:
            if instance.name == name:
                return instance
        return None

    def _fail(self, result: OperationResult) -> OperationResult:
        self.operation_failed.emit(result)
        return result

    async def add_instance(self, instance: Instance) -> OperationResult:
        """
        Ask the backend to persist ``instance`` and append it on success.

        :param instance: The instance to save
        :return: The outcome; the collection is untouched unless it is ok
        """
        command = "save_instance"
        try:
            raw = await self.gateway.save_instance(instance)
        except GatewayError as e:
            logger.error(f"Could not save instance '{instance.name}': {e}")
            return self._fail(
                OperationResult(OperationStatus.TRANSPORT_ERROR, detail=str(e))
            )

        try:
            envelope = parse_response(raw, command)
        except SchemaValidationError as e:
            return self._fail(
                OperationResult(OperationStatus.INVALID_RESPONSE, detail=str(e))
            )

        if not envelope.success or envelope.error is not None:
            result = OperationResult(
                OperationStatus.BACKEND_ERROR, envelope=envelope, error=envelope.error
            )
            logger.warning(
                f"Backend refused to save instance '{instance.name}': {result.describe()}"
            )
            return self._fail(result)

        if self.find_instance(instance.name) is not None:
            # The backend decides on uniqueness; keep whatever it accepted.
            logger.debug(f"Instance name '{instance.name}' is already listed")
        self.instances.append(instance)
        logger.info(f"Added instance '{instance.name}'")
        self.instances_changed.emit(list(self.instances))
        return OperationResult(OperationStatus.OK, envelope=envelope)

    async def load_instances(self) -> OperationResult:
        """
        Replace the collection with the backend's instance list.

        :return: The outcome; on failure the collection is untouched
        """
        command = "get_instances"
        token = next(self._load_tokens)
        try:
            raw = await self.gateway.get_instances()
        except GatewayError as e:
            logger.error(f"Error loading instances: {e}")
            return self._fail(
                OperationResult(OperationStatus.TRANSPORT_ERROR, detail=str(e))
            )

        try:
            envelope = parse_response(raw, command)
        except SchemaValidationError as e:
            return self._fail(
                OperationResult(OperationStatus.INVALID_RESPONSE, detail=str(e))
            )

        if not envelope.success:
            result = OperationResult(
                OperationStatus.BACKEND_ERROR, envelope=envelope, error=envelope.error
            )
            logger.error(f"Backend error while loading instances: {result.describe()}")
            return self._fail(result)

        try:
            instances = expect_instances_vec(envelope.data)
        except WrongVariantError as e:
            logger.error(f"Error loading instances: {e}")
            return self._fail(
                OperationResult(
                    OperationStatus.UNEXPECTED_PAYLOAD, envelope=envelope, detail=str(e)
                )
            )

        if token < self.last_applied_load:
            logger.warning(
                f"Instance load #{token} resolved after load #{self.last_applied_load} "
                "and overwrites it"
            )
        self.instances = list(instances)
        self.last_applied_load = token
        logger.info(f"Loaded {len(self.instances)} instances")
        self.instances_changed.emit(list(self.instances))
        return OperationResult(OperationStatus.OK, envelope=envelope)

    def set_current_instance(self, instance: Instance) -> None:
        self.navigation.set_current_instance(instance)

    def navigate_to_settings(self) -> None:
        self.navigation.navigate_to_settings()

    def navigate_to_welcome(self) -> None:
        self.navigation.navigate_to_welcome()

    def go_back(self) -> None:
        self.navigation.go_back()

    def toggle_add_instance_modal(self) -> None:
        self.navigation.toggle_add_instance_modal()
