"""
Payload discrimination.

Recovers the type of a decoded reply payload. Every consumer narrows a
payload through one of the ``expect_*`` accessors, which raise
WrongVariantError instead of handing back the wrong shape.
"""

from enum import Enum

from cubic.models.envelope import (
    PAYLOAD_VARIANTS,
    InstanceData,
    InstanceNames,
    InstancesVec,
    MinecraftVersions,
    Payload,
    SettingsList,
    WindowAction,
    WindowActionResult,
)
from cubic.models.instance import Instance
from cubic.utils.exception import WrongVariantError


class PayloadKind(str, Enum):
    MINECRAFT_VERSIONS = "MinecraftVersions"
    SETTINGS = "Settings"
    INSTANCES = "Instances"
    WINDOW_ACTION = "WindowAction"
    INSTANCE_DATA = "InstanceData"
    INSTANCES_VEC = "InstancesVec"


KIND_BY_TYPE: dict[type, PayloadKind] = {
    variant: PayloadKind(tag) for tag, variant in PAYLOAD_VARIANTS.items()
}


def payload_kind(payload: Payload | None) -> PayloadKind:
    """Return the tag of ``payload``, raising TypeError outside the closed set."""
    try:
        return KIND_BY_TYPE[type(payload)]
    except KeyError:
        raise TypeError(f"Not a backend payload: {type(payload).__name__}") from None


def _describe(payload: Payload | None) -> str:
    if payload is None:
        return "no payload"
    return payload_kind(payload).value


def is_minecraft_versions(payload: Payload | None) -> bool:
    return isinstance(payload, MinecraftVersions)


def is_settings(payload: Payload | None) -> bool:
    return isinstance(payload, SettingsList)


def is_instance_names(payload: Payload | None) -> bool:
    return isinstance(payload, InstanceNames)


def is_window_action(payload: Payload | None) -> bool:
    return isinstance(payload, WindowAction)


def is_instance_data(payload: Payload | None) -> bool:
    return isinstance(payload, InstanceData)


def is_instances_vec(payload: Payload | None) -> bool:
    return isinstance(payload, InstancesVec)


PREDICATES = {
    PayloadKind.MINECRAFT_VERSIONS: is_minecraft_versions,
    PayloadKind.SETTINGS: is_settings,
    PayloadKind.INSTANCES: is_instance_names,
    PayloadKind.WINDOW_ACTION: is_window_action,
    PayloadKind.INSTANCE_DATA: is_instance_data,
    PayloadKind.INSTANCES_VEC: is_instances_vec,
}


def expect_minecraft_versions(payload: Payload | None) -> list[str]:
    if isinstance(payload, MinecraftVersions):
        return payload.versions
    raise WrongVariantError(PayloadKind.MINECRAFT_VERSIONS.value, _describe(payload))


def expect_settings(payload: Payload | None) -> list[str]:
    if isinstance(payload, SettingsList):
        return payload.settings
    raise WrongVariantError(PayloadKind.SETTINGS.value, _describe(payload))


def expect_instance_names(payload: Payload | None) -> list[str]:
    if isinstance(payload, InstanceNames):
        return payload.names
    raise WrongVariantError(PayloadKind.INSTANCES.value, _describe(payload))


def expect_window_action(payload: Payload | None) -> WindowActionResult:
    if isinstance(payload, WindowAction):
        return payload.result
    raise WrongVariantError(PayloadKind.WINDOW_ACTION.value, _describe(payload))


def expect_instance_data(payload: Payload | None) -> list[int]:
    if isinstance(payload, InstanceData):
        return payload.data
    raise WrongVariantError(PayloadKind.INSTANCE_DATA.value, _describe(payload))


def expect_instances_vec(payload: Payload | None) -> list[Instance]:
    if isinstance(payload, InstancesVec):
        return payload.instances
    raise WrongVariantError(PayloadKind.INSTANCES_VEC.value, _describe(payload))


ACCESSORS = {
    PayloadKind.MINECRAFT_VERSIONS: expect_minecraft_versions,
    PayloadKind.SETTINGS: expect_settings,
    PayloadKind.INSTANCES: expect_instance_names,
    PayloadKind.WINDOW_ACTION: expect_window_action,
    PayloadKind.INSTANCE_DATA: expect_instance_data,
    PayloadKind.INSTANCES_VEC: expect_instances_vec,
}


def instance_bytes(payload: Payload | None) -> bytes:
    """Return the raw encoded instance carried by an InstanceData payload."""
    return bytes(expect_instance_data(payload))
