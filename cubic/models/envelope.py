"""
Wire contract for every reply emitted by the launcher backend.

A reply is an envelope ``{success, error, data}`` where ``data`` is one of
six payload variants, each identified by a single tag key (the externally
tagged enum encoding used by the backend). Decoding is done with msgspec;
its validation errors are translated into structured SchemaIssue records.
"""

import re
from enum import Enum
from typing import Annotated, Any, TypeAlias

import msgspec

from cubic.models.instance import Instance
from cubic.utils.exception import IssueKind, SchemaIssue, SchemaValidationError


class ErrorType(str, Enum):
    WINDOW_MINIMIZE_ERROR = "WindowMinimizeError"
    WINDOW_IS_NOT_MINIMIZABLE = "WindowIsNotMinimizable"
    WINDOW_IS_NOT_MAXIMIZABLE = "WindowIsNotMaximizable"
    WINDOW_MAXIMIZE_ERROR = "WindowMaximizeError"
    WINDOW_IS_NOT_CLOSABLE = "WindowIsNotClosable"
    WINDOW_CLOSE_ERROR = "WindowCloseError"
    LAUNCHER_ERROR = "LauncherError"
    CONFIG_ERROR = "ConfigError"
    MINECRAFT_INSTANCE_ERROR = "MinecraftInstanceError"
    NETWORK_ERROR = "NetworkError"
    FILE_ERROR = "FileError"
    PERMISSION_ERROR = "PermissionError"
    INSTANCE_ENCODE_ERROR = "InstanceEncodeError"
    INVALID_LOADER = "InvalidLoader"


class WindowActionResult(str, Enum):
    MINIMIZE_SUCCESS = "MinimizeSuccess"
    MAXIMIZE_SUCCESS = "MaximizeSuccess"
    CLOSE_SUCCESS = "CloseSuccess"


class ClientError(msgspec.Struct, frozen=True):
    error_type: ErrorType
    error_message: str | None = None

    def describe(self) -> str:
        if self.error_message:
            return f"{self.error_type.value}: {self.error_message}"
        return self.error_type.value


# Payload variants. The single field of each variant is renamed to the tag
# key so that encoding a variant reproduces the wire shape.


class MinecraftVersions(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    versions: list[str] = msgspec.field(name="MinecraftVersions")


class SettingsList(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    settings: list[str] = msgspec.field(name="Settings")


class InstanceNames(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    names: list[str] = msgspec.field(name="Instances")


class WindowAction(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    result: WindowActionResult = msgspec.field(name="WindowAction")


Byte = Annotated[int, msgspec.Meta(ge=0, le=255)]


class InstanceData(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    data: list[Byte] = msgspec.field(name="InstanceData")


class InstancesVec(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    instances: list[Instance] = msgspec.field(name="InstancesVec")


Payload: TypeAlias = (
    MinecraftVersions
    | SettingsList
    | InstanceNames
    | WindowAction
    | InstanceData
    | InstancesVec
)

PAYLOAD_VARIANTS: dict[str, type[Payload]] = {
    "MinecraftVersions": MinecraftVersions,
    "Settings": SettingsList,
    "Instances": InstanceNames,
    "WindowAction": WindowAction,
    "InstanceData": InstanceData,
    "InstancesVec": InstancesVec,
}


class Envelope(msgspec.Struct, frozen=True):
    """A validated backend reply."""

    success: bool
    error: ClientError | None
    data: Payload | None

    @property
    def anomalies(self) -> list[str]:
        """Protocol invariants the backend broke while still sending a well-formed reply."""
        found = []
        if self.success and self.error is not None:
            found.append("successful reply carries an error")
        if not self.success and self.data is not None:
            found.append("failed reply carries data")
        return found

    def to_wire(self) -> dict[str, Any]:
        return msgspec.to_builtins(self)


class _WireEnvelope(msgspec.Struct):
    success: bool
    error: ClientError | None
    data: dict[str, Any] | None


_LOCATION = re.compile(r"^(?P<message>.*?)(?: - at `(?P<path>[^`]*)`)?$", re.DOTALL)
_MISSING_FIELD = re.compile(r"^Object missing required field `(?P<field>[^`]+)`")
_UNKNOWN_FIELD = re.compile(r"^Object contains unknown field `(?P<field>[^`]+)`")
_BOUND = re.compile(r"^Expected `\w+` (?:[<>]=?|of length)")


def _issue_from_error(error: msgspec.ValidationError, root: str = "$") -> SchemaIssue:
    """
    Translate a msgspec validation message into a SchemaIssue.

    msgspec reports the first failure as ``"<message> - at `$.a.b[0]`"``;
    the path is rebased under ``root`` when a sub-object was converted.
    """
    message, location = str(error), "$"
    if match := _LOCATION.match(message):
        message = match.group("message")
        location = match.group("path") or "$"
    path = root + location[1:]

    if field := _MISSING_FIELD.match(message):
        return SchemaIssue(f"{path}.{field['field']}", IssueKind.MISSING_FIELD, message)
    if field := _UNKNOWN_FIELD.match(message):
        return SchemaIssue(f"{path}.{field['field']}", IssueKind.UNKNOWN_FIELD, message)
    if message.startswith("Invalid enum value"):
        return SchemaIssue(path, IssueKind.INVALID_ENUM, message)
    if "matching regex" in message:
        return SchemaIssue(path, IssueKind.PATTERN_MISMATCH, message)
    if _BOUND.match(message):
        return SchemaIssue(path, IssueKind.OUT_OF_RANGE, message)
    return SchemaIssue(path, IssueKind.TYPE_MISMATCH, message)


def _decode_payload(data: dict[str, Any]) -> Payload:
    tags = [key for key in data if key in PAYLOAD_VARIANTS]
    if not tags:
        raise SchemaValidationError(
            [
                SchemaIssue(
                    "$.data",
                    IssueKind.UNKNOWN_VARIANT,
                    f"Expected one of {', '.join(PAYLOAD_VARIANTS)}, "
                    f"got keys [{', '.join(sorted(data))}]",
                )
            ]
        )
    if len(tags) > 1:
        raise SchemaValidationError(
            [
                SchemaIssue(
                    "$.data",
                    IssueKind.AMBIGUOUS_VARIANT,
                    f"Expected exactly one payload tag, got {', '.join(tags)}",
                )
            ]
        )
    try:
        return msgspec.convert(data, PAYLOAD_VARIANTS[tags[0]])
    except msgspec.ValidationError as e:
        raise SchemaValidationError([_issue_from_error(e, root="$.data")]) from e


def validate(raw: Any) -> Envelope:
    """
    Validate an already deserialized backend reply.

    :param raw: Untyped reply, usually the result of ``json.loads``
    :return: The validated Envelope
    :raises SchemaValidationError: If any field breaks the contract
    """
    try:
        wire = msgspec.convert(raw, _WireEnvelope)
    except msgspec.ValidationError as e:
        raise SchemaValidationError([_issue_from_error(e)]) from e

    data = _decode_payload(wire.data) if wire.data is not None else None
    return Envelope(success=wire.success, error=wire.error, data=data)


def validate_json(payload: bytes | str) -> Envelope:
    """Decode a JSON document and validate it as an envelope."""
    try:
        raw = msgspec.json.decode(payload)
    except msgspec.DecodeError as e:
        raise SchemaValidationError(
            [SchemaIssue("$", IssueKind.MALFORMED_JSON, str(e))]
        ) from e
    return validate(raw)
