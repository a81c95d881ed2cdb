from enum import Enum
from typing import Any

import msgspec


class LauncherError(Exception):
    """Base class for every error raised by the launcher front end."""

    pass


class GatewayError(LauncherError):
    """
    Raised when a backend command could not be completed at all
    (process unreachable, pipe closed, call rejected without a reply)
    """

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Backend command '{command}' failed: {reason}")
        self.command = command
        self.reason = reason


class CommandRejected(LauncherError):
    """
    Raised by a transport when the backend answered a command with an
    error reply. The reply body is kept so it can still be validated.
    """

    def __init__(self, command: str, payload: Any) -> None:
        super().__init__(f"Backend rejected command '{command}'")
        self.command = command
        self.payload = payload


class IssueKind(str, Enum):
    TYPE_MISMATCH = "type_mismatch"
    MISSING_FIELD = "missing_field"
    INVALID_ENUM = "invalid_enum"
    PATTERN_MISMATCH = "pattern_mismatch"
    UNKNOWN_FIELD = "unknown_field"
    OUT_OF_RANGE = "out_of_range"
    UNKNOWN_VARIANT = "unknown_variant"
    AMBIGUOUS_VARIANT = "ambiguous_variant"
    MALFORMED_JSON = "malformed_json"


class SchemaIssue(msgspec.Struct, frozen=True):
    """A single constraint violation found while validating a reply."""

    path: str
    kind: IssueKind
    message: str

    @property
    def segments(self) -> list[str]:
        """Split ``$.data.InstancesVec[0].loader`` into its path segments."""
        segments: list[str] = []
        for part in self.path.removeprefix("$").split("."):
            if not part:
                continue
            name, _, rest = part.partition("[")
            if name:
                segments.append(name)
            if rest:
                segments.extend(index.rstrip("]") for index in rest.split("["))
        return segments


class SchemaValidationError(LauncherError):
    """
    Raised when a backend reply does not conform to the envelope contract.

    Carries every issue found as structured records rather than a flat
    message, so callers can report which nested field broke.
    """

    def __init__(self, issues: list[SchemaIssue] | tuple[SchemaIssue, ...]) -> None:
        self.issues: tuple[SchemaIssue, ...] = tuple(issues)
        summary = "; ".join(f"{i.path}: {i.message}" for i in self.issues)
        super().__init__(f"Invalid backend response ({summary})")

    @property
    def kinds(self) -> set[IssueKind]:
        return {issue.kind for issue in self.issues}

    def as_tree(self) -> dict[str, Any]:
        """
        Nest the issues by path segment.

        Leaf lists are stored under the ``"_errors"`` key of the node
        for the failing field, e.g.
        ``{"data": {"InstancesVec": {"0": {"loader": {"_errors": [...]}}}}}``.
        """
        tree: dict[str, Any] = {}
        for issue in self.issues:
            node = tree
            for segment in issue.segments:
                node = node.setdefault(segment, {})
            node.setdefault("_errors", []).append(issue.message)
        return tree


class WrongVariantError(LauncherError):
    """Raised when a payload accessor is called on a different payload variant."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Expected {expected} payload but got {actual}")
        self.expected = expected
        self.actual = actual
