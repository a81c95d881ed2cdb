"""
Unit tests for the envelope schema.

Covers the wire shapes of every payload variant and the structured
errors raised for replies that break the contract.
"""

from typing import Any

import msgspec
import pytest
from conftest import error_reply, instance_wire, ok_reply

from cubic.models.envelope import (
    ClientError,
    Envelope,
    ErrorType,
    InstanceData,
    InstanceNames,
    InstancesVec,
    MinecraftVersions,
    SettingsList,
    WindowAction,
    WindowActionResult,
    _issue_from_error,
    validate,
    validate_json,
)
from cubic.models.instance import Instance, Loader
from cubic.utils.exception import IssueKind, SchemaValidationError


def only_issue(raw: Any) -> Any:
    with pytest.raises(SchemaValidationError) as exc_info:
        validate(raw)
    assert len(exc_info.value.issues) == 1
    return exc_info.value.issues[0]


class TestValidReplies:
    def test_instances_vec_reply(self) -> None:
        envelope = validate(ok_reply({"InstancesVec": [instance_wire()]}))

        assert envelope.success is True
        assert envelope.error is None
        assert envelope.data == InstancesVec(
            instances=[
                Instance(
                    name="Modpack",
                    loader=Loader.FABRIC,
                    version="1.20.4",
                    custom_args=[],
                    downloaded=True,
                )
            ]
        )

    @pytest.mark.parametrize(
        "data, expected",
        [
            (
                {"MinecraftVersions": ["1.20.4", "24w14a"]},
                MinecraftVersions(versions=["1.20.4", "24w14a"]),
            ),
            ({"Settings": ["theme=moka"]}, SettingsList(settings=["theme=moka"])),
            ({"Instances": ["a", "b"]}, InstanceNames(names=["a", "b"])),
            (
                {"WindowAction": "MinimizeSuccess"},
                WindowAction(result=WindowActionResult.MINIMIZE_SUCCESS),
            ),
            ({"InstanceData": [0, 17, 255]}, InstanceData(data=[0, 17, 255])),
            ({"InstancesVec": []}, InstancesVec(instances=[])),
        ],
    )
    def test_each_payload_variant(self, data: dict[str, Any], expected: Any) -> None:
        assert validate(ok_reply(data)).data == expected

    def test_success_without_payload(self) -> None:
        envelope = validate(ok_reply(None))
        assert envelope.data is None
        assert envelope.anomalies == []

    def test_error_reply(self) -> None:
        envelope = validate(error_reply("FileError", "disk full"))

        assert envelope.success is False
        assert envelope.data is None
        assert envelope.error == ClientError(ErrorType.FILE_ERROR, "disk full")

    def test_error_message_is_optional(self) -> None:
        envelope = validate(error_reply("NetworkError"))
        assert envelope.error is not None
        assert envelope.error.error_message is None
        assert envelope.error.describe() == "NetworkError"

    def test_all_fourteen_error_types_accepted(self) -> None:
        assert len(ErrorType) == 14
        for error_type in ErrorType:
            envelope = validate(error_reply(error_type.value))
            assert envelope.error is not None
            assert envelope.error.error_type is error_type

    def test_unknown_top_level_keys_are_ignored(self) -> None:
        raw = ok_reply({"Instances": []})
        raw["request_id"] = 7
        assert validate(raw).data == InstanceNames(names=[])

    def test_wire_shape_is_preserved(self) -> None:
        raw = ok_reply({"InstancesVec": [instance_wire(custom_args=["-Xmx4G"])]})
        assert validate(raw).to_wire() == raw


class TestAnomalies:
    def test_success_with_error_is_accepted_as_anomaly(self) -> None:
        raw = ok_reply({"Instances": []})
        raw["error"] = {"error_type": "LauncherError"}

        envelope = validate(raw)

        assert envelope.anomalies == ["successful reply carries an error"]

    def test_failure_with_data_is_accepted_as_anomaly(self) -> None:
        raw = error_reply("ConfigError")
        raw["data"] = {"Settings": []}

        envelope = validate(raw)

        assert envelope.anomalies == ["failed reply carries data"]


class TestFieldErrors:
    def test_missing_instance_field(self) -> None:
        wire = instance_wire()
        del wire["loader"]

        issue = only_issue(ok_reply({"InstancesVec": [wire]}))

        assert issue.kind is IssueKind.MISSING_FIELD
        assert issue.path == "$.data.InstancesVec[0].loader"

    @pytest.mark.parametrize("field", ["custom_args", "downloaded"])
    def test_instance_fields_have_no_wire_defaults(self, field: str) -> None:
        wire = instance_wire()
        del wire[field]

        issue = only_issue(ok_reply({"InstancesVec": [wire]}))

        assert issue.kind is IssueKind.MISSING_FIELD
        assert issue.path == f"$.data.InstancesVec[0].{field}"

    def test_bare_instance_is_rejected(self) -> None:
        bare = {"name": "Modpack", "loader": "Fabric", "version": "1.20.4"}

        with pytest.raises(SchemaValidationError) as exc_info:
            validate(ok_reply({"InstancesVec": [bare]}))

        assert exc_info.value.kinds == {IssueKind.MISSING_FIELD}

    def test_loader_out_of_enum(self) -> None:
        issue = only_issue(
            ok_reply({"InstancesVec": [instance_wire(), instance_wire(loader="Bukkit")]})
        )

        assert issue.kind is IssueKind.INVALID_ENUM
        assert issue.path == "$.data.InstancesVec[1].loader"

    def test_error_type_out_of_enum(self) -> None:
        issue = only_issue(error_reply("DiskOnFire"))

        assert issue.kind is IssueKind.INVALID_ENUM
        assert issue.path == "$.error.error_type"

    def test_window_action_out_of_enum(self) -> None:
        issue = only_issue(ok_reply({"WindowAction": "HideSuccess"}))

        assert issue.kind is IssueKind.INVALID_ENUM
        assert issue.path == "$.data.WindowAction"

    def test_missing_error_type(self) -> None:
        issue = only_issue({"success": False, "error": {}, "data": None})

        assert issue.kind is IssueKind.MISSING_FIELD
        assert issue.path == "$.error.error_type"

    @pytest.mark.parametrize("field", ["success", "error", "data"])
    def test_missing_envelope_field(self, field: str) -> None:
        raw = ok_reply(None)
        del raw[field]

        issue = only_issue(raw)

        assert issue.kind is IssueKind.MISSING_FIELD
        assert issue.path == f"$.{field}"

    def test_success_must_be_boolean(self) -> None:
        raw = ok_reply(None)
        raw["success"] = "true"

        issue = only_issue(raw)

        assert issue.kind is IssueKind.TYPE_MISMATCH
        assert issue.path == "$.success"

    def test_reply_must_be_an_object(self) -> None:
        issue = only_issue(["success", True])

        assert issue.kind is IssueKind.TYPE_MISMATCH
        assert issue.path == "$"

    def test_downloaded_must_be_boolean(self) -> None:
        issue = only_issue(ok_reply({"InstancesVec": [instance_wire(downloaded=1)]}))  # type: ignore[arg-type]

        assert issue.kind is IssueKind.TYPE_MISMATCH
        assert issue.path == "$.data.InstancesVec[0].downloaded"

    def test_instance_data_bytes_are_bounded(self) -> None:
        issue = only_issue(ok_reply({"InstanceData": [1, 256]}))

        assert issue.kind is IssueKind.OUT_OF_RANGE
        assert issue.path == "$.data.InstanceData[1]"


class TestVariantDiscrimination:
    def test_no_known_tag(self) -> None:
        issue = only_issue(ok_reply({"Mods": ["sodium"]}))

        assert issue.kind is IssueKind.UNKNOWN_VARIANT
        assert issue.path == "$.data"

    def test_empty_payload_object(self) -> None:
        assert only_issue(ok_reply({})).kind is IssueKind.UNKNOWN_VARIANT

    @pytest.mark.parametrize(
        "data",
        [
            {"Instances": ["a"], "InstancesVec": []},
            {"MinecraftVersions": [], "Settings": []},
            {"WindowAction": "CloseSuccess", "InstanceData": [], "Instances": []},
        ],
    )
    def test_more_than_one_tag(self, data: dict[str, Any]) -> None:
        issue = only_issue(ok_reply(data))

        assert issue.kind is IssueKind.AMBIGUOUS_VARIANT
        assert issue.path == "$.data"

    def test_unknown_key_next_to_tag(self) -> None:
        issue = only_issue(ok_reply({"Instances": ["a"], "Extra": 1}))

        assert issue.kind is IssueKind.UNKNOWN_FIELD
        assert issue.path == "$.data.Extra"

    def test_instance_list_is_not_a_name_list(self) -> None:
        issue = only_issue(ok_reply({"Instances": [instance_wire()]}))

        assert issue.kind is IssueKind.TYPE_MISMATCH
        assert issue.path == "$.data.Instances[0]"

    def test_name_list_is_not_an_instance_list(self) -> None:
        issue = only_issue(ok_reply({"InstancesVec": ["Modpack"]}))

        assert issue.kind is IssueKind.TYPE_MISMATCH
        assert issue.path == "$.data.InstancesVec[0]"

    def test_payload_must_be_an_object(self) -> None:
        issue = only_issue(ok_reply(["Modpack"]))  # type: ignore[arg-type]

        assert issue.kind is IssueKind.TYPE_MISMATCH
        assert issue.path == "$.data"


class TestStructuredError:
    def test_issue_tree_points_at_broken_field(self) -> None:
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(ok_reply({"InstancesVec": [instance_wire(loader="Bukkit")]}))

        tree = exc_info.value.as_tree()

        errors = tree["data"]["InstancesVec"]["0"]["loader"]["_errors"]
        assert len(errors) == 1
        assert "Bukkit" in errors[0]
        assert exc_info.value.kinds == {IssueKind.INVALID_ENUM}

    def test_root_issue_tree(self) -> None:
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(None)

        assert list(exc_info.value.as_tree()) == ["_errors"]

    def test_pattern_messages_are_classified(self) -> None:
        error = msgspec.ValidationError(
            "Expected `str` matching regex '^#[0-9A-Fa-f]{6}$' - at `$.accent`"
        )

        issue = _issue_from_error(error, root="$.data")

        assert issue.kind is IssueKind.PATTERN_MISMATCH
        assert issue.path == "$.data.accent"

    def test_message_without_location_points_at_root(self) -> None:
        error = msgspec.ValidationError("Expected `object`, got `null`")

        issue = _issue_from_error(error, root="$.data")

        assert issue.kind is IssueKind.TYPE_MISMATCH
        assert issue.path == "$.data"
        assert issue.message == "Expected `object`, got `null`"


class TestValidateJson:
    def test_valid_document(self) -> None:
        envelope = validate_json(
            b'{"success": true, "error": null, "data": {"Instances": ["a"]}}'
        )
        assert isinstance(envelope, Envelope)
        assert envelope.data == InstanceNames(names=["a"])

    def test_malformed_document(self) -> None:
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_json('{"success": tru')

        assert exc_info.value.issues[0].kind is IssueKind.MALFORMED_JSON
        assert exc_info.value.issues[0].path == "$"
