"""Tests for build result and container label decoding."""

from __future__ import annotations

import json

import pytest

from dcup.errors import MalformedOutput
from dcup.parsing import extract_json_document, parse_build_result, parse_container_labels
from dcup.types import LOCAL_FOLDER_LABEL, BuildOutcome

SUCCESS = {
    "outcome": "success",
    "containerId": "abc123",
    "remoteUser": "vscode",
    "remoteWorkspaceFolder": "/workspace",
}


class TestParseBuildResult:
    def test_success(self):
        result = parse_build_result(json.dumps(SUCCESS).encode())
        assert result.outcome is BuildOutcome.SUCCESS
        assert result.succeeded
        assert result.container_id == "abc123"
        assert result.remote_user == "vscode"
        assert result.remote_workspace_folder == "/workspace"
        assert result.raw == SUCCESS

    def test_failure_needs_only_outcome(self):
        result = parse_build_result(b'{"outcome":"failure"}')
        assert result.outcome is BuildOutcome.FAILURE
        assert result.container_id is None
        assert result.payload == '{"outcome":"failure"}'

    def test_error_outcome_keeps_message(self):
        result = parse_build_result(
            '{"outcome":"error","message":"Command failed","description":"build broke"}'
        )
        assert result.outcome is BuildOutcome.OTHER
        assert not result.succeeded
        assert result.message == "Command failed"
        assert result.description == "build broke"

    @pytest.mark.parametrize("missing", ["containerId", "remoteUser", "remoteWorkspaceFolder"])
    def test_success_missing_key_is_malformed(self, missing: str):
        payload = {k: v for k, v in SUCCESS.items() if k != missing}
        with pytest.raises(MalformedOutput, match=missing):
            parse_build_result(json.dumps(payload))

    def test_missing_outcome_is_malformed(self):
        with pytest.raises(MalformedOutput, match="outcome"):
            parse_build_result('{"containerId": "abc"}')

    def test_non_string_field_is_malformed(self):
        with pytest.raises(MalformedOutput, match="containerId"):
            parse_build_result(json.dumps({**SUCCESS, "containerId": 42}))

    def test_invalid_json(self):
        with pytest.raises(MalformedOutput) as exc_info:
            parse_build_result(b'{"outcome": "succ')
        assert exc_info.value.raw == b'{"outcome": "succ'

    def test_json_array_is_malformed(self):
        with pytest.raises(MalformedOutput):
            parse_build_result("[1, 2]")

    def test_empty_output(self):
        with pytest.raises(MalformedOutput, match="empty"):
            parse_build_result(b"   \n")

    def test_result_after_progress_lines(self):
        stdout = "[1 ms] @devcontainers/cli 0.50.0\n[5 ms] Start: Run\n" + json.dumps(SUCCESS)
        assert parse_build_result(stdout).container_id == "abc123"


class TestExtractJsonDocument:
    def test_pretty_printed_document_returned_whole(self):
        text = json.dumps(SUCCESS, indent=2)
        assert extract_json_document(text) == text

    def test_last_object_line_wins(self):
        text = '{"outcome": "failure"}\nnoise\n{"outcome": "success"}\n'
        assert extract_json_document(text) == '{"outcome": "success"}'

    def test_no_object(self):
        with pytest.raises(MalformedOutput, match="no JSON object"):
            extract_json_document("just logs\nmore logs")


class TestParseContainerLabels:
    def test_first_element_labels(self):
        data = json.dumps(
            [
                {"Id": "abc123", "Config": {"Labels": {LOCAL_FOLDER_LABEL: "/home/u/proj"}}},
                {"Id": "other", "Config": {"Labels": {LOCAL_FOLDER_LABEL: "/elsewhere"}}},
            ]
        )
        labels = parse_container_labels(data.encode())
        assert labels == {LOCAL_FOLDER_LABEL: "/home/u/proj"}

    def test_missing_local_folder_label(self):
        data = '[{"Config": {"Labels": {"devcontainer.config_file": "/p/.devcontainer.json"}}}]'
        with pytest.raises(MalformedOutput, match="devcontainer.local_folder"):
            parse_container_labels(data)

    @pytest.mark.parametrize(
        "data",
        ["[]", "{}", '[{"Config": {}}]', '[{"Config": {"Labels": null}}]', '["abc"]', "not json"],
    )
    def test_wrong_shapes(self, data: str):
        with pytest.raises(MalformedOutput):
            parse_container_labels(data)
