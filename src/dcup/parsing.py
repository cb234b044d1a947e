"""Decoding of the JSON the build tool and the container engine print.

Converts ``devcontainer up`` output into BuildResult and ``container
inspect`` output into the container's label map. Missing keys are errors,
never defaults: a "success" without a container id cannot be bound.
"""

from __future__ import annotations

import json
from typing import Any

from dcup.errors import MalformedOutput
from dcup.types import LOCAL_FOLDER_LABEL, BuildOutcome, BuildResult

_SUCCESS_KEYS = ("containerId", "remoteUser", "remoteWorkspaceFolder")


def _as_text(data: bytes | str) -> str:
    return data.decode(errors="replace") if isinstance(data, bytes) else data


def extract_json_document(data: bytes | str) -> str:
    """Return the JSON object text within *data*.

    Whole-output JSON is returned as is. Otherwise the last line that
    decodes as a JSON object wins (some CLI versions print progress to
    stdout before the result).
    """
    text = _as_text(data).strip()
    if not text:
        raise MalformedOutput(data, "empty output")
    try:
        json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        return text

    for line in reversed(text.splitlines()):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            json.loads(line)
        except json.JSONDecodeError:
            continue
        return line
    raise MalformedOutput(data, "no JSON object in output")


def _loads(data: bytes | str) -> Any:
    try:
        return json.loads(_as_text(data))
    except json.JSONDecodeError as exc:
        raise MalformedOutput(data, f"invalid JSON: {exc}") from exc


def _require_str(payload: dict[str, Any], key: str, raw: bytes | str) -> str:
    if key not in payload:
        raise MalformedOutput(raw, f"missing key {key!r}")
    value = payload[key]
    if not isinstance(value, str):
        raise MalformedOutput(raw, f"key {key!r} is not a string")
    return value


def parse_build_result(data: bytes | str) -> BuildResult:
    """Decode ``devcontainer up`` stdout into a BuildResult."""
    text = extract_json_document(data)
    payload = _loads(text)
    if not isinstance(payload, dict):
        raise MalformedOutput(data, "expected a JSON object")

    outcome = BuildOutcome.from_wire(_require_str(payload, "outcome", data))
    if outcome is not BuildOutcome.SUCCESS:
        return BuildResult(
            outcome=outcome,
            payload=text,
            message=payload.get("message"),
            description=payload.get("description"),
            raw=payload,
        )

    container_id, remote_user, remote_folder = (
        _require_str(payload, key, data) for key in _SUCCESS_KEYS
    )
    return BuildResult(
        outcome=outcome,
        container_id=container_id,
        remote_user=remote_user,
        remote_workspace_folder=remote_folder,
        payload=text,
        raw=payload,
    )


def parse_container_labels(data: bytes | str) -> dict[str, str]:
    """Decode ``container inspect`` stdout into the first container's labels."""
    payload = _loads(data)
    if not isinstance(payload, list) or not payload:
        raise MalformedOutput(data, "expected a non-empty JSON array")

    first = payload[0]
    try:
        labels = first["Config"]["Labels"]
    except (KeyError, TypeError) as exc:
        raise MalformedOutput(data, f"missing Config.Labels: {exc}") from exc
    if not isinstance(labels, dict):
        raise MalformedOutput(data, "Config.Labels is not an object")
    if LOCAL_FOLDER_LABEL not in labels:
        raise MalformedOutput(data, f"missing label {LOCAL_FOLDER_LABEL!r}")
    return {str(k): str(v) for k, v in labels.items()}
