"""Argument schema validation tests."""

from __future__ import annotations

import pytest
from devflow_mcp.github_tools import GITHUB_TOOLS
from devflow_mcp.schema import (
    ArrayArg,
    BooleanArg,
    IntegerArg,
    ObjectArg,
    StringArg,
    ToolSchema,
    validate_arguments,
)
from devflow_mcp.slack_tools import SLACK_TOOLS

SCHEMA = ToolSchema(
    {
        "repo": StringArg(required=True, min_length=1),
        "perPage": IntegerArg(minimum=1, maximum=100, default=20),
        "ownerType": StringArg(choices=("user", "org"), default="user"),
        "draft": BooleanArg(default=False),
        "labels": ArrayArg(items=StringArg(min_length=1), default=[]),
        "url": StringArg(url=True),
        "meta": ObjectArg(properties={"count": IntegerArg(required=True, minimum=0)}),
    }
)


def test_defaults_applied_to_absent_fields() -> None:
    result = validate_arguments(SCHEMA, {"repo": "r"})

    assert result.ok
    assert result.value == {"repo": "r", "perPage": 20, "ownerType": "user", "draft": False, "labels": []}


def test_default_list_is_not_shared_between_calls() -> None:
    first = validate_arguments(SCHEMA, {"repo": "r"})
    first.value["labels"].append("x")

    second = validate_arguments(SCHEMA, {"repo": "r"})
    assert second.value["labels"] == []


def test_explicit_null_for_optional_field_stays_absent() -> None:
    result = validate_arguments(SCHEMA, {"repo": "r", "perPage": None, "draft": None})

    assert result.ok
    assert result.value["perPage"] is None
    assert result.value["draft"] is None


def test_explicit_null_for_required_field_is_violation() -> None:
    result = validate_arguments(SCHEMA, {"repo": None})

    assert not result.ok
    assert [v.path for v in result.violations] == ["repo"]


def test_missing_required_field_is_enumerated_and_no_partial_value() -> None:
    result = validate_arguments(SCHEMA, {})

    assert not result.ok
    assert result.value is None
    assert "Field 'repo' is required" in result.describe()


def test_all_violations_reported() -> None:
    result = validate_arguments(
        SCHEMA,
        {
            "perPage": 0,
            "ownerType": "team",
            "draft": "yes",
            "labels": ["ok", "", 3],
            "url": "not a url",
            "meta": {"count": -1},
        },
    )

    assert not result.ok
    paths = [v.path for v in result.violations]
    assert paths == ["repo", "perPage", "ownerType", "draft", "labels[1]", "labels[2]", "url", "meta.count"]


def test_integer_rules() -> None:
    schema = ToolSchema({"n": IntegerArg(required=True, minimum=1)})

    assert validate_arguments(schema, {"n": 3.0}).value == {"n": 3}
    assert not validate_arguments(schema, {"n": 2.5}).ok
    assert not validate_arguments(schema, {"n": True}).ok
    assert not validate_arguments(schema, {"n": "3"}).ok


@pytest.mark.parametrize("url", ["https://hooks.slack.com/services/T/B/X", "http://localhost:8080/hook"])
def test_url_shape_accepts(url: str) -> None:
    assert validate_arguments(SCHEMA, {"repo": "r", "url": url}).ok


@pytest.mark.parametrize("url", ["", "hooks.slack.com/x", "ftp://example.com/x", "https://"])
def test_url_shape_rejects(url: str) -> None:
    result = validate_arguments(SCHEMA, {"repo": "r", "url": url})
    assert not result.ok
    assert result.violations[0].path == "url"


def test_unknown_keys_dropped() -> None:
    result = validate_arguments(SCHEMA, {"repo": "r", "extra": 1})

    assert result.ok
    assert "extra" not in result.value


@pytest.mark.parametrize("raw", [[], "x", 3])
def test_non_object_payload_rejected(raw: object) -> None:
    result = validate_arguments(SCHEMA, raw)
    assert not result.ok
    assert result.violations[0].path == "arguments"


def test_none_payload_is_empty_object() -> None:
    schema = ToolSchema({"flag": BooleanArg(default=True)})
    assert validate_arguments(schema, None).value == {"flag": True}


def test_freeform_object_items() -> None:
    schema = ToolSchema({"blocks": ArrayArg(items=ObjectArg())})

    assert validate_arguments(schema, {"blocks": [{"type": "section"}]}).ok
    result = validate_arguments(schema, {"blocks": ["section"]})
    assert not result.ok
    assert result.violations[0].path == "blocks[0]"


def test_json_schema_rendering() -> None:
    rendered = SCHEMA.to_json_schema()

    assert rendered["type"] == "object"
    assert rendered["required"] == ["repo"]
    assert rendered["properties"]["perPage"] == {"type": "integer", "minimum": 1, "maximum": 100, "default": 20}
    assert rendered["properties"]["ownerType"]["enum"] == ["user", "org"]
    assert rendered["properties"]["labels"]["items"] == {"type": "string", "minLength": 1}
    assert rendered["properties"]["meta"]["required"] == ["count"]


@pytest.mark.parametrize("spec", [*GITHUB_TOOLS.values(), *SLACK_TOOLS.values()])
def test_every_tool_schema_renders(spec) -> None:
    rendered = spec.schema.to_json_schema()
    assert rendered["type"] == "object"
    for name in rendered.get("required", []):
        assert name in rendered["properties"]
