from typing import Any

import pytest

from editorbridge.tools.base import Tool, ToolResult
from editorbridge.tools.registry import ToolRegistry
from editorbridge.utils.exceptions import NotFoundError, ValidationError


class SampleTool(Tool):
    group = "edit"

    @property
    def name(self) -> str:
        return "sample"

    @property
    def description(self) -> str:
        return "sample tool"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "minLength": 2},
                "count": {"type": "integer", "minimum": 1, "maximum": 10, "default": 3},
                "mode": {"type": "string", "enum": ["fast", "full"]},
                "meta": {
                    "type": "object",
                    "properties": {
                        "tag": {"type": "string"},
                        "flags": {"type": "array", "items": {"type": "string"}},
                    },
                    "required": ["tag"],
                },
            },
            "required": ["query", "count"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        if kwargs.get("query") == "boom":
            raise RuntimeError("exploded")
        return ToolResult.ok(f"{kwargs['query']}:{kwargs['count']}")


def test_validate_params_missing_required() -> None:
    errors = SampleTool().validate_params({"query": "hi"})
    assert "missing required count" in "; ".join(errors)


def test_validate_params_type_and_range() -> None:
    errors = SampleTool().validate_params({"query": "hi", "count": 0, "mode": "slow"})
    joined = "; ".join(errors)
    assert "count must be >= 1" in joined
    assert "mode must be one of" in joined


def test_validate_params_rejects_bool_for_integer() -> None:
    errors = SampleTool().validate_params({"query": "hi", "count": True})
    assert "count should be integer" in errors


def test_validate_params_nested_object_and_array() -> None:
    errors = SampleTool().validate_params({"query": "hi", "count": 2, "meta": {"flags": [1, "ok"]}})
    joined = "; ".join(errors)
    assert "missing required meta.tag" in joined
    assert "meta.flags[0] should be string" in joined


def test_validate_params_ignores_unknown_fields() -> None:
    assert SampleTool().validate_params({"query": "hi", "count": 2, "extra": "x"}) == []


def test_apply_defaults_fills_only_missing() -> None:
    tool = SampleTool()
    assert tool.apply_defaults({"query": "hi"}) == {"query": "hi", "count": 3}
    assert tool.apply_defaults({"query": "hi", "count": 7})["count"] == 7


def test_to_schema() -> None:
    schema = SampleTool().to_schema()
    assert schema["name"] == "sample"
    assert schema["description"] == "sample tool"
    assert schema["inputSchema"]["required"] == ["query", "count"]


def test_register_skips_disabled_group() -> None:
    reg = ToolRegistry(disabled_groups=["edit", " "])
    assert reg.register(SampleTool()) is False
    assert "sample" not in reg
    assert len(reg) == 0


def test_register_and_definitions() -> None:
    reg = ToolRegistry()
    assert reg.register(SampleTool()) is True
    assert reg.has("sample")
    assert reg.tool_names == ["sample"]
    assert [d["name"] for d in reg.get_definitions()] == ["sample"]
    reg.clear()
    assert reg.get("sample") is None


@pytest.mark.asyncio
async def test_execute_applies_defaults() -> None:
    reg = ToolRegistry()
    reg.register(SampleTool())
    result = await reg.execute("sample", {"query": "hi", "count": 4})
    assert result.text == "hi:4"
    assert not result.is_error


@pytest.mark.asyncio
async def test_execute_unknown_tool_raises() -> None:
    with pytest.raises(NotFoundError):
        await ToolRegistry().execute("missing", {})


@pytest.mark.asyncio
async def test_execute_invalid_params_raises() -> None:
    reg = ToolRegistry()
    reg.register(SampleTool())
    with pytest.raises(ValidationError) as exc_info:
        await reg.execute("sample", {"query": "hi"})
    assert "Invalid parameters for tool 'sample'" in exc_info.value.message


@pytest.mark.asyncio
async def test_execute_non_object_arguments_raises() -> None:
    reg = ToolRegistry()
    reg.register(SampleTool())
    with pytest.raises(ValidationError):
        await reg.execute("sample", ["hi"])  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_execute_tool_exception_becomes_error_result() -> None:
    reg = ToolRegistry()
    reg.register(SampleTool())
    result = await reg.execute("sample", {"query": "boom", "count": 1})
    assert result.is_error
    assert result.text == "Error executing sample: exploded"


def test_call_result_shape() -> None:
    assert ToolResult.error("bad").to_call_result() == {
        "content": [{"type": "text", "text": "bad"}],
        "isError": True,
    }
