from typing import Any

import pytest

from duckgate.tools.base import Tool
from duckgate.tools.factory import build_tool_registry
from duckgate.tools.registry import ToolRegistry


class SampleTool(Tool):
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
                "count": {"type": "integer", "minimum": 1, "maximum": 10},
                "mode": {"type": "string", "enum": ["fast", "full"]},
                "headers": {"type": "object", "additionalProperties": {"type": "string"}},
                "indices": {"type": "array", "items": {"type": "integer"}, "maxItems": 3},
            },
            "required": ["query", "count"],
        }

    async def execute(self, **kwargs: Any) -> str:
        return "ok"


def test_validate_params_missing_required() -> None:
    errors = SampleTool().validate_params({"query": "hi"})
    assert "missing required count" in "; ".join(errors)


def test_validate_params_type_and_range() -> None:
    tool = SampleTool()
    assert any("count must be >= 1" in e for e in tool.validate_params({"query": "hi", "count": 0}))
    assert any("count should be integer" in e for e in tool.validate_params({"query": "hi", "count": "2"}))
    assert any("count should be integer" in e for e in tool.validate_params({"query": "hi", "count": True}))


def test_validate_params_enum_and_min_length() -> None:
    errors = SampleTool().validate_params({"query": "h", "count": 2, "mode": "slow"})
    assert any("query must be at least 2 chars" in e for e in errors)
    assert any("mode must be one of" in e for e in errors)


def test_validate_params_additional_properties_and_arrays() -> None:
    errors = SampleTool().validate_params(
        {"query": "hi", "count": 2, "headers": {"X-Ok": "1", "X-Bad": 2}, "indices": [1, "2", 3, 4]}
    )
    assert any("headers.X-Bad should be string" in e for e in errors)
    assert any("indices[1] should be integer" in e for e in errors)
    assert any("indices must have at most 3 items" in e for e in errors)


def test_validate_params_ignores_unknown_fields() -> None:
    assert SampleTool().validate_params({"query": "hi", "count": 2, "extra": "x"}) == []


@pytest.mark.asyncio
async def test_registry_returns_validation_error() -> None:
    reg = ToolRegistry()
    reg.register(SampleTool())
    result = await reg.execute("sample", {"query": "hi"})
    assert result.startswith("Error: Invalid parameters")


@pytest.mark.asyncio
async def test_registry_unknown_tool() -> None:
    assert await ToolRegistry().execute("nope", {}) == "Error: Tool 'nope' not found"


def test_factory_registers_protocol_tools() -> None:
    registry = build_tool_registry()
    assert set(registry.tool_names) == {"search", "search_next", "solve_captcha", "fetch"}
    names = {d["function"]["name"] for d in registry.get_definitions()}
    assert names == set(registry.tool_names)
