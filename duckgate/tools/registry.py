"""Tool registry for dynamic tool management."""

from typing import Any

from loguru import logger

from duckgate.tools.base import Tool


class ToolRegistry:
    """Registry of tools, executed by name with validated arguments."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def get_definitions(self) -> list[dict[str, Any]]:
        """All tool definitions in OpenAI function format."""
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(self, name: str, params: dict[str, Any]) -> str:
        """Execute a tool by name; failures come back as ``Error: ...`` text."""
        tool = self._tools.get(name)
        if not tool:
            return f"Error: Tool '{name}' not found"

        try:
            errors = tool.validate_params(params)
            if errors:
                return f"Error: Invalid parameters for tool '{name}': " + "; ".join(errors)
            return await tool.execute(**params)
        except Exception as e:
            logger.exception("Tool {} failed", name)
            return f"Error: executing {name} failed: {e}"

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools.keys())
