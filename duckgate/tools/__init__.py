"""Agent-facing tools."""

from duckgate.tools.base import Tool
from duckgate.tools.registry import ToolRegistry

__all__ = ["Tool", "ToolRegistry"]
