"""Money Manager tools: handlers, registry and dispatch."""

from .registry import (
    TOOLS,
    ToolDefinition,
    error_payload,
    execute_tool,
    list_tool_definitions,
)

__all__ = [
    "TOOLS",
    "ToolDefinition",
    "error_payload",
    "execute_tool",
    "list_tool_definitions",
]
