"""Schema-validated tools callable from any execution context."""

from evalua.tools.registry import Tool, ToolRegistry, create_tool_registry, tool

__all__ = ["Tool", "ToolRegistry", "create_tool_registry", "tool"]
