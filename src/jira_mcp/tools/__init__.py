"""Jira tools: schemas, handlers, registry and dispatcher."""

from .registry import (
    ToolDescriptor,
    ToolDispatcher,
    ToolName,
    ToolRegistry,
    build_default_registry,
)
from .results import ToolResult

__all__ = [
    "ToolDescriptor",
    "ToolDispatcher",
    "ToolName",
    "ToolRegistry",
    "ToolResult",
    "build_default_registry",
]
