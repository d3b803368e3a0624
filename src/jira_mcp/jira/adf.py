"""Plain text from Atlassian Document Format (ADF) nodes."""

from typing import Any


def _node_text(node: Any) -> str:
    if not isinstance(node, dict):
        return ""
    if node.get("type") == "text":
        return str(node.get("text", ""))
    if node.get("type") == "hardBreak":
        return "\n"
    return "".join(_node_text(child) for child in node.get("content") or [])


def adf_to_text(value: Any) -> str:
    """Top-level blocks of an ADF document, one per line.

    Strings (API v2 or rendered fields) are returned unchanged.
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, dict):
        return "" if value is None else str(value)
    return "\n".join(_node_text(block) for block in value.get("content") or [])
