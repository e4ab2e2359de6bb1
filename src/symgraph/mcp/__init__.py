"""MCP server exposing dependency queries to editor tooling."""

from .tools.dependents import (
    DEPENDENT_TOOLS,
    get_file_dependents,
    get_module_summary,
    get_symbol_dependents,
)

__all__ = [
    "DEPENDENT_TOOLS",
    "get_file_dependents",
    "get_module_summary",
    "get_symbol_dependents",
]
