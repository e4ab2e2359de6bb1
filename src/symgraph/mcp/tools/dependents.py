"""MCP tools answering "what depends on this file or symbol"."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict

from ...graph.keys import decode_symbol_key, encode_symbol_key
from ...graph.model import SymbolGraph
from ...graph.queries import collect_by_file, collect_by_symbol
from ...storage.snapshot import load_snapshot


def _load(conn: sqlite3.Connection, root: str, file_path: str) -> SymbolGraph:
    graph = load_snapshot(conn, Path(root))
    if graph is None:
        raise ValueError(f"No snapshot stored for {root}. Run 'symgraph build {root}' first.")
    if file_path not in graph:
        raise ValueError(f"File '{file_path}' is not part of the snapshot of {root}")
    return graph


def get_file_dependents(conn: sqlite3.Connection, args: Dict[str, Any]) -> Dict[str, Any]:
    """Files that transitively import or reexport anything from a file.

    Args:
        conn: Database connection
        args: ``root`` and ``file_path`` (relative to root)

    Returns:
        The file and its sorted dependents
    """
    root, file_path = args["root"], args["file_path"]
    graph = _load(conn, root, file_path)
    dependents = collect_by_file(graph, file_path)
    return {"file": file_path, "dependents": sorted(dependents - {file_path})}


def get_symbol_dependents(conn: sqlite3.Connection, args: Dict[str, Any]) -> Dict[str, Any]:
    """Files that depend on one exported symbol.

    Args:
        conn: Database connection
        args: ``root``, ``file_path``, ``symbol`` and optional ``include_reexports``

    Returns:
        The symbol and its sorted dependents
    """
    root, file_path = args["root"], args["file_path"]
    symbol = args.get("symbol", "*")
    include_reexports = bool(args.get("include_reexports", False))
    graph = _load(conn, root, file_path)
    dependents = collect_by_symbol(graph, encode_symbol_key(file_path, symbol), include_reexports)
    return {
        "file": file_path,
        "symbol": symbol,
        "include_reexports": include_reexports,
        "dependents": sorted(dependents - {file_path}),
    }


def get_module_summary(conn: sqlite3.Connection, args: Dict[str, Any]) -> Dict[str, Any]:
    """Import/export surface of a file as stored in the snapshot."""
    root, file_path = args["root"], args["file_path"]
    node = _load(conn, root, file_path).graph[file_path]
    summary: Dict[str, Any] = {
        "file": file_path,
        "is_ambient": node.is_ambient,
        "is_valid": node.is_valid,
    }
    if not node.is_ambient:
        summary["imports"] = sorted(f"{f}:{i}" for f, i in map(decode_symbol_key, node.imports))
        summary["exports"] = sorted(i for _, i in map(decode_symbol_key, node.exports))
        summary["reexports"] = sorted(
            f"{':'.join(decode_symbol_key(src))} as {decode_symbol_key(dst)[1]}"
            for src, dst in node.reexports.items()
        )
    return summary


def register_tools(server) -> None:
    """Register dependency tools with the MCP server."""
    handlers = {
        "get_file_dependents": get_file_dependents,
        "get_symbol_dependents": get_symbol_dependents,
        "get_module_summary": get_module_summary,
    }
    for tool_def in DEPENDENT_TOOLS:
        server.register_tool(
            tool_def["name"],
            tool_def["description"],
            tool_def["inputSchema"],
            handlers[tool_def["name"]],
        )


_FILE_PROPERTIES = {
    "root": {
        "type": "string",
        "description": "Project root the snapshot was built from",
    },
    "file_path": {
        "type": "string",
        "description": "File path relative to the project root",
    },
}

# Tool registration metadata
DEPENDENT_TOOLS = [
    {
        "name": "get_file_dependents",
        "description": "List every file that transitively imports or reexports from a file",
        "inputSchema": {
            "type": "object",
            "properties": dict(_FILE_PROPERTIES),
            "required": ["root", "file_path"],
        },
    },
    {
        "name": "get_symbol_dependents",
        "description": "List the files that use one exported symbol, following reexports",
        "inputSchema": {
            "type": "object",
            "properties": {
                **_FILE_PROPERTIES,
                "symbol": {
                    "type": "string",
                    "description": "Exported name; '*' for the whole module",
                },
                "include_reexports": {
                    "type": "boolean",
                    "description": "Also list files that only reexport the symbol",
                },
            },
            "required": ["root", "file_path", "symbol"],
        },
    },
    {
        "name": "get_module_summary",
        "description": "Show the imports, exports and reexports recorded for a file",
        "inputSchema": {
            "type": "object",
            "properties": dict(_FILE_PROPERTIES),
            "required": ["root", "file_path"],
        },
    },
]
