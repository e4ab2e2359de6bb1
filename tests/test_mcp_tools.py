from __future__ import annotations

import pytest

from symgraph.mcp.tools.dependents import (
    DEPENDENT_TOOLS,
    get_file_dependents,
    get_module_summary,
    get_symbol_dependents,
)
from symgraph.storage.database import temp_connection
from symgraph.storage.schema import load_schema
from symgraph.storage.snapshot import save_snapshot

FILES = {
    "foo.ts": "export const a = 1;",
    "bar.ts": "export {a as b} from './foo';",
    "index.ts": "import {b} from './bar';",
}


@pytest.fixture
def connection(tmp_path, make_graph):
    with temp_connection(load_schema()) as conn:
        save_snapshot(conn, tmp_path, make_graph(FILES))
        yield conn


def test_get_file_dependents(connection, tmp_path) -> None:
    result = get_file_dependents(connection, {"root": str(tmp_path), "file_path": "foo.ts"})
    assert result == {"file": "foo.ts", "dependents": ["bar.ts", "index.ts"]}


def test_get_symbol_dependents(connection, tmp_path) -> None:
    args = {"root": str(tmp_path), "file_path": "foo.ts", "symbol": "a"}
    assert get_symbol_dependents(connection, args)["dependents"] == ["index.ts"]

    args["include_reexports"] = True
    assert get_symbol_dependents(connection, args)["dependents"] == ["bar.ts", "index.ts"]


def test_get_module_summary(connection, tmp_path) -> None:
    summary = get_module_summary(connection, {"root": str(tmp_path), "file_path": "bar.ts"})
    assert summary["is_valid"] and not summary["is_ambient"]
    assert summary["reexports"] == ["foo.ts:a as b"]
    assert summary["imports"] == []
    assert summary["exports"] == []


def test_tools_report_missing_snapshot_and_file(connection, tmp_path) -> None:
    with pytest.raises(ValueError, match="No snapshot"):
        get_file_dependents(connection, {"root": str(tmp_path / "elsewhere"), "file_path": "foo.ts"})
    with pytest.raises(ValueError, match="not part of the snapshot"):
        get_file_dependents(connection, {"root": str(tmp_path), "file_path": "nope.ts"})


def test_create_server_registers_every_tool(tmp_path) -> None:
    pytest.importorskip("mcp")
    from symgraph.config import GraphConfig
    from symgraph.mcp.server import create_server

    server = create_server(GraphConfig(base_dir=tmp_path))
    try:
        assert set(server.tools) == {tool["name"] for tool in DEPENDENT_TOOLS}
    finally:
        server.cleanup()


def test_installed_sdk_offers_the_decorator_api() -> None:
    pytest.importorskip("mcp")
    from mcp.server import Server

    server = Server("symgraph")
    assert callable(server.list_tools)
    assert callable(server.call_tool)
