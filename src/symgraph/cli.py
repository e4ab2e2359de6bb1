"""Command line utilities for incremental symbol graph builds."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Iterable

from .config import GraphConfig
from .graph.keys import decode_symbol_key, encode_symbol_key
from .graph.model import SymbolGraph
from .graph.queries import collect_by_file, collect_by_symbol
from .indexer.pipeline import build_project
from .storage.database import get_connection
from .storage.schema import apply_schema
from .storage.snapshot import list_projects, load_snapshot, save_snapshot


def _resolve_config(args: argparse.Namespace, root: Path | None = None) -> GraphConfig:
    config = GraphConfig.load(root) if root is not None else GraphConfig()
    if args.database is not None:
        config.database_path = args.database
    return config


def _ensure_connection(config: GraphConfig) -> sqlite3.Connection:
    connection = get_connection(config)
    apply_schema(connection)
    return connection


def _print_files(title: str, files: Iterable[str]) -> None:
    files = sorted(files)
    print(f"{title} ({len(files)}):")
    for file_name in files:
        print(f"  {file_name}")


def _build(args: argparse.Namespace) -> None:
    root = args.root.resolve()
    if not root.is_dir():
        print(f"Error: Not a directory: {root}")
        return
    try:
        config = _resolve_config(args, root)
    except ValueError as e:
        print(f"Error: {e}")
        return

    connection = _ensure_connection(config)
    try:
        previous = None if args.full else load_snapshot(connection, root)
        result = build_project(root, config, previous)
        save_snapshot(connection, root, result.graph)
    finally:
        connection.close()

    invalid = [name for name, node in result.graph.graph.items() if not node.is_valid]
    print(f"Built symbol graph for {root}")
    print(f"  Files            : {len(result.graph)}")
    print(f"  Invalid modules  : {len(invalid)}")
    print(f"  Changed files    : {len(result.changed_files)}")
    if args.quiet:
        return
    _print_files("Files to recheck", result.invalidated_files)


def _diff(args: argparse.Namespace) -> None:
    root = args.root.resolve()
    try:
        from .git.history import diff_against_revision

        config = _resolve_config(args, root)
        result = diff_against_revision(root, args.since, config)
    except (RuntimeError, ValueError) as e:
        print(f"Error: {e}")
        return

    _print_files(f"Changed since {args.since}", result.changed_files)
    _print_files("Files to recheck", result.invalidated_files)


def _load_graph(args: argparse.Namespace) -> SymbolGraph | None:
    root = args.root.resolve()
    try:
        config = _resolve_config(args, root)
    except ValueError as e:
        print(f"Error: {e}")
        return None
    connection = _ensure_connection(config)
    try:
        graph = load_snapshot(connection, root)
    finally:
        connection.close()
    if graph is None:
        print(f"Error: No snapshot for {root}. Run 'symgraph build {args.root}' first.")
    return graph


def _dependents(args: argparse.Namespace) -> None:
    graph = _load_graph(args)
    if graph is None:
        return
    if args.file not in graph:
        print(f"Error: File '{args.file}' is not part of the snapshot")
        return

    if args.symbol is None:
        dependents = collect_by_file(graph, args.file)
        title = f"Dependents of {args.file}"
    else:
        key = encode_symbol_key(args.file, args.symbol)
        dependents = collect_by_symbol(graph, key, args.include_reexports)
        title = f"Dependents of {args.symbol} in {args.file}"
    _print_files(title, dependents - {args.file})


def _show(args: argparse.Namespace) -> None:
    graph = _load_graph(args)
    if graph is None:
        return
    node = graph.get(args.file)
    if node is None:
        print(f"Error: File '{args.file}' is not part of the snapshot")
        return

    print(f"{node.file_name}")
    print(f"  Ambient   : {node.is_ambient}")
    print(f"  Valid     : {node.is_valid}")
    print(f"  Imported by: {', '.join(sorted(graph.importers_of(node.file_name))) or '-'}")
    if node.is_ambient:
        return
    for key in sorted(node.imports):
        file_name, identifier = decode_symbol_key(key)
        print(f"  import    {identifier} from {file_name}")
    for key in sorted(node.exports):
        print(f"  export    {decode_symbol_key(key)[1]}")
    for imported, local in sorted(node.reexports.items()):
        file_name, identifier = decode_symbol_key(imported)
        print(f"  reexport  {identifier} from {file_name} as {decode_symbol_key(local)[1]}")
    for specifier, resolved in sorted(node.resolutions.items()):
        if resolved is None:
            print(f"  unresolved '{specifier}'")


def _projects(args: argparse.Namespace) -> None:
    config = _resolve_config(args)
    connection = _ensure_connection(config)
    try:
        projects = list_projects(connection)
    finally:
        connection.close()

    if not projects:
        print("No projects built yet.")
        return

    print(f"Stored projects ({len(projects)}):")
    for project in projects:
        print(f"\n  {project['root']} (ID: {project['id']})")
        print(f"    Built: {project['built_at']}")
        print(f"    Modules: {project['modules']}, invalid: {project['invalid_modules']}")


def _serve_mcp(args: argparse.Namespace) -> None:
    """Start the MCP server."""
    config = _resolve_config(args)

    try:
        from .mcp.server import create_server
        server = create_server(config)
    except RuntimeError as e:
        print(f"Error: {e}")
        return

    print("Starting symgraph MCP server...")
    print(f"Database: {config.resolved_database_path()}")
    print("Server running on stdio. Use Ctrl+C to stop.")

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        print("\nShutting down server...")
    finally:
        server.cleanup()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="symgraph", description=__doc__)
    parser.add_argument(
        "--database",
        type=Path,
        help="Path to the SQLite database (defaults to ~/.symgraph/symgraph.db)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Build a project and list files to recheck")
    build_parser.add_argument("root", type=Path, help="Project root")
    build_parser.add_argument(
        "--full",
        action="store_true",
        help="Ignore the stored snapshot and treat every file as changed",
    )
    build_parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only print the summary"
    )
    build_parser.set_defaults(func=_build)

    diff_parser = subparsers.add_parser(
        "diff", help="List files to recheck relative to a git revision"
    )
    diff_parser.add_argument("root", type=Path, help="Project root inside a git work tree")
    diff_parser.add_argument("--since", required=True, help="Revision to compare against")
    diff_parser.set_defaults(func=_diff)

    dependents_parser = subparsers.add_parser(
        "dependents", help="List files depending on a file or one of its symbols"
    )
    dependents_parser.add_argument("root", type=Path, help="Project root")
    dependents_parser.add_argument("file", help="File path relative to the root")
    dependents_parser.add_argument("--symbol", help="Exported name ('*' for the namespace)")
    dependents_parser.add_argument(
        "--include-reexports",
        action="store_true",
        help="Also list files that only reexport the symbol",
    )
    dependents_parser.set_defaults(func=_dependents)

    show_parser = subparsers.add_parser("show", help="Show the recorded surface of a file")
    show_parser.add_argument("root", type=Path, help="Project root")
    show_parser.add_argument("file", help="File path relative to the root")
    show_parser.set_defaults(func=_show)

    projects_parser = subparsers.add_parser("projects", help="List stored snapshots")
    projects_parser.set_defaults(func=_projects)

    serve_parser = subparsers.add_parser("serve", help="Start the MCP server")
    serve_parser.set_defaults(func=_serve_mcp)

    return parser


def main(argv: Iterable[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
