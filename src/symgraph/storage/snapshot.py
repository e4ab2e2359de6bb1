"""Persistence of symbol graph snapshots between builds."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from ..graph.builder import node_from_keys
from ..graph.model import ModuleNode, SymbolGraph


def _project_id(connection: sqlite3.Connection, root: Path) -> Optional[int]:
    row = connection.execute(
        "SELECT id FROM project WHERE root = ?", (str(root.resolve()),)
    ).fetchone()
    return int(row[0]) if row else None


def save_snapshot(connection: sqlite3.Connection, root: Path, graph: SymbolGraph) -> int:
    """Replace the stored snapshot of the project at ``root`` with ``graph``.

    Parameters
    ----------
    connection:
        Database connection
    root:
        Project root the graph was built from
    graph:
        Graph to store

    Returns
    -------
    Project ID
    """
    cursor = connection.cursor()
    project_id = _project_id(connection, root)
    built_at = datetime.now().isoformat()

    if project_id is None:
        cursor.execute(
            "INSERT INTO project (root, built_at) VALUES (?, ?)",
            (str(root.resolve()), built_at),
        )
        project_id = int(cursor.lastrowid)
    else:
        cursor.execute("UPDATE project SET built_at = ? WHERE id = ?", (built_at, project_id))
        # Cascades to module_symbol and module_resolution
        cursor.execute("DELETE FROM module WHERE project_id = ?", (project_id,))

    for file_name, node in graph.graph.items():
        cursor.execute(
            """INSERT INTO module (project_id, path, fingerprint, is_ambient, is_valid)
               VALUES (?, ?, ?, ?, ?)""",
            (
                project_id,
                file_name,
                graph.fingerprints.get(file_name),
                int(node.is_ambient),
                int(node.is_valid),
            ),
        )
        module_id = int(cursor.lastrowid)
        if node.is_ambient:
            continue

        rows = [(module_id, "import", key, None) for key in sorted(node.imports)]
        rows.extend((module_id, "export", key, None) for key in sorted(node.exports))
        rows.extend(
            (module_id, "reexport", key, target) for key, target in sorted(node.reexports.items())
        )
        cursor.executemany(
            "INSERT INTO module_symbol (module_id, relation, symbol_key, target_key) VALUES (?, ?, ?, ?)",
            rows,
        )
        cursor.executemany(
            "INSERT INTO module_resolution (module_id, specifier, resolved) VALUES (?, ?, ?)",
            [(module_id, spec, resolved) for spec, resolved in sorted(node.resolutions.items())],
        )

    connection.commit()
    return project_id


def load_snapshot(connection: sqlite3.Connection, root: Path) -> Optional[SymbolGraph]:
    """Restore the stored snapshot of the project at ``root``.

    Parameters
    ----------
    connection:
        Database connection
    root:
        Project root

    Returns
    -------
    The stored :class:`SymbolGraph`, or None if the project was never built
    """
    project_id = _project_id(connection, root)
    if project_id is None:
        return None

    cursor = connection.cursor()
    modules = cursor.execute(
        """SELECT id, path, fingerprint, is_ambient, is_valid
           FROM module WHERE project_id = ? ORDER BY id""",
        (project_id,),
    ).fetchall()

    symbols: Dict[int, List[tuple]] = {}
    for module_id, relation, key, target in cursor.execute(
        """SELECT s.module_id, s.relation, s.symbol_key, s.target_key
           FROM module_symbol s JOIN module m ON m.id = s.module_id
           WHERE m.project_id = ?""",
        (project_id,),
    ):
        symbols.setdefault(module_id, []).append((relation, key, target))

    resolutions: Dict[int, Dict[str, Optional[str]]] = {}
    for module_id, specifier, resolved in cursor.execute(
        """SELECT r.module_id, r.specifier, r.resolved
           FROM module_resolution r JOIN module m ON m.id = r.module_id
           WHERE m.project_id = ?""",
        (project_id,),
    ):
        resolutions.setdefault(module_id, {})[specifier] = resolved

    nodes: Dict[str, ModuleNode] = {}
    fingerprints: Dict[str, str] = {}
    for module_id, path, token, is_ambient, is_valid in modules:
        if token is not None:
            fingerprints[path] = token
        if is_ambient:
            nodes[path] = ModuleNode(file_name=path, is_valid=bool(is_valid), is_ambient=True)
            continue
        rows = symbols.get(module_id, [])
        nodes[path] = node_from_keys(
            path,
            is_valid=bool(is_valid),
            imports=[key for relation, key, _ in rows if relation == "import"],
            exports=[key for relation, key, _ in rows if relation == "export"],
            reexports={key: target for relation, key, target in rows if relation == "reexport"},
            resolutions=resolutions.get(module_id, {}),
        )

    return SymbolGraph(graph=nodes, fingerprints=fingerprints)


def list_projects(connection: sqlite3.Connection) -> List[Dict]:
    """List all stored projects.

    Returns
    -------
    List of dictionaries with project info and module counts
    """
    rows = connection.execute(
        """SELECT p.id, p.root, p.built_at, COUNT(m.id),
                  COALESCE(SUM(CASE WHEN m.is_valid = 0 THEN 1 ELSE 0 END), 0)
           FROM project p LEFT JOIN module m ON m.project_id = p.id
           GROUP BY p.id ORDER BY p.root"""
    ).fetchall()
    return [
        {
            "id": row[0],
            "root": row[1],
            "built_at": row[2],
            "modules": row[3],
            "invalid_modules": row[4],
        }
        for row in rows
    ]


def remove_project(connection: sqlite3.Connection, root: Path) -> bool:
    """Delete the snapshot of ``root``. Returns False if none was stored."""
    project_id = _project_id(connection, root)
    if project_id is None:
        return False
    connection.execute("DELETE FROM project WHERE id = ?", (project_id,))
    connection.commit()
    return True
