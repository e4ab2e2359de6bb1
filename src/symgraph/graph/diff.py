"""Invalidation sets from two consecutive symbol graphs."""

from __future__ import annotations

from typing import AbstractSet, Set

from .errors import SymbolGraphError
from .model import SymbolGraph
from .queries import collect_by_file, collect_by_symbol


def diff_symbol_graphs(
    old_graph: SymbolGraph, new_graph: SymbolGraph, changed_files: AbstractSet[str]
) -> Set[str]:
    """Compare two graphs and return the files that must be rechecked.

    Parameters
    ----------
    old_graph:
        Graph of the previous build.
    new_graph:
        Graph of the current build.
    changed_files:
        Files whose content was added, removed or modified in between.

    Returns
    -------
    Set of file names present in ``new_graph``.

    Raises
    ------
    SymbolGraphError:
        If a changed file exists in neither graph.
    """

    invalidated = set(changed_files)

    for file_name in changed_files:
        new_node = new_graph.get(file_name)
        old_node = old_graph.get(file_name)
        if new_node is None:
            if old_node is None:
                raise SymbolGraphError(f"File not found: {file_name}")
            # Removed file: will turn valid importers invalid
            invalidated |= collect_by_file(old_graph, file_name)
        elif old_node is None:
            # Added file: nothing could have depended on it yet
            continue
        elif old_node.is_ambient != new_node.is_ambient or new_node.is_ambient:
            invalidated.update(new_graph.graph)
        else:
            new_public = new_node.public_symbols()
            for symbol_key in old_node.public_symbols():
                # A deleted symbol may break reexports; a kept one may only
                # have changed its value or type.
                include_reexports = symbol_key not in new_public
                invalidated |= collect_by_symbol(old_graph, symbol_key, include_reexports)
            # Added symbols may turn invalid files valid, but those are
            # rechecked by the pass below anyway.

    for file_name, new_node in new_graph.graph.items():
        old_node = old_graph.get(file_name)
        if (old_node is not None and not old_node.is_valid) or not new_node.is_valid:
            # Unresolved imports are not tracked individually, so anything
            # downstream of an invalid file may have changed meaning.
            invalidated |= collect_by_file(old_graph, file_name)

    # Removed files cannot be rechecked.
    return {file_name for file_name in invalidated if file_name in new_graph}
