"""Reachability over the reverse lookup index."""

from __future__ import annotations

from typing import List, Set

from .keys import NAMESPACE, SymbolKey, decode_symbol_key, encode_symbol_key, key_file
from .model import SymbolGraph


def collect_by_file(graph: SymbolGraph, file_name: str) -> Set[str]:
    """Return ``file_name`` and every file that transitively depends on it.

    File-granular and therefore conservative: used whenever a file's
    validity or ambient status changes, since either can affect every
    downstream importer regardless of the symbols involved.
    """

    collected: Set[str] = set()
    pending = [file_name]
    while pending:
        importee = pending.pop()
        if importee in collected:
            continue
        collected.add(importee)
        pending.extend(graph.importers_of(importee) - collected)
    return collected


def collect_by_symbol(graph: SymbolGraph, symbol_key: str, include_reexports: bool) -> Set[str]:
    """Return the files that depend on one exported symbol.

    Parameters
    ----------
    graph:
        Graph to traverse.
    symbol_key:
        Key of the symbol whose dependents are wanted. The file of the key
        is always part of the result.
    include_reexports:
        Also include files that merely reexport the symbol. Needed when the
        symbol may have disappeared, because a dangling reexport is itself
        an error in the reexporting file.

    Returns
    -------
    Set of file names.
    """

    collected: Set[str] = {key_file(symbol_key)}
    # A file may be visited more than once through cycles, a symbol never.
    traced: Set[str] = set()
    pending: List[str] = [symbol_key]

    while pending:
        importee = pending.pop()
        if importee in traced:
            continue
        traced.add(importee)
        file_name, identifier = decode_symbol_key(importee)
        if include_reexports:
            collected.add(file_name)
        wildcard = encode_symbol_key(file_name, NAMESPACE)

        for importer in graph.importers_of(file_name):
            node = graph.importer_node(importer)
            if identifier == NAMESPACE:
                # The identifiers actually used are unknown, so anything
                # taken from this file counts.
                if any(key_file(key) == file_name for key in node.imports):
                    collected.add(importer)
                for imported, local in node.reexports.items():
                    if key_file(imported) == file_name:
                        pending.append(local)
                continue

            if importee in node.imports or wildcard in node.imports:
                collected.add(importer)

            if importee in node.reexports:
                pending.append(node.reexports[importee])
            elif wildcard in node.reexports:
                pending.append(_through_wildcard(node.reexports[wildcard], importer, identifier))

    return collected


def _through_wildcard(local: SymbolKey, importer: str, identifier: str) -> SymbolKey:
    # `export * from` keeps the name; `export * as ns from` nests it under ns.
    _, local_identifier = decode_symbol_key(local)
    if local_identifier == NAMESPACE:
        return encode_symbol_key(importer, identifier)
    return local
