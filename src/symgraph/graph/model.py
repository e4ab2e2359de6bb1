"""Graph representations used by symgraph."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from .errors import SymbolGraphError
from .keys import SymbolKey, key_file

_EMPTY_RESOLUTIONS: Mapping[str, Optional[str]] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ModuleNode:
    """Import/export surface of one source file.

    Nodes are shared between graph snapshots when a file is unchanged, so
    they must never be mutated once built.

    Attributes
    ----------
    file_name:
        File the node describes.
    is_valid:
        Whether every specifier resolved and every export form was
        understood.
    is_ambient:
        Whether the file declares into the global scope instead of being an
        external module. Ambient nodes carry ``None`` for ``imports``,
        ``exports`` and ``reexports``.
    imports:
        Symbols pulled into local scope, e.g. ``import {foo} from './bar'``.
    exports:
        Symbols declared and exported locally, e.g. ``export const foo = 1``.
        Kept apart from reexports because a local export shadows a
        wildcard reexport of the same name.
    reexports:
        Imported key to the local key it is published under, e.g.
        ``export {foo as baz} from './bar'``. Several ``some-module%*``
        keys may map to the same ``this-module%*``; the mapping is only ever
        read in the downstream direction.
    resolutions:
        Every module specifier the file mentions and the file it resolved
        to (``None`` when unresolved).
    """

    file_name: str
    is_valid: bool
    is_ambient: bool
    imports: Optional[FrozenSet[SymbolKey]] = None
    exports: Optional[FrozenSet[SymbolKey]] = None
    reexports: Optional[Mapping[SymbolKey, SymbolKey]] = None
    resolutions: Mapping[str, Optional[str]] = field(default_factory=lambda: _EMPTY_RESOLUTIONS)

    def public_symbols(self) -> FrozenSet[SymbolKey]:
        """Return local exports plus the local names of all reexports."""
        if self.is_ambient:
            raise SymbolGraphError(f"Ambient module has no public symbols: {self.file_name}")
        return self.exports | frozenset(self.reexports.values())

    def imported_files(self) -> FrozenSet[str]:
        """Return every file this module imports or reexports from."""
        if self.is_ambient:
            return frozenset()
        keys: Iterable[str] = list(self.imports) + list(self.reexports)
        return frozenset(key_file(key) for key in keys)


def create_reverse_lookup(graph: Mapping[str, ModuleNode]) -> Dict[str, FrozenSet[str]]:
    """Invert import and reexport edges into ``importee -> importers``."""

    lookup: Dict[str, set[str]] = {}
    for importer, node in graph.items():
        if node.is_ambient:
            continue
        for importee in node.imported_files():
            lookup.setdefault(importee, set()).add(importer)
    return {importee: frozenset(importers) for importee, importers in lookup.items()}


@dataclass(slots=True)
class SymbolGraph:
    """All module nodes of one build plus the derived reverse index.

    Built once per build and read-only afterwards.
    """

    graph: Dict[str, ModuleNode] = field(default_factory=dict)
    fingerprints: Dict[str, str] = field(default_factory=dict)
    # fileName -> set of fileNames that import/reexport the said fileName
    reverse_lookup: Dict[str, FrozenSet[str]] = field(init=False)

    def __post_init__(self) -> None:
        self.reverse_lookup = create_reverse_lookup(self.graph)

    def __contains__(self, file_name: object) -> bool:
        return file_name in self.graph

    def __len__(self) -> int:
        return len(self.graph)

    def get(self, file_name: str) -> Optional[ModuleNode]:
        return self.graph.get(file_name)

    def importers_of(self, file_name: str) -> FrozenSet[str]:
        return self.reverse_lookup.get(file_name, frozenset())

    def importer_node(self, file_name: str) -> ModuleNode:
        """Return the node of a file found in the reverse index.

        Every importer was scanned from a non-ambient node of this graph, so
        anything else means the index and the nodes disagree.
        """

        node = self.graph.get(file_name)
        if node is None:
            raise SymbolGraphError(f"Reverse lookup references unknown file: {file_name}")
        if node.is_ambient:
            raise SymbolGraphError(f"Reverse lookup references ambient file: {file_name}")
        return node
