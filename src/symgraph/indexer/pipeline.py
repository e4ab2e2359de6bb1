"""Incremental build driver: sources in, invalidation set out."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Set, Tuple

from ..ast.declarations import FileDeclarations
from ..ast.parser import parse_declarations
from ..config import GraphConfig
from ..graph.builder import build_graph
from ..graph.diff import diff_symbol_graphs
from ..graph.model import SymbolGraph
from ..resolver import ModuleResolver

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BuildResult:
    """Outcome of one incremental build."""

    graph: SymbolGraph
    changed_files: Set[str] = field(default_factory=set)
    invalidated_files: Set[str] = field(default_factory=set)


class LazyDeclarations(Mapping):
    """File name to declarations, parsed on first access.

    Files whose module node is reused are never looked up, so they are
    never parsed.
    """

    def __init__(self, sources: Mapping[str, bytes]):
        self._sources = sources
        self._parsed: Dict[str, FileDeclarations] = {}

    def __getitem__(self, file_name: str) -> FileDeclarations:
        if file_name not in self._parsed:
            self._parsed[file_name] = parse_declarations(file_name, self._sources[file_name])
        return self._parsed[file_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    @property
    def parsed(self) -> Set[str]:
        """Names of the files parsed so far."""
        return set(self._parsed)


def fingerprint(data: bytes) -> str:
    """Return the content token used to decide module node reuse."""
    return hashlib.sha1(data).hexdigest()


def iter_source_files(root: Path, config: GraphConfig) -> Iterable[Tuple[str, Path]]:
    """Yield ``(file name, path)`` for every source file under ``root``.

    File names are POSIX paths relative to ``root`` and come out sorted.
    """

    root = root.resolve()
    for file_path in sorted(root.rglob("*")):
        relative = file_path.relative_to(root)
        if config.is_denied(relative) or not config.is_source(file_path):
            continue
        if file_path.is_file():
            yield relative.as_posix(), file_path


def read_sources(root: Path, config: GraphConfig) -> Dict[str, bytes]:
    """Read every source file under ``root``; unreadable files are skipped."""
    sources: Dict[str, bytes] = {}
    for file_name, file_path in iter_source_files(root, config):
        try:
            sources[file_name] = file_path.read_bytes()
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", file_path, e)
    return sources


def changed_files(previous: SymbolGraph, fingerprints: Mapping[str, str]) -> Set[str]:
    """Return added, removed and modified files relative to ``previous``."""
    changed = {
        file_name
        for file_name, token in fingerprints.items()
        if previous.fingerprints.get(file_name) != token
    }
    changed.update(file_name for file_name in previous.graph if file_name not in fingerprints)
    return changed


def build_from_sources(
    sources: Mapping[str, bytes],
    config: Optional[GraphConfig] = None,
    previous: Optional[SymbolGraph] = None,
) -> BuildResult:
    """Build a graph from in-memory sources and diff it against ``previous``.

    Parameters
    ----------
    sources:
        File name to raw contents.
    config:
        Resolution and concurrency settings.
    previous:
        Graph of the last build. Without one, every file is invalidated.

    Returns
    -------
    :class:`BuildResult` with the new graph, the changed files and the
    files that must be rechecked.
    """

    config = config or GraphConfig()
    fingerprints = {file_name: fingerprint(data) for file_name, data in sources.items()}
    resolver = ModuleResolver(sources, config.extensions, config.base_url)
    declarations = LazyDeclarations(sources)
    graph = build_graph(
        declarations,
        resolver,
        fingerprints,
        previous,
        workers=config.workers,
    )
    logger.debug("Parsed %d of %d files", len(declarations.parsed), len(declarations))

    if previous is None:
        everything = set(graph.graph)
        return BuildResult(graph=graph, changed_files=set(everything), invalidated_files=everything)

    changed = changed_files(previous, fingerprints)
    # Same content, but a specifier now resolves to another file.
    changed.update(
        file_name
        for file_name, node in graph.graph.items()
        if file_name not in changed and previous.graph.get(file_name) is not node
    )
    invalidated = diff_symbol_graphs(previous, graph, changed)
    return BuildResult(graph=graph, changed_files=changed, invalidated_files=invalidated)


def build_project(
    root: Path,
    config: Optional[GraphConfig] = None,
    previous: Optional[SymbolGraph] = None,
) -> BuildResult:
    """Build the symbol graph of the project at ``root``."""
    config = config or GraphConfig.load(root)
    return build_from_sources(read_sources(root, config), config, previous)
