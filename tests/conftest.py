from __future__ import annotations

import textwrap
from typing import Callable, Dict

import pytest

from symgraph.graph.model import ModuleNode, SymbolGraph
from symgraph.indexer.pipeline import BuildResult, build_from_sources


def _sources(files: Dict[str, str]) -> Dict[str, bytes]:
    return {name: textwrap.dedent(text).encode("utf-8") for name, text in files.items()}


@pytest.fixture
def build() -> Callable[..., BuildResult]:
    """Run the incremental driver over in-memory TypeScript sources."""

    def _build(files: Dict[str, str], previous: SymbolGraph | None = None) -> BuildResult:
        return build_from_sources(_sources(files), previous=previous)

    return _build


@pytest.fixture
def make_graph(build) -> Callable[[Dict[str, str]], SymbolGraph]:
    def _make_graph(files: Dict[str, str]) -> SymbolGraph:
        return build(files).graph

    return _make_graph


@pytest.fixture
def make_node(make_graph) -> Callable[[Dict[str, str], str], ModuleNode]:
    def _make_node(files: Dict[str, str], file_name: str) -> ModuleNode:
        return make_graph(files).graph[file_name]

    return _make_node
