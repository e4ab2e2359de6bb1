"""Construction of module nodes and whole symbol graphs."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from ..ast.declarations import (
    Binding,
    DefaultExport,
    ExportAssignment,
    ExportedDeclaration,
    ExportFromDeclaration,
    ExportListDeclaration,
    FileDeclarations,
    ImportDeclaration,
    NameBinding,
    PatternBinding,
    UnsupportedDeclaration,
)
from .keys import DEFAULT, NAMESPACE, SymbolKey, decode_symbol_key, encode_symbol_key
from .model import ModuleNode, SymbolGraph

logger = logging.getLogger(__name__)

ResolveModule = Callable[[str, str], Optional[str]]


def create_module_node(source: FileDeclarations, resolve_module: ResolveModule) -> ModuleNode:
    """Summarise the import/export surface of ``source``.

    Unresolved specifiers and unsupported export forms never raise: they
    mark the node invalid and analysis carries on with the next statement.
    """

    file_name = source.file_name
    # CommonJS-style files are treated as ambient as well.
    if not source.is_module:
        return ModuleNode(file_name=file_name, is_valid=True, is_ambient=True)

    is_valid = True
    imports: set[SymbolKey] = set()
    exports: set[SymbolKey] = set()
    reexports: Dict[SymbolKey, SymbolKey] = {}
    resolutions: Dict[str, Optional[str]] = {}

    def resolve(specifier: str) -> Optional[str]:
        if specifier not in resolutions:
            resolutions[specifier] = resolve_module(specifier, file_name)
        return resolutions[specifier]

    for decl in source.declarations:
        if isinstance(decl, ImportDeclaration):
            keys: List[str] = []
            if decl.default_name is not None:
                keys.append(DEFAULT)
            if decl.namespace_name is not None:
                keys.append(NAMESPACE)
            # Only the imported identity matters, never the local alias.
            keys.extend(spec.name for spec in decl.named)
            target = resolve(decl.specifier)
            if target is None:
                is_valid = False
                continue
            imports.update(encode_symbol_key(target, key) for key in keys)

        elif isinstance(decl, ExportFromDeclaration):
            target = resolve(decl.specifier)
            if target is None:
                is_valid = False
                continue
            if decl.named is None:
                local = decl.namespace_name if decl.namespace_name is not None else NAMESPACE
                pairs = [(NAMESPACE, local)]
            else:
                pairs = [(spec.name, spec.exported_name) for spec in decl.named]
            for imported, local in pairs:
                imported_key = encode_symbol_key(target, imported)
                local_key = encode_symbol_key(file_name, local)
                previous = reexports.setdefault(imported_key, local_key)
                if previous != local_key:
                    logger.warning(
                        "%s reexports %s under more than one name. "
                        "Incremental compilation may be significantly slower.",
                        file_name,
                        imported_key,
                    )
                    is_valid = False

        elif isinstance(decl, ExportListDeclaration):
            exports.update(encode_symbol_key(file_name, spec.exported_name) for spec in decl.named)

        elif isinstance(decl, ExportedDeclaration):
            for binding in decl.bindings:
                exports.update(encode_symbol_key(file_name, name) for name in collect_names(binding))

        elif isinstance(decl, DefaultExport):
            exports.add(encode_symbol_key(file_name, DEFAULT))

        elif isinstance(decl, ExportAssignment):
            # `export =` replaces the whole namespace.
            exports.add(encode_symbol_key(file_name, NAMESPACE))

        elif isinstance(decl, UnsupportedDeclaration):
            logger.warning(
                "Unsupported export type %s in %s (line %d). "
                "Incremental compilation may be significantly slower.",
                decl.kind,
                file_name,
                decl.line,
            )
            is_valid = False

        else:
            raise TypeError(f"Unexpected declaration {decl!r} in {file_name}")

    return ModuleNode(
        file_name=file_name,
        is_valid=is_valid,
        is_ambient=False,
        imports=frozenset(imports),
        exports=frozenset(exports),
        reexports=MappingProxyType(reexports),
        resolutions=MappingProxyType(resolutions),
    )


def collect_names(binding: Binding) -> List[str]:
    """Recursively collect identifiers from a binding pattern or identifier."""
    if isinstance(binding, NameBinding):
        return [binding.name]
    if isinstance(binding, PatternBinding):
        names: List[str] = []
        for element in binding.elements:
            names.extend(collect_names(element))
        return names
    raise TypeError(f"Unexpected binding {binding!r} in collect_names")


def can_reuse(node: ModuleNode, resolve_module: ResolveModule) -> bool:
    """Whether ``node`` still describes its file under the current resolution.

    The caller has already established that the file content is unchanged;
    what remains is that every specifier still lands on the same file.
    """

    return all(
        resolve_module(specifier, node.file_name) == resolved
        for specifier, resolved in node.resolutions.items()
    )


def build_graph(
    files: Mapping[str, FileDeclarations],
    resolve_module: ResolveModule,
    fingerprints: Mapping[str, str],
    previous_graph: Optional[SymbolGraph] = None,
    *,
    workers: Optional[int] = None,
) -> SymbolGraph:
    """Create or reuse module nodes for every file in ``files``.

    Parameters
    ----------
    files:
        File name to its declarations. May be lazy: entries of reused files
        are never looked up.
    resolve_module:
        ``(specifier, containing_file) -> file name or None``.
    fingerprints:
        Content token per file; equal tokens mean equal content.
    previous_graph:
        Graph of the previous build whose nodes may be reused.
    workers:
        Number of threads used to build nodes. ``None`` or ``1`` builds
        sequentially.

    Returns
    -------
    A new :class:`SymbolGraph` with a freshly computed reverse index.
    """

    nodes: Dict[str, ModuleNode] = {}
    pending: List[str] = []
    for file_name in files:
        fingerprint = fingerprints.get(file_name)
        old_node = previous_graph.graph.get(file_name) if previous_graph is not None else None
        if (
            old_node is not None
            and fingerprint is not None
            and previous_graph.fingerprints.get(file_name) == fingerprint
            and can_reuse(old_node, resolve_module)
        ):
            nodes[file_name] = old_node
        else:
            pending.append(file_name)

    def build(file_name: str) -> ModuleNode:
        return create_module_node(files[file_name], resolve_module)

    if workers is not None and workers > 1 and len(pending) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            built = list(executor.map(build, pending))
    else:
        built = [build(file_name) for file_name in pending]
    nodes.update(zip(pending, built))

    logger.debug("Reused %d module nodes, built %d", len(nodes) - len(pending), len(pending))

    ordered = {file_name: nodes[file_name] for file_name in files}
    recorded = {name: fingerprints[name] for name in ordered if name in fingerprints}
    return SymbolGraph(graph=ordered, fingerprints=recorded)


def node_from_keys(
    file_name: str,
    *,
    is_valid: bool = True,
    imports: Iterable[str] = (),
    exports: Iterable[str] = (),
    reexports: Optional[Mapping[str, str]] = None,
    resolutions: Optional[Mapping[str, Optional[str]]] = None,
) -> ModuleNode:
    """Rebuild a non-ambient node from already encoded keys.

    Used when restoring snapshots; every key is decoded once so that a
    corrupted snapshot fails loudly instead of producing a wrong graph.
    """

    imports = list(imports)
    exports = list(exports)
    reexports = dict(reexports or {})
    for key in [*imports, *exports, *reexports, *reexports.values()]:
        decode_symbol_key(key)
    return ModuleNode(
        file_name=file_name,
        is_valid=is_valid,
        is_ambient=False,
        imports=frozenset(SymbolKey(key) for key in imports),
        exports=frozenset(SymbolKey(key) for key in exports),
        reexports=MappingProxyType({SymbolKey(k): SymbolKey(v) for k, v in reexports.items()}),
        resolutions=MappingProxyType(dict(resolutions or {})),
    )
