"""Top-level import/export shapes of a single source file.

These are the only facts about a file's syntax that the symbol graph needs.
:mod:`symgraph.ast.parser` produces them from TypeScript sources; other
front-ends can construct them directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class DeclarationKind(str, Enum):
    CLASS = "class"
    FUNCTION = "function"
    ENUM = "enum"
    INTERFACE = "interface"
    TYPE_ALIAS = "type_alias"
    VARIABLE = "variable"
    NAMESPACE = "namespace"


@dataclass(frozen=True, slots=True)
class NameBinding:
    """A single bound identifier, e.g. ``a`` in ``const a = 1``."""

    name: str


@dataclass(frozen=True, slots=True)
class PatternBinding:
    """An array or object destructuring pattern.

    ``elements`` holds the nested bindings in source order; holes and
    computed keys are simply absent.
    """

    elements: Tuple["Binding", ...] = ()


Binding = Union[NameBinding, PatternBinding]


@dataclass(frozen=True, slots=True)
class ImportSpecifier:
    name: str
    alias: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ExportSpecifier:
    name: str
    alias: Optional[str] = None

    @property
    def exported_name(self) -> str:
        return self.alias if self.alias is not None else self.name


@dataclass(frozen=True, slots=True)
class ImportDeclaration:
    """``import d, * as ns from 'm'``, ``import {a, b as c} from 'm'``,
    ``import 'm'`` and ``import x = require('m')``.

    A ``require`` import binds the whole module and is recorded through
    ``namespace_name``.
    """

    specifier: str
    default_name: Optional[str] = None
    namespace_name: Optional[str] = None
    named: Tuple[ImportSpecifier, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportFromDeclaration:
    """``export {a, b as c} from 'm'``, ``export * from 'm'`` and
    ``export * as ns from 'm'``.

    ``named`` is ``None`` for the wildcard forms.
    """

    specifier: str
    named: Optional[Tuple[ExportSpecifier, ...]] = None
    namespace_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ExportListDeclaration:
    """``export {a, b as c}`` of locals."""

    named: Tuple[ExportSpecifier, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportedDeclaration:
    """A top-level declaration carrying the ``export`` modifier."""

    kind: DeclarationKind
    bindings: Tuple[Binding, ...]


@dataclass(frozen=True, slots=True)
class DefaultExport:
    """``export default <expression or declaration>``."""


@dataclass(frozen=True, slots=True)
class ExportAssignment:
    """``export = <expression>``."""


@dataclass(frozen=True, slots=True)
class UnsupportedDeclaration:
    """An export form the graph cannot track precisely."""

    kind: str
    line: int = 0


Declaration = Union[
    ImportDeclaration,
    ExportFromDeclaration,
    ExportListDeclaration,
    ExportedDeclaration,
    DefaultExport,
    ExportAssignment,
    UnsupportedDeclaration,
]


@dataclass(frozen=True, slots=True)
class FileDeclarations:
    """Everything the symbol graph knows about one file's syntax."""

    file_name: str
    is_module: bool
    declarations: Tuple[Declaration, ...] = ()
