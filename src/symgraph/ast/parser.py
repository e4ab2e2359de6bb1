"""Extraction of top-level import/export declarations using tree-sitter.

Supports TypeScript (including ``.d.ts`` and TSX) and JavaScript. Only the
top-level statements of a file are inspected: nested code cannot change a
module's import/export surface.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from tree_sitter import Language, Node, Parser
from tree_sitter_javascript import language as javascript_language
from tree_sitter_typescript import language_tsx as tsx_language
from tree_sitter_typescript import language_typescript as typescript_language

from .declarations import (
    Binding,
    Declaration,
    DeclarationKind,
    DefaultExport,
    ExportAssignment,
    ExportedDeclaration,
    ExportFromDeclaration,
    ExportListDeclaration,
    ExportSpecifier,
    FileDeclarations,
    ImportDeclaration,
    ImportSpecifier,
    NameBinding,
    PatternBinding,
    UnsupportedDeclaration,
)

# Language configuration
LANGUAGE_EXTENSIONS = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
}

_DECLARATION_KINDS = {
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "function_declaration": DeclarationKind.FUNCTION,
    "generator_function_declaration": DeclarationKind.FUNCTION,
    "function_signature": DeclarationKind.FUNCTION,
    "enum_declaration": DeclarationKind.ENUM,
    "interface_declaration": DeclarationKind.INTERFACE,
    "type_alias_declaration": DeclarationKind.TYPE_ALIAS,
    "internal_module": DeclarationKind.NAMESPACE,
    "module": DeclarationKind.NAMESPACE,
    "lexical_declaration": DeclarationKind.VARIABLE,
    "variable_declaration": DeclarationKind.VARIABLE,
}

# Wrappers around the declaration that actually binds the names.
_TRANSPARENT = ("ambient_declaration", "expression_statement")


def detect_language(path: Path) -> Optional[str]:
    """Detect programming language from file extension."""
    return LANGUAGE_EXTENSIONS.get(path.suffix.lower())


@lru_cache(maxsize=None)
def _load_language(language: str) -> Language:
    if language == "typescript":
        return Language(typescript_language())
    if language == "tsx":
        return Language(tsx_language())
    if language == "javascript":
        return Language(javascript_language())
    raise ValueError(f"Unsupported language: {language}")


def _make_parser(language: str) -> Parser:
    # Parsers are not thread-safe; a fresh one per file is cheap.
    ts_lang = _load_language(language)
    parser = Parser()
    try:
        # Try new API (tree-sitter >= 0.21)
        parser.language = ts_lang
    except AttributeError:
        # Fallback to old API (tree-sitter < 0.21)
        parser.set_language(ts_lang)
    return parser


def _text(node: Node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _string_value(node: Node) -> str:
    """Return the contents of a string literal without its quotes."""
    text = _text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _name(node: Node) -> str:
    # Module export names may be string literals: `export {a as "b"}`.
    return _string_value(node) if node.type == "string" else _text(node)


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _tokens(node: Node) -> set[str]:
    return {child.type for child in node.children if not child.is_named}


def _child_of_type(node: Node, *types: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type in types:
            return child
    return None


def _parse_import(statement: Node) -> Declaration:
    source = statement.child_by_field_name("source")
    default_name = None
    namespace_name = None
    named: List[ImportSpecifier] = []

    for child in statement.named_children:
        if child.type == "import_clause":
            for part in child.named_children:
                if part.type == "identifier":
                    default_name = _text(part)
                elif part.type == "namespace_import":
                    alias = _child_of_type(part, "identifier")
                    namespace_name = _text(alias) if alias is not None else "*"
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        name = spec.child_by_field_name("name")
                        alias = spec.child_by_field_name("alias")
                        if name is None:
                            continue
                        named.append(
                            ImportSpecifier(_name(name), _text(alias) if alias is not None else None)
                        )
        elif child.type == "import_require_clause":
            # import x = require('./m')
            alias = _child_of_type(child, "identifier")
            namespace_name = _text(alias) if alias is not None else "*"
            source = child.child_by_field_name("source") or _child_of_type(child, "string")

    if source is None:
        return UnsupportedDeclaration(kind="import_statement", line=_line(statement))
    return ImportDeclaration(
        specifier=_string_value(source),
        default_name=default_name,
        namespace_name=namespace_name,
        named=tuple(named),
    )


def _export_specifiers(clause: Node) -> tuple[ExportSpecifier, ...]:
    specifiers = []
    for spec in clause.named_children:
        if spec.type != "export_specifier":
            continue
        name = spec.child_by_field_name("name")
        alias = spec.child_by_field_name("alias")
        if name is None:
            continue
        specifiers.append(ExportSpecifier(_name(name), _name(alias) if alias is not None else None))
    return tuple(specifiers)


def _parse_export(statement: Node) -> Declaration:
    tokens = _tokens(statement)
    if "default" in tokens:
        return DefaultExport()
    if "=" in tokens:
        # export = expression
        return ExportAssignment()

    declaration = statement.child_by_field_name("declaration")
    if declaration is not None:
        return _parse_exported_declaration(declaration)

    source = statement.child_by_field_name("source")
    clause = _child_of_type(statement, "export_clause")
    if source is not None:
        specifier = _string_value(source)
        namespace_export = _child_of_type(statement, "namespace_export")
        if clause is not None:
            return ExportFromDeclaration(specifier=specifier, named=_export_specifiers(clause))
        if namespace_export is not None:
            alias = namespace_export.named_children[-1] if namespace_export.named_children else None
            if alias is None:
                return UnsupportedDeclaration(kind="namespace_export", line=_line(statement))
            return ExportFromDeclaration(specifier=specifier, namespace_name=_name(alias))
        if "*" in tokens:
            if "as" in tokens:
                alias = _child_of_type(statement, "identifier", "string")
                if alias is not None:
                    return ExportFromDeclaration(specifier=specifier, namespace_name=_name(alias))
            return ExportFromDeclaration(specifier=specifier)
    elif clause is not None:
        return ExportListDeclaration(named=_export_specifiers(clause))

    return UnsupportedDeclaration(kind="export_statement", line=_line(statement))


def _parse_exported_declaration(declaration: Node) -> Declaration:
    line = _line(declaration)
    while declaration.type in _TRANSPARENT:
        inner = [child for child in declaration.named_children if child.type != "comment"]
        if not inner:
            return UnsupportedDeclaration(kind=declaration.type, line=line)
        declaration = inner[0]

    kind = _DECLARATION_KINDS.get(declaration.type)
    if kind is None:
        return UnsupportedDeclaration(kind=declaration.type, line=line)

    if kind is DeclarationKind.VARIABLE:
        bindings = []
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            binding = _binding(name) if name is not None else None
            if binding is not None:
                bindings.append(binding)
        return ExportedDeclaration(kind=kind, bindings=tuple(bindings))

    name = declaration.child_by_field_name("name")
    if name is None:
        return UnsupportedDeclaration(kind=declaration.type, line=line)
    if kind is DeclarationKind.NAMESPACE:
        if name.type == "string":
            # `export declare module "x"` augments another module.
            return UnsupportedDeclaration(kind="module_augmentation", line=line)
        # `namespace a.b.c` only binds `a` at the top level.
        return ExportedDeclaration(kind=kind, bindings=(NameBinding(_text(name).split(".")[0]),))
    return ExportedDeclaration(kind=kind, bindings=(NameBinding(_text(name)),))


def _binding(node: Node) -> Optional[Binding]:
    """Translate an identifier or destructuring pattern into a binding."""
    node_type = node.type
    if node_type in ("identifier", "shorthand_property_identifier_pattern"):
        return NameBinding(_text(node))
    if node_type in ("array_pattern", "object_pattern"):
        elements = []
        for child in node.named_children:
            element = _binding(child)
            if element is not None:
                elements.append(element)
        return PatternBinding(tuple(elements))
    if node_type == "pair_pattern":
        value = node.child_by_field_name("value")
        return _binding(value) if value is not None else None
    if node_type in ("assignment_pattern", "object_assignment_pattern"):
        left = node.child_by_field_name("left")
        return _binding(left) if left is not None else None
    if node_type == "rest_pattern":
        inner = node.named_children
        return _binding(inner[0]) if inner else None
    return None


def parse_declarations(
    file_name: str, source: bytes, language: Optional[str] = None
) -> FileDeclarations:
    """Parse ``source`` and return its top-level import/export declarations.

    Parameters
    ----------
    file_name:
        Name recorded on the result; also used to pick the grammar when
        ``language`` is not given.
    source:
        Raw file contents.
    language:
        ``"typescript"``, ``"tsx"`` or ``"javascript"``.

    Returns
    -------
    :class:`FileDeclarations` for the file. A file without any top-level
    ``import`` or ``export`` statement is reported as not being a module.
    """

    language = language or detect_language(Path(file_name)) or "typescript"
    tree = _make_parser(language).parse(source)

    is_module = False
    declarations: List[Declaration] = []
    errors: List[Node] = []
    for statement in tree.root_node.named_children:
        if statement.type == "import_statement":
            is_module = True
            declarations.append(_parse_import(statement))
        elif statement.type == "export_statement":
            is_module = True
            declarations.append(_parse_export(statement))
        else:
            if statement.type == "ERROR":
                errors.append(statement)
            continue
        if statement.has_error:
            errors.append(statement)

    # Broken syntax may hide import/export statements we cannot see.
    for error in errors:
        if _text(error).lstrip().startswith(("import", "export")):
            is_module = True
        declarations.append(UnsupportedDeclaration(kind="syntax_error", line=_line(error)))

    return FileDeclarations(file_name=file_name, is_module=is_module, declarations=tuple(declarations))


def parse_file(path: Path, file_name: Optional[str] = None) -> FileDeclarations:
    """Parse a single file from disk."""
    return parse_declarations(file_name or path.as_posix(), path.read_bytes())
