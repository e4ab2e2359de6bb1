from __future__ import annotations

from symgraph.resolver import ModuleResolver


def test_relative_specifiers_resolve_against_containing_directory() -> None:
    resolver = ModuleResolver(["src/a.ts", "src/util/b.ts", "lib.ts"])
    assert resolver("./util/b", "src/a.ts") == "src/util/b.ts"
    assert resolver("../a", "src/util/b.ts") == "src/a.ts"
    assert resolver("../lib", "src/a.ts") == "lib.ts"
    assert resolver("./missing", "src/a.ts") is None


def test_extension_priority_and_index_files() -> None:
    resolver = ModuleResolver(["m.tsx", "m.d.ts", "dir/index.ts", "plain.js"])
    assert resolver("./m", "x.ts") == "m.tsx"
    assert resolver("./dir", "x.ts") == "dir/index.ts"
    assert resolver("./plain", "x.ts") == "plain.js"
    assert resolver(".", "dir/other.ts") == "dir/index.ts"


def test_js_suffix_maps_to_typescript_source() -> None:
    resolver = ModuleResolver(["src/a.ts", "src/b.js"])
    assert resolver("./a.js", "src/c.ts") == "src/a.ts"
    assert resolver("./b.js", "src/c.ts") == "src/b.js"


def test_bare_specifiers_use_base_url_then_node_modules() -> None:
    resolver = ModuleResolver(
        ["src/app/core.ts", "node_modules/pkg/index.d.ts", "src/node_modules/local/index.ts"],
        base_url="src",
    )
    assert resolver("app/core", "src/main.ts") == "src/app/core.ts"
    assert resolver("pkg", "src/deep/file.ts") == "node_modules/pkg/index.d.ts"
    assert resolver("local", "src/deep/file.ts") == "src/node_modules/local/index.ts"
    assert resolver("unknown-package", "src/main.ts") is None


def test_candidates_list_priority_order() -> None:
    resolver = ModuleResolver([], extensions=[".ts", ".d.ts"])
    assert resolver.candidates("a/b") == ["a/b", "a/b.ts", "a/b.d.ts", "a/b/index.ts", "a/b/index.d.ts"]


def test_empty_specifier_never_resolves() -> None:
    assert ModuleResolver(["index.ts"])("", "a.ts") is None
