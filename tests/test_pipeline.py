from __future__ import annotations

from symgraph.ast.parser import detect_language, parse_file
from symgraph.config import GraphConfig
from symgraph.indexer.pipeline import (
    LazyDeclarations,
    build_project,
    changed_files,
    fingerprint,
    iter_source_files,
    read_sources,
)


def _write(root, files) -> None:
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


def test_iter_source_files_skips_denied_and_foreign_files(tmp_path) -> None:
    _write(
        tmp_path,
        {
            "src/b.ts": "export {};",
            "src/a.tsx": "export {};",
            "types/global.d.ts": "declare var x: number;",
            "node_modules/pkg/index.d.ts": "export {};",
            "README.md": "# readme",
        },
    )
    names = [name for name, _ in iter_source_files(tmp_path, GraphConfig())]
    assert names == ["src/a.tsx", "src/b.ts", "types/global.d.ts"]


def test_build_project_incrementally(tmp_path) -> None:
    _write(
        tmp_path,
        {
            "src/foo.ts": "export const a = 1;",
            "src/bar.ts": "export {a} from './foo';",
            "src/index.ts": "import {a} from './bar';",
        },
    )
    config = GraphConfig()
    first = build_project(tmp_path, config)
    assert set(first.graph.graph) == {"src/foo.ts", "src/bar.ts", "src/index.ts"}
    assert first.invalidated_files == set(first.graph.graph)

    (tmp_path / "src" / "foo.ts").write_text("export {};", encoding="utf-8")
    second = build_project(tmp_path, config, previous=first.graph)
    assert second.changed_files == {"src/foo.ts"}
    assert second.invalidated_files == {"src/foo.ts", "src/bar.ts", "src/index.ts"}

    (tmp_path / "src" / "foo.ts").unlink()
    third = build_project(tmp_path, config, previous=second.graph)
    # bar.ts is unchanged on disk but its specifier no longer resolves.
    assert third.changed_files == {"src/foo.ts", "src/bar.ts"}
    assert third.invalidated_files == {"src/bar.ts", "src/index.ts"}
    assert not third.graph.graph["src/bar.ts"].is_valid


def test_build_project_reads_config_file(tmp_path) -> None:
    _write(
        tmp_path,
        {
            "symgraph.json": '{"base_url": "src"}',
            "src/core/a.ts": "export const a = 1;",
            "src/main.ts": "import {a} from 'core/a';",
        },
    )
    result = build_project(tmp_path)
    node = result.graph.graph["src/main.ts"]
    assert node.is_valid
    assert node.imports == {"src/core/a.ts%a"}


def test_changed_files_covers_added_removed_and_modified(make_graph) -> None:
    previous = make_graph({"kept.ts": "export {};", "edited.ts": "export {};", "gone.ts": "export {};"})
    tokens = {
        "kept.ts": fingerprint(b"export {};"),
        "edited.ts": fingerprint(b"export const x = 1;"),
        "new.ts": fingerprint(b""),
    }
    assert changed_files(previous, tokens) == {"edited.ts", "gone.ts", "new.ts"}


def test_lazy_declarations_parse_on_access(tmp_path) -> None:
    _write(tmp_path, {"a.ts": "export const a = 1;", "b.ts": "import {a} from './a';"})
    declarations = LazyDeclarations(read_sources(tmp_path, GraphConfig()))
    assert len(declarations) == 2
    assert declarations.parsed == set()
    assert declarations["b.ts"].is_module
    assert declarations.parsed == {"b.ts"}


def test_fingerprint_is_content_based() -> None:
    assert fingerprint(b"abc") == fingerprint(b"abc")
    assert fingerprint(b"abc") != fingerprint(b"abd")


def test_parse_file_and_language_detection(tmp_path) -> None:
    component = tmp_path / "view.tsx"
    component.write_text(
        "import {h} from './h';\nexport const View = () => <div>{h}</div>;\n", encoding="utf-8"
    )
    assert detect_language(component) == "tsx"
    assert detect_language(tmp_path / "types.d.ts") == "typescript"
    assert detect_language(tmp_path / "legacy.cjs") == "javascript"
    assert detect_language(tmp_path / "style.css") is None

    declarations = parse_file(component, "view.tsx")
    assert declarations.file_name == "view.tsx"
    assert declarations.is_module
    assert [type(d).__name__ for d in declarations.declarations] == [
        "ImportDeclaration",
        "ExportedDeclaration",
    ]
