from __future__ import annotations

import pytest

from symgraph.cli import main


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "foo.ts").write_text("export const a = 1;\nexport const b = 2;", encoding="utf-8")
    (root / "src" / "bar.ts").write_text("export * from './foo';", encoding="utf-8")
    (root / "src" / "index.ts").write_text("import {a} from './bar';", encoding="utf-8")
    (root / "src" / "other.ts").write_text("export const z = 1;", encoding="utf-8")
    return root


@pytest.fixture
def database(tmp_path):
    return str(tmp_path / "state" / "symgraph.db")


def test_build_then_rebuild(project, database, capsys) -> None:
    main(["--database", database, "build", str(project)])
    out = capsys.readouterr().out
    assert "Files            : 4" in out
    assert "Files to recheck (4):" in out

    (project / "src" / "foo.ts").write_text("export function a() {}\nexport const b = 2;", encoding="utf-8")
    main(["--database", database, "build", str(project)])
    out = capsys.readouterr().out
    assert "Changed files    : 1" in out
    assert "Files to recheck (2):" in out
    assert "  src/index.ts" in out
    assert "  src/other.ts" not in out


def test_full_build_ignores_snapshot(project, database, capsys) -> None:
    main(["--database", database, "build", str(project)])
    main(["--database", database, "build", "--full", "-q", str(project)])
    out = capsys.readouterr().out
    assert out.count("Changed files    : 4") == 2
    assert "Files to recheck" in out.split("Built symbol graph")[1]
    assert "Files to recheck" not in out.split("Built symbol graph")[2]


def test_dependents(project, database, capsys) -> None:
    main(["--database", database, "build", "-q", str(project)])
    capsys.readouterr()

    main(["--database", database, "dependents", str(project), "src/foo.ts"])
    out = capsys.readouterr().out
    assert "Dependents of src/foo.ts (2):" in out

    main(["--database", database, "dependents", str(project), "src/foo.ts", "--symbol", "a"])
    out = capsys.readouterr().out
    assert "Dependents of a in src/foo.ts (1):" in out
    assert "  src/index.ts" in out

    main(
        [
            "--database",
            database,
            "dependents",
            str(project),
            "src/foo.ts",
            "--symbol",
            "a",
            "--include-reexports",
        ]
    )
    out = capsys.readouterr().out
    assert "(2):" in out
    assert "  src/bar.ts" in out


def test_show_and_projects(project, database, capsys) -> None:
    main(["--database", database, "build", "-q", str(project)])
    capsys.readouterr()

    main(["--database", database, "show", str(project), "src/bar.ts"])
    out = capsys.readouterr().out
    assert "reexport  * from src/foo.ts as *" in out
    assert "Imported by: src/index.ts" in out

    main(["--database", database, "projects"])
    out = capsys.readouterr().out
    assert "Stored projects (1):" in out
    assert str(project.resolve()) in out


def test_missing_snapshot_and_unknown_file(project, database, capsys) -> None:
    main(["--database", database, "dependents", str(project), "src/foo.ts"])
    assert "No snapshot" in capsys.readouterr().out

    main(["--database", database, "build", "-q", str(project)])
    main(["--database", database, "show", str(project), "src/nope.ts"])
    assert "is not part of the snapshot" in capsys.readouterr().out


def test_invalid_config_is_reported(project, database, capsys) -> None:
    (project / "symgraph.json").write_text('{"bogus": 1}', encoding="utf-8")
    main(["--database", database, "build", str(project)])
    assert "Unknown configuration keys" in capsys.readouterr().out
