from __future__ import annotations

import shutil

import pytest

git = pytest.importorskip("git")

from symgraph.config import GraphConfig
from symgraph.git.history import GitRepo, diff_against_revision

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")

AUTHOR = git.Actor("symgraph", "symgraph@example.com")


def _commit(repo, root, files, message):
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    repo.index.add(list(files))
    return repo.index.commit(message, author=AUTHOR, committer=AUTHOR)


def test_read_sources_at_revision(tmp_path) -> None:
    repo = git.Repo.init(tmp_path)
    first = _commit(
        repo, tmp_path, {"src/a.ts": "export const a = 1;", "notes.md": "hello"}, "initial"
    )
    _commit(repo, tmp_path, {"src/a.ts": "export const a = 2;"}, "second")

    wrapped = GitRepo(tmp_path)
    assert wrapped.head_commit == repo.head.commit.hexsha
    assert wrapped.read_sources(first.hexsha, GraphConfig()) == {"src/a.ts": b"export const a = 1;"}

    with pytest.raises(ValueError):
        wrapped.read_sources("does-not-exist", GraphConfig())


def test_read_sources_relative_to_subdirectory(tmp_path) -> None:
    repo = git.Repo.init(tmp_path)
    _commit(repo, tmp_path, {"app/x.ts": "export {};", "other/y.ts": "export {};"}, "initial")
    assert GitRepo(tmp_path / "app").read_sources("HEAD", GraphConfig()) == {"x.ts": b"export {};"}


def test_diff_against_revision(tmp_path) -> None:
    repo = git.Repo.init(tmp_path)
    _commit(
        repo,
        tmp_path,
        {
            "foo.ts": "export const a = 1;",
            "bar.ts": "export {a} from './foo';",
            "index.ts": "import {a} from './bar';",
        },
        "initial",
    )
    (tmp_path / "foo.ts").write_text("export {};", encoding="utf-8")

    result = diff_against_revision(tmp_path, "HEAD", GraphConfig())
    assert result.changed_files == {"foo.ts"}
    assert result.invalidated_files == {"foo.ts", "bar.ts", "index.ts"}


def test_not_a_repository(tmp_path) -> None:
    with pytest.raises(ValueError):
        GitRepo(tmp_path)
