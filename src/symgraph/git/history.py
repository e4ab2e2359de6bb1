"""Reading sources at a git revision and diffing them against the work tree."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Dict, Optional

try:
    from git import Repo
    GIT_AVAILABLE = True
except ImportError:
    GIT_AVAILABLE = False
    Repo = None

from ..config import GraphConfig
from ..indexer.pipeline import BuildResult, build_from_sources, read_sources


class GitRepo:
    """Wrapper around gitpython for reading project sources at a revision."""

    def __init__(self, repo_path: Path):
        if not GIT_AVAILABLE:
            raise RuntimeError(
                "GitPython is not installed. Install with: pip install gitpython"
            )

        self.repo_path = repo_path.resolve()
        try:
            self.repo = Repo(self.repo_path, search_parent_directories=True)
        except Exception as e:
            raise ValueError(f"Not a valid git repository: {repo_path}") from e
        self.work_tree = Path(self.repo.working_tree_dir).resolve()

    @property
    def head_commit(self) -> Optional[str]:
        """SHA of HEAD, or None for a repository without commits."""
        if not self.repo.head.is_valid():
            return None
        return self.repo.head.commit.hexsha

    def read_sources(self, revision: str, config: GraphConfig) -> Dict[str, bytes]:
        """Return the contents of every source file at ``revision``.

        Parameters
        ----------
        revision:
            Any revision git understands (SHA, branch, ``HEAD~1``)
        config:
            Decides which paths count as sources

        Returns
        -------
        Dictionary mapping file names, relative to the wrapped path, to bytes
        """
        try:
            commit = self.repo.commit(revision)
        except Exception as e:
            raise ValueError(f"Unknown revision: {revision}") from e

        prefix = self.repo_path.relative_to(self.work_tree).as_posix()
        sources: Dict[str, bytes] = {}
        for item in commit.tree.traverse():
            if item.type != "blob":
                continue
            path = PurePosixPath(item.path)
            if prefix != ".":
                try:
                    path = path.relative_to(prefix)
                except ValueError:
                    continue
            if config.is_denied(Path(path)) or not config.is_source(Path(path)):
                continue
            sources[path.as_posix()] = item.data_stream.read()
        return sources


def diff_against_revision(
    root: Path, revision: str, config: Optional[GraphConfig] = None
) -> BuildResult:
    """Compute what must be rechecked in the work tree relative to ``revision``.

    The graph of ``revision`` is built first and its nodes are reused for
    every file whose content is identical in the work tree.

    Parameters
    ----------
    root:
        Project root inside a git work tree
    revision:
        Revision to compare against
    config:
        Project configuration; loaded from ``root`` when omitted

    Returns
    -------
    :class:`BuildResult` for the work tree
    """
    config = config or GraphConfig.load(root)
    git_repo = GitRepo(root)
    old = build_from_sources(git_repo.read_sources(revision, config), config)
    return build_from_sources(read_sources(root, config), config, previous=old.graph)
