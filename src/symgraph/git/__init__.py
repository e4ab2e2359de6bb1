"""Git integration for comparing the work tree against past revisions."""

from .history import GitRepo, diff_against_revision

__all__ = [
    "GitRepo",
    "diff_against_revision",
]
