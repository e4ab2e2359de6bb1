"""Configuration utilities for running symgraph on a developer laptop."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

from .resolver import DEFAULT_EXTENSIONS

CONFIG_FILE_NAME = "symgraph.json"


@dataclass(slots=True)
class GraphConfig:
    """Runtime configuration for building and storing symbol graphs.

    Attributes
    ----------
    base_dir:
        Root directory where runtime artefacts such as the SQLite database
        are stored. Defaults to ``~/.symgraph``.
    database_path:
        Location of the SQLite database file. Derived from ``base_dir`` when
        not provided explicitly.
    extensions:
        Extensions tried, in order, when resolving an extensionless
        specifier. Also decides which files are picked up as sources.
    deny_paths:
        Directory names that are never scanned for sources.
    base_url:
        Directory, relative to the project root, against which bare
        specifiers are resolved before falling back to ``node_modules``.
    workers:
        Threads used to build module nodes.
    """

    base_dir: Path = field(default_factory=lambda: Path.home() / ".symgraph")
    database_path: Path | None = None
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    deny_paths: List[str] = field(default_factory=lambda: ["node_modules", ".git"])
    base_url: Optional[str] = None
    workers: int = 1

    def resolved_database_path(self) -> Path:
        """Return an absolute path to the SQLite database file.

        The directory is created when it does not yet exist so that the rest of
        the application can assume the path is ready for use.
        """

        target = self.database_path or self.base_dir / "symgraph.db"
        target.parent.mkdir(parents=True, exist_ok=True)
        return target.resolve()

    def is_source(self, path: Path) -> bool:
        """Whether ``path`` has one of the configured source extensions."""
        return any(path.name.endswith(ext) for ext in self.extensions)

    def is_denied(self, relative: Path) -> bool:
        return any(part in self.deny_paths for part in relative.parts[:-1])

    @classmethod
    def load(cls, root: Path) -> "GraphConfig":
        """Load ``symgraph.json`` from ``root`` when present.

        Raises
        ------
        ValueError:
            If the file contains keys that are not configuration fields.
        """

        config_path = root / CONFIG_FILE_NAME
        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys in {config_path}: {', '.join(unknown)}")

        for key in ("base_dir", "database_path"):
            if raw.get(key) is not None:
                raw[key] = Path(raw[key]).expanduser()
        return cls(**raw)


DEFAULT_CONFIG = GraphConfig()
