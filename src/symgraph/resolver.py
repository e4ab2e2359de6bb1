"""Module specifier resolution against a known set of files."""

from __future__ import annotations

import posixpath
from typing import Iterable, List, Optional, Sequence

DEFAULT_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx")


class ModuleResolver:
    """Resolve import specifiers the way a TypeScript compiler host would.

    Only files in ``files`` ever resolve; everything else yields ``None``.
    File names are POSIX-style paths relative to the project root.
    """

    def __init__(
        self,
        files: Iterable[str],
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        base_url: Optional[str] = None,
    ):
        self.files = frozenset(files)
        self.extensions = tuple(extensions)
        self.base_url = posixpath.normpath(base_url) if base_url else None

    def __call__(self, specifier: str, containing_file: str) -> Optional[str]:
        return self.resolve(specifier, containing_file)

    def resolve(self, specifier: str, containing_file: str) -> Optional[str]:
        if not specifier:
            return None
        if specifier.startswith(("./", "../")) or specifier in (".", ".."):
            base = posixpath.join(posixpath.dirname(containing_file), specifier)
            return self._probe(base)
        if specifier.startswith("/"):
            return self._probe(specifier.lstrip("/"))

        if self.base_url is not None:
            resolved = self._probe(posixpath.join(self.base_url, specifier))
            if resolved is not None:
                return resolved

        directory = posixpath.dirname(containing_file)
        while True:
            resolved = self._probe(posixpath.join(directory, "node_modules", specifier))
            if resolved is not None:
                return resolved
            if not directory:
                return None
            directory = posixpath.dirname(directory)

    def candidates(self, base: str) -> List[str]:
        """Return the file names tried for ``base`` in priority order."""
        base = posixpath.normpath(base)
        if base == ".":
            base = ""
        tried = [base] if base else []
        stem, suffix = posixpath.splitext(base)
        if suffix in (".js", ".jsx", ".mjs", ".cjs"):
            # ESM-style `./foo.js` specifiers name the compiled output of foo.ts.
            tried.extend(stem + ext for ext in (".ts", ".tsx", ".d.ts", ".mts", ".cts"))
        tried.extend(base + ext for ext in self.extensions if base)
        index = posixpath.join(base, "index") if base else "index"
        tried.extend(index + ext for ext in self.extensions)
        return tried

    def _probe(self, base: str) -> Optional[str]:
        for candidate in self.candidates(base):
            if candidate in self.files:
                return candidate
        return None
