"""symgraph package.

Incremental symbol dependency graph for TypeScript and JavaScript projects:
decides which files must be rechecked after an edit by tracking the
import/export surface of every module.
"""

__all__ = [
    "config",
    "resolver",
    "ast",
    "graph",
    "indexer",
    "storage",
    "git",
    "mcp",
]
