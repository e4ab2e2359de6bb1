"""Exceptions raised when a symbol graph is inconsistent or misused."""

from __future__ import annotations


class SymbolGraphError(RuntimeError):
    """The symbol graph is inconsistent, or was asked about an unknown file.

    These errors are never recoverable: continuing could yield an
    invalidation set that is too small.
    """


class MalformedSymbolKeyError(SymbolGraphError, ValueError):
    """A string could not be decoded as a symbol key."""
