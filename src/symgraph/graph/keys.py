"""Encoding of ``(file, identifier)`` pairs into hashable symbol keys.

A key is ``<file name>%<escaped identifier>``. Decoding splits on the last
``%``, so file names are free to contain the separator while escaped
identifiers never do.

Identifier escaping:

* an identifier with a leading ``__`` gains one more ``_`` (``__new`` becomes
  ``___new``), mirroring how TypeScript escapes its own symbol names;
* an identifier containing ``%`` is quoted as ``__$`` followed by the
  identifier with ``$`` written as ``$$`` and ``%`` written as ``$p``.

After escaping, a leading ``__`` is always followed by ``_`` or ``$``, which is
what keeps the two rules apart.
"""

from __future__ import annotations

from typing import NewType, Tuple

from .errors import MalformedSymbolKeyError

SymbolKey = NewType("SymbolKey", str)

SEPARATOR = "%"
NAMESPACE = "*"
DEFAULT = "default"

_QUOTE_PREFIX = "__$"


def escape_identifier(identifier: str) -> str:
    if SEPARATOR in identifier:
        quoted = identifier.replace("$", "$$").replace(SEPARATOR, "$p")
        return _QUOTE_PREFIX + quoted
    if identifier.startswith("__"):
        return "_" + identifier
    return identifier


def unescape_identifier(escaped: str) -> str:
    if not escaped.startswith("__"):
        return escaped
    if escaped.startswith("___"):
        return escaped[1:]
    if escaped.startswith(_QUOTE_PREFIX):
        return _unquote(escaped[len(_QUOTE_PREFIX):])
    raise MalformedSymbolKeyError(f"Invalid escaped identifier: {escaped!r}")


def _unquote(quoted: str) -> str:
    chars = []
    index = 0
    while index < len(quoted):
        char = quoted[index]
        if char == "$":
            following = quoted[index + 1 : index + 2]
            if following == "$":
                chars.append("$")
            elif following == "p":
                chars.append(SEPARATOR)
            else:
                raise MalformedSymbolKeyError(f"Invalid escape in identifier: {quoted!r}")
            index += 2
        else:
            chars.append(char)
            index += 1
    return "".join(chars)


def encode_symbol_key(file_name: str, identifier: str = NAMESPACE) -> SymbolKey:
    """Return the key naming ``identifier`` as exported by ``file_name``.

    The identifier defaults to ``*``, the whole module namespace.
    """

    return SymbolKey(file_name + SEPARATOR + escape_identifier(identifier))


def decode_symbol_key(key: str) -> Tuple[str, str]:
    """Split ``key`` back into ``(file_name, identifier)``.

    Raises
    ------
    MalformedSymbolKeyError:
        If ``key`` was not produced by :func:`encode_symbol_key`.
    """

    sep = key.rfind(SEPARATOR)
    if sep == -1:
        raise MalformedSymbolKeyError(f"Invalid SymbolKey: {key!r}")
    return key[:sep], unescape_identifier(key[sep + 1 :])


def key_file(key: str) -> str:
    """Return only the file component of ``key``."""
    sep = key.rfind(SEPARATOR)
    if sep == -1:
        raise MalformedSymbolKeyError(f"Invalid SymbolKey: {key!r}")
    return key[:sep]
