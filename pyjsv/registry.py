"""
Custom hook registry.

A hook overrides convention-based classification for one type: the type is
written as a single text scalar produced by `encode` and read back with
`decode`. Hooks are keyed by exact type identity and are consulted before
any other rule, so they also cover types the engine cannot introspect.

    >>> register_hook(Point, lambda p: f"{p.x},{p.y}", Point.from_csv)

Registration is expected during process start, before serialization runs
concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HookEntry:
    """Encode/decode pair registered for a type."""

    python_type: type
    encode: Callable[[Any], str]
    decode: Callable[[str], Any]


# Maps types to their hook entries.
# Checked BEFORE any convention-based classification.
hook_table: dict[type, HookEntry] = {}


def register_hook(
    python_type: type,
    encode: Callable[[Any], str],
    decode: Callable[[str], Any],
) -> None:
    """
    Register a text encode/decode pair for a type.

    Any descriptor already cached for the type is discarded so the hook
    takes effect on the next call.

    Args:
        python_type: The type to handle.
        encode: Function that takes a value and returns its text form.
        decode: Function that takes the text form and returns a value.
    """
    if not callable(encode) or not callable(decode):
        raise TypeError("encode and decode must be callable")
    hook_table[python_type] = HookEntry(python_type, encode, decode)
    logger.debug("Registered hook for %s", getattr(python_type, "__qualname__", python_type))

    from pyjsv.serialize import evict

    evict(python_type)


def register_compact(
    python_type: type,
    to_text: Callable[[Any], str],
    from_text: Callable[[str], Any],
) -> None:
    """
    Adapt a type you do not own to compact (single scalar) serialization.

    This is the registered equivalent of defining `to_text()` and
    `from_text()` on the type itself.
    """
    register_hook(python_type, to_text, from_text)


def unregister_hook(python_type: type) -> None:
    """Remove a hook; the type falls back to convention-based rules."""
    if hook_table.pop(python_type, None) is not None:
        logger.debug("Removed hook for %s", getattr(python_type, "__qualname__", python_type))
        from pyjsv.serialize import evict

        evict(python_type)


def lookup_hook(python_type: Any) -> HookEntry | None:
    """Return the hook entry for a type, if one is registered."""
    try:
        return hook_table.get(python_type)
    except TypeError:
        # Unhashable annotations never have hooks
        return None
