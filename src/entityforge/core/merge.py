"""Deep merge of nested schema fragments.

Every compiler stage produces a fragment and folds it into the running
schema through :func:`deep_merge`. Removal goes through :func:`unset_paths`.
Neither function mutates its arguments.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any


class MergeMode(StrEnum):
    """How two lists meeting at the same key are combined."""

    OVERRIDE = "override"  # overlay list replaces base list
    APPEND = "append"  # base list followed by overlay list


def deep_merge(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
    mode: MergeMode = MergeMode.OVERRIDE,
) -> dict[str, Any]:
    """Merge ``overlay`` into ``base`` and return a new dict.

    Keys are unioned, base keys keep their position and new overlay keys are
    appended. When both sides hold a mapping the merge recurses; otherwise
    the overlay value wins.

    Args:
        base: Lower-precedence mapping
        overlay: Higher-precedence mapping
        mode: List handling, see :class:`MergeMode`

    Returns:
        Merged mapping
    """
    result: dict[str, Any] = {key: copy.deepcopy(value) for key, value in base.items()}

    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value, mode)
        elif mode is MergeMode.APPEND and isinstance(current, list) and isinstance(value, list):
            result[key] = current + copy.deepcopy(value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def merge_all(*fragments: Mapping[str, Any], mode: MergeMode = MergeMode.OVERRIDE) -> dict[str, Any]:
    """Fold fragments left to right with :func:`deep_merge`."""
    result: dict[str, Any] = {}
    for fragment in fragments:
        result = deep_merge(result, fragment, mode)
    return result


def _split(path: str | Sequence[str]) -> list[str]:
    if isinstance(path, str):
        return path.split(".")
    return list(path)


def unset_paths(tree: Mapping[str, Any], paths: Iterable[str | Sequence[str]]) -> dict[str, Any]:
    """Return a copy of ``tree`` without the given paths.

    Paths are dotted strings (``"Account.fields.name"``) or key sequences.
    Paths that do not exist are ignored.
    """
    result = copy.deepcopy(dict(tree))

    for path in paths:
        keys = _split(path)
        if not keys:
            continue
        node: Any = result
        for key in keys[:-1]:
            node = node.get(key) if isinstance(node, dict) else None
            if node is None:
                break
        if isinstance(node, dict):
            node.pop(keys[-1], None)

    return result
