"""Scope normalization.

A scope is either a single name or a sequence of names. Everything inside
the registry works on the list form.
"""

from typing import List, Sequence, Tuple, Union

Scope = Union[str, Sequence[str]]


def normalize_scope(scope: Scope) -> List[str]:
    """Return the scope as a list of names ("form" -> ["form"])."""
    if isinstance(scope, str):
        return [scope]
    return list(scope)


def freeze_scope(scope: Scope) -> Union[str, Tuple[str, ...]]:
    """Return an immutable copy of the scope, keeping single names as strings."""
    if isinstance(scope, str):
        return scope
    return tuple(scope)
