"""Pure, order-preserving operations over id-keyed sequences.

Every function returns a new tuple and leaves its input untouched, so the
stores can hand out each result as a fresh snapshot. Elements are matched by
their ``id`` attribute unless a ``key`` callable is supplied.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from operator import attrgetter
from typing import TypeVar

from catalog_curator.exceptions import NotFoundError

T = TypeVar("T")

_by_id: Callable[[object], Hashable] = attrgetter("id")


def index_of(
    items: Sequence[T],
    item_id: Hashable,
    *,
    key: Callable[[T], Hashable] = _by_id,
) -> int:
    """Return the position of *item_id* in *items*.

    Raises
    ------
    NotFoundError
        If no element carries *item_id*.
    """
    for index, item in enumerate(items):
        if key(item) == item_id:
            return index
    raise NotFoundError(item_id)


def move_by_id(
    items: Sequence[T],
    item_id: Hashable,
    target_index: int,
    *,
    key: Callable[[T], Hashable] = _by_id,
) -> tuple[T, ...]:
    """Move *item_id* so that it ends up at *target_index*.

    *target_index* is interpreted against the sequence after the element has
    been taken out, exactly like a remove-then-splice. Indices past the end
    append; negative indices count from the end as in ``list.insert``.
    """
    source = index_of(items, item_id, key=key)
    remaining = list(items)
    moved = remaining.pop(source)
    remaining.insert(target_index, moved)
    return tuple(remaining)


def insert_replacing(
    items: Sequence[T],
    item_id: Hashable,
    replacements: Iterable[T],
    *,
    key: Callable[[T], Hashable] = _by_id,
) -> tuple[T, ...]:
    """Replace *item_id* with zero or more *replacements*, kept in given order."""
    position = index_of(items, item_id, key=key)
    return (*items[:position], *replacements, *items[position + 1 :])


def remove_by_id(
    items: Sequence[T],
    item_id: Hashable,
    *,
    key: Callable[[T], Hashable] = _by_id,
) -> tuple[T, ...]:
    """Remove *item_id*, keeping the relative order of everything else."""
    return insert_replacing(items, item_id, (), key=key)


def upsert_by_id(
    items: Sequence[T],
    item: T,
    *,
    key: Callable[[T], Hashable] = _by_id,
) -> tuple[T, ...]:
    """Replace the element sharing *item*'s id in place, or append *item*."""
    try:
        return insert_replacing(items, key(item), (item,), key=key)
    except NotFoundError:
        return (*items, item)
