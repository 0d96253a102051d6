"""Identifier codec for draggable rows.

Products and variants share one drag context, so every draggable row is
identified by a token carrying its kind::

    product:77
    variant:64

The raw id is percent-escaped before it is joined to the kind, which keeps
the ``:`` separator out of the raw part for any raw id (uuid strings, large
integers, or ids that themselves contain ``:``). Tokens of different kinds
therefore never collide, and ``decode(encode(kind, raw))`` always yields
``DragToken(kind, str(raw))``.

This module is the only place that builds or inspects token strings.
"""

from __future__ import annotations

import enum
from typing import Any
from urllib.parse import quote, unquote

from pydantic import BaseModel, ConfigDict

from catalog_curator.exceptions import MalformedTokenError

SEPARATOR = ":"


class DragKind(str, enum.Enum):
    """Kind of entity a drag token refers to."""

    PRODUCT = "product"
    VARIANT = "variant"


class DragToken(BaseModel):
    """Decoded drag token."""

    model_config = ConfigDict(frozen=True)

    kind: DragKind
    raw_id: str

    def refers_to(self, entity_id: Any) -> bool:
        """Return whether this token was encoded from *entity_id*.

        Only the text form is compared, so ``1`` and ``"1"`` both match.
        Catalogs reject ids that share a text form, which keeps the match
        unique within one catalog.
        """
        return self.raw_id == str(entity_id)


def encode(kind: DragKind, raw_id: Any) -> str:
    """Build the token string for *raw_id* of the given *kind*."""
    return f"{DragKind(kind).value}{SEPARATOR}{quote(str(raw_id), safe='')}"


def decode(token: Any) -> DragToken:
    """Parse a token produced by :func:`encode`.

    Raises
    ------
    MalformedTokenError
        If the token is not a string, has an unknown prefix, or carries an
        empty or unescaped raw part.
    """
    if not isinstance(token, str):
        raise MalformedTokenError(token, "not a string")

    prefix, separator, escaped = token.partition(SEPARATOR)
    if not separator:
        raise MalformedTokenError(token, "missing separator")
    try:
        kind = DragKind(prefix)
    except ValueError:
        raise MalformedTokenError(token, f"unknown kind {prefix!r}") from None
    if not escaped:
        raise MalformedTokenError(token, "empty raw id")
    if SEPARATOR in escaped:
        raise MalformedTokenError(token, "unescaped separator in raw id")

    return DragToken(kind=kind, raw_id=unquote(escaped))


def product_token(product_id: Any) -> str:
    return encode(DragKind.PRODUCT, product_id)


def variant_token(variant_id: Any) -> str:
    return encode(DragKind.VARIANT, variant_id)
