"""Error kinds raised by the curator's pure operations.

Every one of them is recoverable: the owning store logs it and keeps its
prior snapshot.
"""

from __future__ import annotations

from typing import Any


class CuratorError(Exception):
    """Base class for curator errors."""


class NotFoundError(CuratorError):
    """An operation referenced an id that is no longer present."""

    def __init__(self, item_id: Any, where: str = "sequence") -> None:
        super().__init__(f"{item_id!r} not found in {where}")
        self.item_id = item_id
        self.where = where


class MalformedTokenError(CuratorError):
    """A drag token could not be decoded."""

    def __init__(self, token: Any, reason: str) -> None:
        super().__init__(f"Malformed drag token {token!r}: {reason}")
        self.token = token
        self.reason = reason


class FetchFailedError(CuratorError):
    """The catalog-fetch collaborator failed to return a page."""
