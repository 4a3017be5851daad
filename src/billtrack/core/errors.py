#!/usr/bin/env python3
"""
BillTrack Exceptions

Extraction misses are never errors (they resolve to NOT_FOUND). Everything
below represents a remote call or precondition that failed.
"""

from enum import Enum


class BillTrackError(Exception):
    """Base class for all BillTrack errors."""


class UnauthorizedError(BillTrackError):
    """No authenticated caller identity was supplied."""


class EntityNotFoundError(BillTrackError):
    """The caller identity does not map to a known entity."""


class MessageSourceError(BillTrackError):
    """A message listing or message fetch call failed."""


class CrawlInProgressError(BillTrackError):
    """A page fetch was requested while another fetch is still running."""


class ExportError(BillTrackError):
    """Bulk export aborted; nothing was written."""


class WarehouseErrorKind(Enum):
    """Failure categories reported by the analytical store."""

    CONFLICT = "conflict"  # another training job holds the model
    QUERY = "query"
    INSERT = "insert"
    TRAINING = "training"
    PREDICTION = "prediction"


class WarehouseError(BillTrackError):
    """Analytical store failure tagged with a structured kind."""

    def __init__(self, message: str, kind: WarehouseErrorKind = WarehouseErrorKind.QUERY):
        super().__init__(message)
        self.kind = kind

    @property
    def is_conflict(self) -> bool:
        return self.kind is WarehouseErrorKind.CONFLICT
