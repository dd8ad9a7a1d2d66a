"""Exceptions raised by the ingestion engine.

Per-record problems (dropped keys, catalog misses, failed writes) are reported as
typed outcomes and counted by the run loop. Only conditions that make the rest
of a run pointless are raised.
"""

from __future__ import annotations


class VendorSyncError(RuntimeError):
    """Base class for ingestion errors."""


class FatalIngestionError(VendorSyncError):
    """Raised when a run cannot continue; the checkpoint is kept for a resume."""


class VendorAuthError(FatalIngestionError):
    """Raised when a vendor rejects our credentials (HTTP 401/403 or token failure)."""


class SourceUnreachableError(FatalIngestionError):
    """Raised when a source keeps failing after the transport exhausted its retries."""


class PersistenceError(VendorSyncError):
    """Raised by store adapters when a read or write fails."""


class CheckpointError(VendorSyncError):
    """Raised when a cursor would move backwards or cannot be stored."""
