"""
Fatal discovery errors.

Unreadable tables and failed isolation tuning are recovered where they happen
and never reach this module.
"""

from typing import Optional


class DiscoveryError(Exception):
    """A scan aborted; `stage` names where."""

    def __init__(self, message: str, stage: str, database: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
        self.database = database

    def __str__(self) -> str:
        message = super().__str__()
        if self.database:
            return f"[{self.stage}] {self.database}: {message}"
        return f"[{self.stage}] {message}"


class ConnectionAcquisitionError(DiscoveryError, ConnectionError):
    """No connection could be obtained; nothing was enumerated."""

    def __init__(self, message: str, database: Optional[str] = None):
        super().__init__(message, stage="connect", database=database)


class MetadataReadError(DiscoveryError):
    """Executing or reading a schema/table listing failed."""
