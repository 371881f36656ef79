"""Errors raised while building and tracking a sync checklist."""

from __future__ import annotations


class PortsyncError(Exception):
    """Base class for portsync failures."""


class RangeResolutionError(PortsyncError):
    """A base or head revision could not be resolved. No inventory is produced."""

    def __init__(self, revision: str, reason: str = ""):
        self.revision = revision
        self.reason = reason
        message = f"Could not resolve revision '{revision}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EmptyRangeWarning(UserWarning):
    """No files changed in the requested range."""


class AmbiguousClassification(PortsyncError):
    """A change touches both excluded and in-scope logic.

    Only the operator may decide the verdict for such a file.
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ChecklistError(PortsyncError):
    """An operation on the checklist would break one of its invariants."""


class ConfigError(PortsyncError):
    """The sync configuration is malformed."""
