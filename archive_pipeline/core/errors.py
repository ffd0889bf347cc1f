"""
Error taxonomy of the Channel Archive Pipeline
"""

from pathlib import Path
from typing import List, Optional


class ArchiveError(Exception):
    """Base class for all archive pipeline errors."""
    pass


class SettingsError(ArchiveError):
    """Raised when the run settings file is invalid."""
    pass


class ConfigValidationError(ArchiveError):
    """Raised when a channel entry is missing required fields after inheritance."""

    def __init__(self, key: Optional[str], missing_fields: List[str], group: bool = False):
        self.key = key
        self.missing_fields = list(missing_fields)
        self.group = group
        kind = "Channel Group" if group else "Channel"
        plural = "s" if len(self.missing_fields) != 1 else ""
        super().__init__(
            f"{kind}: {key} configuration missing {len(self.missing_fields)} "
            f"required field{plural}: {', '.join(self.missing_fields)}"
        )


class DuplicateIdentifierError(ArchiveError):
    """Raised when a key or name collides with an already registered entry."""

    def __init__(self, kind: str, field: str, identifier: str):
        self.kind = kind
        self.field = field
        self.identifier = identifier
        super().__init__(f"A {kind} with the {field}: {identifier} has already been registered")


class StateIOError(ArchiveError):
    """Raised when a channel state file cannot be read or written."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class KeyStoreIOError(ArchiveError):
    """Raised when the key store cannot be read or written."""
    pass
