"""Custom exceptions for Stackport.

Exception Hierarchy:
    StackportError (base)
        ├── ProjectRootError   (fatal: marker missing / not run from root)
        ├── ConfigError        (config file unreadable or invalid)
        ├── ManifestError      (backup manifest missing or invalid)
        └── RestoreError       (hard failure while restoring a backup)

External command failures are reported as ``SubprocessError`` from
``stackport.helpers.ui_utils``.
"""

from pathlib import Path


class StackportError(Exception):
    """Base exception for all Stackport errors."""


class ProjectRootError(StackportError):
    """The project root could not be located, or the tool was not run from it."""

    def __init__(self, marker: str, start: Path, reason: str = ""):
        self.marker = marker
        self.start = Path(start)
        msg = reason or f"No '{marker}' found in {self.start} or any parent directory"
        super().__init__(msg)


class ConfigError(StackportError):
    """Configuration file could not be parsed or failed validation."""


class ManifestError(StackportError):
    """Backup manifest is missing or does not match the schema."""


class RestoreError(StackportError):
    """A restore step failed; the remaining steps are not attempted."""

    def __init__(self, step: str, name: str, reason: str):
        self.step = step
        self.name = name
        self.reason = reason
        super().__init__(f"{step} failed for {name}: {reason}")
