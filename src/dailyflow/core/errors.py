# src/dailyflow/core/errors.py

"""
Error hierarchy.

Store/registry lookups that miss are NOT errors (they are silent no-ops).
Everything that the user has to be told about derives from DailyFlowError.
"""

from __future__ import annotations


class DailyFlowError(Exception):
    """Base class for all user-facing failures."""


class ValidationError(DailyFlowError):
    """Input rejected before any state change."""


class TaskValidationError(ValidationError):
    """Form-level task input is invalid (empty name, bad HH:mm time...)."""


class DeviceValidationError(ValidationError):
    """Device label is empty or already present."""


class BackupImportError(ValidationError):
    """Backup text could not be turned into an import plan."""


class ParseError(BackupImportError):
    """Backup text is not valid JSON."""


class UnrecognizedFormatError(BackupImportError):
    """JSON is neither a legacy task array nor a versioned backup document."""


class InvalidTaskDataError(BackupImportError):
    """At least one imported element fails validation."""


class ExternalServiceError(DailyFlowError):
    """An external collaborator failed (opaque to the caller)."""


class SuggestionError(ExternalServiceError):
    """Task suggestion could not be produced."""
