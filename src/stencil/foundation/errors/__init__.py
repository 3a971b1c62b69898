"""Error system for Stencil."""

from stencil.foundation.errors.errors import (
    ERROR_MESSAGES,
    RECOVERY_HINTS,
    ConfigError,
    ErrorCode,
    FileSystemError,
    ManifestError,
    NotFoundError,
    OperationSkippedError,
    PipelineError,
    SpawnError,
    StencilError,
    ValidationError,
    filesystem_error,
    not_found,
)

__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "RECOVERY_HINTS",
    "StencilError",
    "ConfigError",
    "FileSystemError",
    "ManifestError",
    "NotFoundError",
    "OperationSkippedError",
    "PipelineError",
    "SpawnError",
    "ValidationError",
    "filesystem_error",
    "not_found",
]
