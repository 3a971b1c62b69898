"""Stencil Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Recovery hints for operators
- Context for debugging

Every pipeline failure is one of the typed subclasses below, so callers can
branch on the failure kind without parsing messages.
"""


from enum import IntEnum
from pathlib import Path
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Validation errors
        2xxx - Project/filesystem errors
        3xxx - Manifest errors
        4xxx - Build pipeline errors
        5xxx - Configuration errors
        6xxx - Queue errors
    """

    # 1xxx - Validation Errors
    INVALID_NAME = 1001
    INVALID_CONTENT = 1002
    INVALID_REQUEST = 1003

    # 2xxx - Project/Filesystem Errors
    FILE_NOT_FOUND = 2001
    TEMPLATE_NOT_FOUND = 2002
    FILE_WRITE_FAILED = 2003
    FILE_PERMISSION_DENIED = 2004

    # 3xxx - Manifest Errors
    MANIFEST_INVALID = 3001

    # 4xxx - Build Pipeline Errors
    TOOL_SPAWN_FAILED = 4001
    TOOL_EXIT_NONZERO = 4002
    TOOL_TIMEOUT = 4003

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5001

    # 6xxx - Queue Errors
    OPERATION_SKIPPED = 6001

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "validation",
            2: "io",
            3: "manifest",
            4: "pipeline",
            5: "config",
            6: "queue",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether retrying the request could succeed without operator action."""
        non_recoverable = {
            ErrorCode.INVALID_NAME,
            ErrorCode.INVALID_CONTENT,
            ErrorCode.INVALID_REQUEST,
            ErrorCode.TEMPLATE_NOT_FOUND,
            ErrorCode.CONFIG_INVALID,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_NAME: "Invalid template name: {detail}",
    ErrorCode.INVALID_CONTENT: "Invalid {field} content: {detail}",
    ErrorCode.INVALID_REQUEST: "Invalid request body: {detail}",
    ErrorCode.FILE_NOT_FOUND: "{file} not found in the specified template directory: {path}",
    ErrorCode.TEMPLATE_NOT_FOUND: "Template directory not found: {path}",
    ErrorCode.FILE_WRITE_FAILED: "File system error occurred for template {name}: {detail}",
    ErrorCode.FILE_PERMISSION_DENIED: "Permission denied for template {name}: {path}",
    ErrorCode.MANIFEST_INVALID: "Manifest for template {name} is not valid JSON: {detail}",
    ErrorCode.TOOL_SPAWN_FAILED: "Could not start '{command}': {detail}",
    ErrorCode.TOOL_EXIT_NONZERO: "{command} exited with code {exit_code}",
    ErrorCode.TOOL_TIMEOUT: "{command} timed out after {timeout}s",
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.OPERATION_SKIPPED: "Skipped operation for template {name}: an earlier queued operation failed",
}


# Recovery hints surfaced in CLI output and API error bodies
RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.INVALID_NAME: [
        "Use a non-empty name without '/' or '\\'",
    ],
    ErrorCode.INVALID_CONTENT: [
        "Send file content as UTF-8 text",
    ],
    ErrorCode.FILE_NOT_FOUND: [
        "Create the template first with POST /create/template",
    ],
    ErrorCode.TEMPLATE_NOT_FOUND: [
        "Set paths.template_dir in .stencil/config.yaml",
        "Export STENCIL_PATHS_TEMPLATE_DIR=<dir>",
    ],
    ErrorCode.TOOL_SPAWN_FAILED: [
        "Check that '{tool}' is installed and on PATH",
        "Set build.tool in .stencil/config.yaml",
    ],
    ErrorCode.TOOL_TIMEOUT: [
        "Raise build.timeout or unset it to wait indefinitely",
    ],
}


class StencilError(Exception):
    """Base error type for all Stencil errors.

    Provides structured error information for:
    - Programmatic error handling (code)
    - User-friendly display (message)
    - Operator guidance (recovery_hints)
    - Debugging (context, cause)

    Example:
        >>> err = StencilError(
        ...     code=ErrorCode.TOOL_EXIT_NONZERO,
        ...     context={"command": "pnpm build", "exit_code": 1},
        ... )
        >>> print(err)
        [ST-4002] pnpm build exited with code 1
    """

    default_code: ErrorCode = ErrorCode.FILE_WRITE_FAILED

    def __init__(
        self,
        code: ErrorCode | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code if code is not None else self.default_code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            # Fallback if context doesn't have all keys
            return template

    @property
    def recovery_hints(self) -> list[str]:
        """Get recovery suggestions for this error."""
        formatted = []
        for hint in RECOVERY_HINTS.get(self.code, []):
            try:
                formatted.append(hint.format(**self.context))
            except KeyError:
                formatted.append(hint)
        return formatted

    @property
    def is_recoverable(self) -> bool:
        """Whether this error is typically recoverable."""
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        """Get the error category."""
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'ST-4002')."""
        return f"ST-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/API responses."""
        return {
            "error": self.message,
            "code": self.error_id,
            "category": self.category,
            "recoverable": self.is_recoverable,
            "recovery_hints": self.recovery_hints,
        }


class ValidationError(StencilError):
    """Request rejected before it reaches the queue."""

    default_code = ErrorCode.INVALID_NAME


class NotFoundError(StencilError):
    """A file the operation requires does not exist."""

    default_code = ErrorCode.FILE_NOT_FOUND


class ManifestError(StencilError):
    """Package manifest exists but cannot be parsed."""

    default_code = ErrorCode.MANIFEST_INVALID


class SpawnError(StencilError):
    """The external tool could not be started."""

    default_code = ErrorCode.TOOL_SPAWN_FAILED


class PipelineError(StencilError):
    """The external tool ran but did not exit cleanly."""

    default_code = ErrorCode.TOOL_EXIT_NONZERO

    @property
    def exit_code(self) -> int | None:
        """Process exit code, or None when the process was killed on timeout."""
        return self.context.get("exit_code")

    @property
    def timed_out(self) -> bool:
        return self.code == ErrorCode.TOOL_TIMEOUT


class FileSystemError(StencilError):
    """Catch-all for I/O failures that are not a missing file."""

    default_code = ErrorCode.FILE_WRITE_FAILED


class OperationSkippedError(StencilError):
    """Operation not run because an earlier one in its chain failed."""

    default_code = ErrorCode.OPERATION_SKIPPED


class ConfigError(StencilError):
    """Configuration value cannot be used."""

    default_code = ErrorCode.CONFIG_INVALID


# Convenience factory functions

def not_found(name: str, path: str, file: str | None = None) -> NotFoundError:
    """Create a NotFoundError for a missing project file."""
    return NotFoundError(
        context={"name": name, "path": path, "file": file or Path(path).name},
    )


def filesystem_error(name: str, path: str, exc: OSError) -> StencilError:
    """Translate an OSError raised while touching a project tree."""
    if isinstance(exc, FileNotFoundError):
        return not_found(name, path)
    if isinstance(exc, PermissionError):
        return FileSystemError(
            code=ErrorCode.FILE_PERMISSION_DENIED,
            context={"name": name, "path": path, "detail": str(exc)},
            cause=exc,
        )
    return FileSystemError(
        context={"name": name, "path": path, "detail": exc.strerror or str(exc)},
        cause=exc,
    )
