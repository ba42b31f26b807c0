"""Ariadna Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Context for debugging
"""

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Input/usage errors
        2xxx - Planning file errors
        3xxx - Configuration errors
        4xxx - Git errors
        5xxx - Runtime errors
    """

    # 1xxx - Input Errors
    ARGUMENT_MISSING = 1001
    ARGUMENT_INVALID = 1002
    INVALID_JSON = 1003
    UNKNOWN_SCHEMA = 1004
    UNKNOWN_TEMPLATE = 1005

    # 2xxx - Planning File Errors
    FILE_NOT_FOUND = 2001
    STATE_NOT_FOUND = 2002
    PHASE_NOT_FOUND = 2003
    ROADMAP_UNREADABLE = 2004
    FRONTMATTER_UNREADABLE = 2005
    FILE_UNREADABLE = 2006

    # 3xxx - Configuration Errors
    CONFIG_INVALID = 3001

    # 4xxx - Git Errors
    GIT_FAILED = 4001

    # 5xxx - Runtime Errors
    RUNTIME_FAILED = 5001

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "input",
            2: "planning",
            3: "config",
            4: "git",
            5: "runtime",
        }.get(prefix, "unknown")


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.ARGUMENT_MISSING: "{detail}",
    ErrorCode.ARGUMENT_INVALID: "{detail}",
    ErrorCode.INVALID_JSON: "Invalid JSON in {flag}",
    ErrorCode.UNKNOWN_SCHEMA: "Unknown schema: {schema}. Available: {available}",
    ErrorCode.UNKNOWN_TEMPLATE: "Unknown {kind} type: {name}. Available: {available}",
    ErrorCode.FILE_NOT_FOUND: "File not found: {path}",
    ErrorCode.STATE_NOT_FOUND: "STATE.md not found",
    ErrorCode.PHASE_NOT_FOUND: "Phase {phase} directory not found",
    ErrorCode.ROADMAP_UNREADABLE: "Failed to read ROADMAP.md: {detail}",
    ErrorCode.FRONTMATTER_UNREADABLE: "Cannot parse frontmatter in {path}; fix it by hand before editing",
    ErrorCode.FILE_UNREADABLE: "Cannot read {path}: {detail}",
    ErrorCode.CONFIG_INVALID: "Failed to read config.json: {detail}",
    ErrorCode.GIT_FAILED: "git {command} failed: {detail}",
    ErrorCode.RUNTIME_FAILED: "{detail}",
}


class AriadnaError(Exception):
    """Structured error raised by planning operations.

    Operations raise this for usage errors (missing arguments, unknown
    schemas, unreadable files). Soft outcomes such as "phase not found" are
    returned as result payloads instead, because workflows branch on them.

    Example:
        >>> raise AriadnaError(ErrorCode.FILE_NOT_FOUND, {"path": "x.md"})
        AriadnaError: File not found: x.md
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def category(self) -> str:
        """Get the error category."""
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'AR-2001')."""
        return f"AR-{self.code.value}"

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"AriadnaError(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging and JSON error output."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "context": self.context,
        }


# Convenience factory functions

def usage_error(detail: str) -> AriadnaError:
    """Create an ARGUMENT_MISSING error with a plain message."""
    return AriadnaError(ErrorCode.ARGUMENT_MISSING, {"detail": detail})


def file_not_found(path: str, cause: Exception | None = None) -> AriadnaError:
    """Create a FILE_NOT_FOUND error."""
    return AriadnaError(ErrorCode.FILE_NOT_FOUND, {"path": path}, cause=cause)


def file_unreadable(path: str, cause: Exception) -> AriadnaError:
    """Create a FILE_UNREADABLE error (for example a file that is not UTF-8 text)."""
    return AriadnaError(ErrorCode.FILE_UNREADABLE, {"path": path, "detail": str(cause)}, cause=cause)
