"""Exception hierarchy for discdump.

Every error raised on purpose by the package derives from ``DiscDumpError``
so callers can catch the whole family with one clause.
"""

from __future__ import annotations
from typing import Optional, Any


# ============================================================================
# BASE EXCEPTIONS
# ============================================================================

class DiscDumpError(Exception):
    """Base exception for every discdump error."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# ============================================================================
# CONFIGURATION & VALIDATION ERRORS
# ============================================================================

class ConfigurationError(DiscDumpError):
    """Invalid or unreadable configuration."""
    pass


class ValidationError(DiscDumpError):
    """A value failed a declared constraint."""
    pass


# ============================================================================
# PARAMETER ENGINE ERRORS
# ============================================================================

class ParameterError(DiscDumpError):
    """Base error for building or reading tool command lines."""
    pass


class SerializationError(ParameterError):
    """The parameter state cannot be rendered as a valid command line."""

    def __init__(self, reason: str, flag: Optional[str] = None):
        details = {"flag": flag} if flag else None
        super().__init__(f"Cannot build command line: {reason}", details)
        self.reason = reason
        self.flag = flag


class ParseError(ParameterError):
    """A command line violates the positional grammar of its tool."""

    def __init__(self, reason: str, token: Optional[str] = None):
        details = {"token": token} if token is not None else None
        super().__init__(f"Cannot parse command line: {reason}", details)
        self.reason = reason
        self.token = token


# ============================================================================
# EXTRACTION ERRORS
# ============================================================================

class ExtractionError(DiscDumpError):
    """A log file did not have the expected layout.

    Raised inside extractors only; the extractor boundary converts it to a
    not-found result.
    """

    def __init__(self, path: str, reason: str = ""):
        msg = f"Failed to extract data from {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, {"path": path, "reason": reason})
        self.path = path


# ============================================================================
# DISPATCH ERRORS
# ============================================================================

class UnsupportedProgramError(DiscDumpError):
    """No grammar is registered for the dumping program."""

    def __init__(self, program: str):
        super().__init__(f"Unsupported dumping program: {program}", {"program": program})
        self.program = program


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def format_exception_chain(exc: BaseException, include_traceback: bool = False) -> str:
    """Format an exception together with its chain of causes.

    Args:
        exc: Exception to format
        include_traceback: Whether to include the full traceback

    Returns:
        The exception and its causes joined with arrows
    """
    import traceback

    if include_traceback:
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    messages = []
    current: BaseException | None = exc
    while current is not None:
        if isinstance(current, DiscDumpError):
            messages.append(str(current))
        else:
            messages.append(f"{type(current).__name__}: {current}")
        current = current.__cause__

    return " -> ".join(messages)
