"""Application-level exception types for shellmate."""

from __future__ import annotations


class ShellmateError(Exception):
    """Base exception for shellmate."""


class ConfigurationError(ShellmateError):
    """Raised when settings or the config home cannot be used."""


class AssistantUnavailableError(ShellmateError):
    """Raised when an AI feature is requested but the assistant CLI is missing."""


class BuiltinError(ShellmateError):
    """Raised by builtin handlers (cd, export, unset, source) on bad input."""
