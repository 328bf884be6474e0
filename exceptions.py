# exceptions.py
"""
Custom exceptions for the Badminton App.

Ordinary rule violations (a locked court, a full court, a bad score) are not
exceptions: operations report them through OperationResult.rejected. The
classes below are for broken contracts and failed I/O.
"""


class BadmintonAppError(Exception):
    """Base exception for all application errors."""

    pass


class DatabaseError(BadmintonAppError):
    """Raised when a remote session store operation fails."""

    pass


class SessionError(BadmintonAppError):
    """Raised when a stored session snapshot cannot be read."""

    pass


class ValidationError(BadmintonAppError):
    """Raised when an operation receives structurally impossible input."""

    pass
