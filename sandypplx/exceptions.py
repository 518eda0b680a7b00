"""Custom exceptions for the SandyPPLX search chat."""

from __future__ import annotations


class SandyError(Exception):
    """Base exception for SandyPPLX errors."""

    pass


class ConfigurationError(SandyError):
    """Raised when a required setting (API key, endpoint) is missing or invalid."""

    pass


class SearchFailure(SandyError):
    """Raised by search backends when the search collaborator fails.

    ``details`` carries the server-supplied explanation when one exists.
    """

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def display_message(self) -> str:
        return self.details or self.message


class ReformulationFailure(SandyError):
    """Raised when the text-generation collaborator fails during reformulation."""

    pass


class ChatStreamFailure(SandyError):
    """Raised when the answer stream fails mid-turn."""

    pass
