from __future__ import annotations
from typing import Optional


class GippyError(Exception):
    """Base class for every error the CLI reports to the user."""


class MissingCredential(GippyError):
    def __init__(self) -> None:
        super().__init__("No API key found.")


class ThreadNotFound(GippyError):
    def __init__(self, thread_id: str) -> None:
        super().__init__(f"No thread found with ID {thread_id}.")


class ThreadDecodeError(GippyError):
    """A thread file exists but does not hold a valid thread record."""

    def __init__(self, thread_id: str, reason: str) -> None:
        super().__init__(f"Failed to load thread [{thread_id}]: {reason}")
        self.reason = reason


class ConfigNotFound(GippyError):
    pass


class ConfigDecodeError(GippyError):
    pass


class StoreWriteError(GippyError):
    pass


class TransportError(GippyError):
    """The chat completions call failed before a usable response arrived."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
