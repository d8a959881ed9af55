"""
Key-value storage port.

Protocol-based interface for the persistence backend behind guest payment
records. Implementations: in-memory (tests, local dev) and SQLite.

Key requirements:
- Values are opaque strings (callers serialise JSON)
- incr() is atomic with respect to other calls on the same store
- scan() returns keys only; callers fetch values they need
"""

from __future__ import annotations

from typing import Protocol


class KeyValuePort(Protocol):
    """
    Key-value storage port interface.

    Mirrors the subset of a Redis-style store that the credit engine needs.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any existing value."""
        ...

    def incr(self, key: str, amount: int = 1) -> int:
        """
        Atomically add amount to an integer value.

        Missing keys start at zero.

        Returns:
            The value after the increment

        Raises:
            StorageError: If the existing value is not an integer
        """
        ...

    def scan(self, prefix: str) -> list[str]:
        """Return all keys that start with prefix."""
        ...


class StorageError(Exception):
    """Base class for storage errors."""


class NotAnIntegerError(StorageError):
    """Raised when incr() targets a non-integer value."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Value at key is not an integer: {key}")
