"""In-memory key-value store adapter.

This adapter implements KeyValuePort for tests and single-process local
development. State lives only as long as the instance does.
"""

from threading import Lock

from streamqa.core.ports.storage import NotAnIntegerError


class InMemoryKeyValueStore:
    """Dict-backed storage - suitable for tests and single-process deployments."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = Lock()

    def get(self, key: str) -> str | None:
        """Get value by key."""
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        with self._lock:
            self._data[key] = value

    def incr(self, key: str, amount: int = 1) -> int:
        """Atomically increment an integer value."""
        with self._lock:
            current = self._data.get(key, "0")
            try:
                new_value = int(current) + amount
            except ValueError:
                raise NotAnIntegerError(key) from None
            self._data[key] = str(new_value)
            return new_value

    def scan(self, prefix: str) -> list[str]:
        """List keys with prefix."""
        with self._lock:
            return [k for k in self._data if k.startswith(prefix)]
