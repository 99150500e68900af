from __future__ import annotations

from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """
    Abstraction over the client-side persisted key-value medium.

    Implementations are responsible for:
    - Storing opaque string values under string keys.
    - Hiding any SQL / driver details from the application layer.
    """

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under `key`, or None if there is none."""

        ...

    def set(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value wholesale."""

        ...

    def delete(self, key: str) -> None:
        """Remove `key`. Removing a missing key is not an error."""

        ...
