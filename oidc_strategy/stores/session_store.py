"""Session store, holds the state, nonce and PKCE verifier of one flow between request and callback."""

from collections.abc import MutableMapping
from typing import Optional


class FlowSession:
    """Typed view on the caller's session storage.

    Values are written during the request phase and read back with
    `take_once` during the callback phase, which deletes them: a second
    read of the same key yields None.
    """

    def __init__(self, session: Optional[MutableMapping] = None) -> None:
        """Wrap the given session mapping, or a fresh dict when there is none."""
        self._data: MutableMapping = session if session is not None else {}

    def put(self, key: str, value: str) -> str:
        """Store a value, replacing any previous value for the key."""
        self._data[key] = value
        return value

    def peek(self, key: str) -> Optional[str]:
        """Read a value without consuming it."""
        return self._data.get(key)

    def take_once(self, key: str) -> Optional[str]:
        """Read and delete a value. Absent values are returned as None."""
        return self._data.pop(key, None)
