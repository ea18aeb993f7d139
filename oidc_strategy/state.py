"""Opaque anti-CSRF state and anti-replay nonce values, kept in the session until consumed."""

import hmac
import logging
from typing import Any, Mapping, Optional

from .config.const import SESSION_NONCE, SESSION_STATE
from .config.options import StateGenerator
from .stores.session_store import FlowSession
from .tools.helpers import generate_random_hex

_LOGGER = logging.getLogger(__name__)

RANDOM_BYTES = 16


class StateNonceManager:
    """Generates and validates the state and nonce of one flow."""

    def __init__(
        self,
        session: FlowSession,
        state_generator: Optional[StateGenerator] = None,
        require_state: bool = True,
    ):
        self.session = session
        self.state_generator = state_generator
        self.require_state = require_state

    def new_state(self, env: Optional[Mapping[str, Any]] = None) -> str:
        """Generates the state, falling back to a random value, and stores it."""
        state = None
        if self.state_generator is not None:
            state = self.state_generator(env)
        if not state:
            state = generate_random_hex(RANDOM_BYTES)

        return self.session.put(SESSION_STATE, str(state))

    def new_nonce(self) -> str:
        """Generates a random nonce and stores it."""
        return self.session.put(SESSION_NONCE, generate_random_hex(RANDOM_BYTES))

    def stored_state(self) -> Optional[str]:
        return self.session.take_once(SESSION_STATE)

    def stored_nonce(self) -> Optional[str]:
        return self.session.take_once(SESSION_NONCE)

    def check_state(self, received: Optional[str]) -> bool:
        """Consumes the stored state and compares it with the received one.

        The state is invalid when it is empty while required, or when it
        differs from the stored state (a missing stored state counts as a
        difference unless both are absent).
        """
        stored = self.stored_state()

        invalid_state = (self.require_state and not received) or not _equal(
            received, stored
        )
        if invalid_state:
            _LOGGER.warning(
                "State mismatch on callback (received: %s, stored: %s)",
                "present" if received else "missing",
                "present" if stored else "missing",
            )
        return not invalid_state


def _equal(received: Optional[str], stored: Optional[str]) -> bool:
    if received is None or stored is None:
        return received is None and stored is None
    return hmac.compare_digest(received.encode("utf-8"), stored.encode("utf-8"))
