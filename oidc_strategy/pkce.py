"""PKCE (RFC 7636) verifier generation, challenge derivation and verifier storage."""

import hashlib
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config.const import DEFAULT_CODE_CHALLENGE_METHOD, SESSION_PKCE_VERIFIER
from .stores.session_store import FlowSession
from .tools.helpers import base64url_encode, generate_random_hex

_LOGGER = logging.getLogger(__name__)

VERIFIER_BYTES = 64


def s256_code_challenge(verifier: str) -> str:
    """RFC 7636 Appendix A: BASE64URL(SHA256(ASCII(code_verifier))), no padding."""
    return base64url_encode(hashlib.sha256(verifier.encode("ascii")).digest())


@dataclass(frozen=True)
class PKCEOptions:
    """How the code challenge is derived from the verifier."""

    code_challenge: Callable[[str], str] = s256_code_challenge
    code_challenge_method: str = DEFAULT_CODE_CHALLENGE_METHOD


class PKCEManager:
    """Generates one verifier per flow, derives its challenge and hands it back once."""

    def __init__(
        self,
        session: FlowSession,
        verifier_generator: Optional[Callable[[], str]] = None,
        options: PKCEOptions = PKCEOptions(),
    ):
        self.session = session
        self.verifier_generator = verifier_generator
        self.options = options

    def new_verifier(self) -> str:
        """Creates a verifier and stores it in the session."""
        verifier = None
        if self.verifier_generator is not None:
            verifier = self.verifier_generator()
        if not verifier:
            verifier = generate_random_hex(VERIFIER_BYTES)

        self.session.put(SESSION_PKCE_VERIFIER, verifier)
        return verifier

    def authorize_params(self, verifier: str) -> dict[str, str]:
        """Returns the challenge parameters for the authorization request."""
        return {
            "code_challenge": self.options.code_challenge(verifier),
            "code_challenge_method": self.options.code_challenge_method,
        }

    def start(self) -> dict[str, str]:
        """Creates and stores a new verifier, returning only its challenge parameters."""
        return self.authorize_params(self.new_verifier())

    def take_verifier(self, explicit: Optional[str] = None) -> Optional[str]:
        """Consumes the stored verifier; an explicitly supplied verifier wins."""
        stored = self.session.take_once(SESSION_PKCE_VERIFIER)
        if explicit:
            return explicit
        if stored is None:
            _LOGGER.warning("No PKCE code verifier found in session for this flow")
        return stored
