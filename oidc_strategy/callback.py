"""Validation of the provider's callback, before any network or cryptographic work."""

import logging

from .config.const import RESPONSE_TYPE_ID_TOKEN
from .config.options import OIDCOptions
from .errors import (
    CsrfError,
    MissingCodeError,
    MissingIdTokenError,
    ProviderCallbackError,
)
from .state import StateNonceManager
from .types import CallbackParams

_LOGGER = logging.getLogger(__name__)


class CallbackValidator:
    """Checks one callback, in order: provider error, state, response type parameter.

    Idle -> Failed[error] when the provider sent an error,
    Idle -> Failed[csrf] when the state does not match,
    Idle -> Failed[missing_code|missing_id_token] when the response parameter is absent,
    Idle -> Validated otherwise.
    """

    def __init__(self, options: OIDCOptions, state_manager: StateNonceManager):
        self.options = options
        self.state_manager = state_manager

    def validate(self, params: CallbackParams) -> CallbackParams:
        """Returns the params when valid, raises a CallbackError subclass otherwise."""
        error = params.error or params.error_reason or params.error_description
        # Consumed before any outcome, so a captured callback cannot be replayed
        valid_state = self.state_manager.check_state(params.state)

        if error:
            _LOGGER.warning(
                "Provider returned an error on callback: %s (%s)",
                params.error,
                params.error_description or params.error_reason,
            )
            raise ProviderCallbackError(
                params.error_description or params.error_reason,
                error=params.error or params.error_reason,
                uri=params.error_uri,
            )

        if not valid_state:
            raise CsrfError("Invalid 'state' parameter")

        response_type = self.options.response_type
        if params.get(response_type) is None:
            _LOGGER.warning("Callback is missing the '%s' parameter", response_type)
            if response_type == RESPONSE_TYPE_ID_TOKEN:
                raise MissingIdTokenError(params.error)
            raise MissingCodeError(params.error)

        return params
