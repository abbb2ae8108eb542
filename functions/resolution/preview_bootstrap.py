"""
Preview session bootstrap.

    pending -> validating -> exchanging -> ready
    pending -> validating -> rejected        (missing/malformed/expired/wrong mode)
    pending -> validating -> exchanging -> rejected   (exchange failed)

ready and rejected are terminal. There is no retry here; a caller that
wants one starts a new bootstrap.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from shared.constants import REJECT_EXCHANGE_FAILED
from shared.errors import ExchangeError

from .exchange_client import ExchangeResult, exchange_preview_token
from .preview_token import TokenRejection, validate_preview_token

logger = logging.getLogger(__name__)

Exchange = Callable[[str], Awaitable[ExchangeResult]]


class BootstrapState(Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    EXCHANGING = "exchanging"
    READY = "ready"
    REJECTED = "rejected"


_TRANSITIONS = {
    BootstrapState.PENDING: {BootstrapState.VALIDATING},
    BootstrapState.VALIDATING: {BootstrapState.EXCHANGING, BootstrapState.REJECTED},
    BootstrapState.EXCHANGING: {BootstrapState.READY, BootstrapState.REJECTED},
    BootstrapState.READY: set(),
    BootstrapState.REJECTED: set(),
}


class InvalidTransitionError(Exception):
    """Raised on a state change the bootstrap does not allow."""


@dataclass
class PreviewBootstrap:
    token: Optional[str]
    state: BootstrapState = BootstrapState.PENDING
    history: list = field(default_factory=lambda: [BootstrapState.PENDING])
    reason: Optional[str] = None
    message: Optional[str] = None
    session_id: Optional[str] = None
    campaign_id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (BootstrapState.READY, BootstrapState.REJECTED)

    def _transition(self, new_state: BootstrapState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def _reject(self, reason: str, message: str) -> "PreviewBootstrap":
        self.reason = reason
        self.message = message
        self._transition(BootstrapState.REJECTED)
        logger.info(f"Preview bootstrap rejected: {reason}", extra={"reason": reason})
        return self

    async def run(
        self,
        exchange: Optional[Exchange] = None,
        now: Optional[float] = None,
    ) -> "PreviewBootstrap":
        """
        Drive the bootstrap to a terminal state.

        Args:
            exchange: Async token -> ExchangeResult callable
                (defaults to the HTTP exchange client)
            now: Epoch seconds for the expiry check (defaults to time.time())

        Returns:
            self, in state READY or REJECTED
        """
        exchange = exchange or exchange_preview_token

        self._transition(BootstrapState.VALIDATING)
        checked = validate_preview_token(self.token, now=now)
        if isinstance(checked, TokenRejection):
            return self._reject(checked.reason, checked.message)

        self._transition(BootstrapState.EXCHANGING)
        try:
            result = await exchange(self.token)
        except ExchangeError as e:
            return self._reject(REJECT_EXCHANGE_FAILED, e.message)
        except Exception as e:
            logger.exception("Unexpected error during preview token exchange")
            return self._reject(REJECT_EXCHANGE_FAILED, f"Failed to start test session: {e}")

        self.session_id = result.session_id
        self.campaign_id = result.campaign_id
        self._transition(BootstrapState.READY)
        logger.info(
            "Preview session ready",
            extra={"campaign_id": self.campaign_id, "session_id": self.session_id},
        )
        return self
