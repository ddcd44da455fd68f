"""Connection state of the messaging channel."""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ChannelStatus(str, enum.Enum):
    DISCONNECTED = "disconnected"
    AWAITING_PAIRING = "awaiting_pairing"
    READY = "ready"


Listener = Callable[[ChannelStatus], None]


class ChannelState:
    """Tracks whether the channel can send, and notifies subscribers on change.

    Senders consult :attr:`is_ready` before delivering; nothing else in
    the OTP flow looks at the state.
    """

    def __init__(self) -> None:
        self._status = ChannelStatus.DISCONNECTED
        self._pairing_code: str | None = None
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    @property
    def status(self) -> ChannelStatus:
        return self._status

    @property
    def is_ready(self) -> bool:
        return self._status is ChannelStatus.READY

    @property
    def pairing_code(self) -> str | None:
        """Payload to show the operator while pairing (e.g. a QR string)."""
        return self._pairing_code

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def await_pairing(self, pairing_code: str | None = None) -> None:
        self._transition(ChannelStatus.AWAITING_PAIRING, pairing_code)

    def mark_ready(self) -> None:
        self._transition(ChannelStatus.READY)

    def disconnect(self) -> None:
        self._transition(ChannelStatus.DISCONNECTED)

    def _transition(self, status: ChannelStatus, pairing_code: str | None = None) -> None:
        with self._lock:
            changed = status is not self._status
            self._status = status
            self._pairing_code = pairing_code
            listeners = list(self._listeners)
        if not changed:
            return
        logger.info("Channel state → %s", status.value)
        for listener in listeners:
            try:
                listener(status)
            except Exception:
                logger.exception("Channel state listener %r failed", listener)
