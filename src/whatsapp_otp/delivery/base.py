"""Base sender — abstract interface every delivery channel must implement."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class DeliveryReceipt:
    """Value object returned by a sender after a message was accepted."""

    identity: str
    message_id: str | None = None


class MessageSender(ABC):
    """Abstract base class for outbound message channels.

    A sender receives the recipient identity (a phone number), the
    rendered text and an optional image URL.  Any failure, including
    the channel not being ready yet, is raised as ``DeliveryError``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable channel name (used in logs)."""

    @abstractmethod
    async def send(
        self,
        identity: str,
        message: str,
        media_url: str | None = None,
    ) -> DeliveryReceipt:
        """Deliver *message* to *identity*.

        Parameters
        ----------
        identity:
            Recipient phone number.
        message:
            Text body, or the image caption when *media_url* is given.
        media_url:
            Optional public image URL sent alongside the text.
        """
