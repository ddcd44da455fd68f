"""WhatsApp Cloud API sender — delivers OTP messages over the Graph API."""

from __future__ import annotations

import logging

import httpx

from whatsapp_otp.delivery.base import DeliveryReceipt, MessageSender
from whatsapp_otp.delivery.channel_state import ChannelState
from whatsapp_otp.exceptions import DeliveryError

logger = logging.getLogger(__name__)


class WhatsAppCloudSender(MessageSender):
    """Async HTTP wrapper around the WhatsApp Cloud ``/messages`` endpoint."""

    def __init__(
        self,
        channel: ChannelState,
        api_token: str,
        phone_number_id: str,
        base_url: str = "https://graph.facebook.com/v21.0",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._channel = channel
        self._api_token = api_token
        self._phone_number_id = phone_number_id
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "WhatsAppCloud"

    @property
    def channel(self) -> ChannelState:
        return self._channel

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"Authorization": f"Bearer {self._api_token}"},
            timeout=self._timeout,
            transport=self._transport,
        )

    # ── Connection ───────────────────────────────────────

    async def connect(self) -> bool:
        """Check the credentials and move the channel to ``READY`` on success.

        Returns ``True`` when the channel is ready afterwards.
        """
        if not self._api_token or not self._phone_number_id:
            logger.warning(
                "WHATSAPP_API_TOKEN / WHATSAPP_PHONE_NUMBER_ID not set — channel stays disconnected"
            )
            self._channel.disconnect()
            return False

        self._channel.await_pairing()
        url = f"{self._base_url}/{self._phone_number_id}"
        try:
            async with self._client() as client:
                resp = await client.get(url)
        except httpx.HTTPError as exc:
            logger.exception("WhatsApp connect request error: %s", exc)
            self._channel.disconnect()
            return False

        if resp.status_code == 200:
            self._channel.mark_ready()
            return True
        logger.error("WhatsApp connect failed: %s %s", resp.status_code, resp.text)
        self._channel.disconnect()
        return False

    # ── Sending ──────────────────────────────────────────

    async def send(
        self,
        identity: str,
        message: str,
        media_url: str | None = None,
    ) -> DeliveryReceipt:
        if not self._channel.is_ready:
            raise DeliveryError(
                f"WhatsApp channel is not ready (state: {self._channel.status.value})"
            )

        payload: dict = {"messaging_product": "whatsapp", "to": identity}
        if media_url:
            payload["type"] = "image"
            payload["image"] = {"link": media_url, "caption": message}
        else:
            payload["type"] = "text"
            payload["text"] = {"body": message}

        url = f"{self._base_url}/{self._phone_number_id}/messages"
        try:
            async with self._client() as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("WhatsApp send to %s failed: %s", identity, exc)
            raise DeliveryError(f"WhatsApp request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error("Failed to send to %s: %s %s", identity, resp.status_code, resp.text)
            raise DeliveryError(f"WhatsApp API returned {resp.status_code}: {resp.text}")

        message_id = None
        try:
            messages = resp.json().get("messages") or []
            if messages:
                message_id = messages[0].get("id")
        except ValueError:
            logger.warning("WhatsApp response for %s was not JSON", identity)

        logger.info("OTP %s sent to %s", "with image" if media_url else "text", identity)
        return DeliveryReceipt(identity=identity, message_id=message_id)
