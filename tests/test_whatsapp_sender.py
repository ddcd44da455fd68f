"""Tests for the WhatsAppCloudSender against a mocked Graph API."""

from __future__ import annotations

import json

import httpx
import pytest

from whatsapp_otp.delivery.channel_state import ChannelState, ChannelStatus
from whatsapp_otp.delivery.whatsapp import WhatsAppCloudSender
from whatsapp_otp.exceptions import DeliveryError


def _sender(handler, token: str = "token", phone_number_id: str = "12345") -> WhatsAppCloudSender:
    return WhatsAppCloudSender(
        channel=ChannelState(),
        api_token=token,
        phone_number_id=phone_number_id,
        base_url="https://graph.test/v21.0",
        transport=httpx.MockTransport(handler),
    )


# ──────────────────────────────────────────────────────────
# connect()
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_connect_marks_ready():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "12345"})

    sender = _sender(handler)
    seen: list[ChannelStatus] = []
    sender.channel.subscribe(seen.append)

    assert await sender.connect() is True
    assert seen == [ChannelStatus.AWAITING_PAIRING, ChannelStatus.READY]
    assert requests[0].url.path == "/v21.0/12345"
    assert requests[0].headers["Authorization"] == "Bearer token"


@pytest.mark.asyncio
async def test_connect_without_credentials_stays_disconnected():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    sender = _sender(handler, token="")
    assert await sender.connect() is False
    assert sender.channel.status is ChannelStatus.DISCONNECTED


@pytest.mark.asyncio
async def test_connect_rejected_credentials():
    sender = _sender(lambda request: httpx.Response(401, json={"error": "bad token"}))
    assert await sender.connect() is False
    assert sender.channel.status is ChannelStatus.DISCONNECTED


# ──────────────────────────────────────────────────────────
# send()
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_send_text_message():
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"messages": [{"id": "wamid.1"}]})

    sender = _sender(handler)
    sender.channel.mark_ready()

    receipt = await sender.send("+15551234567", "Your OTP is: *123456*.")

    assert receipt.message_id == "wamid.1"
    assert payloads == [
        {
            "messaging_product": "whatsapp",
            "to": "+15551234567",
            "type": "text",
            "text": {"body": "Your OTP is: *123456*."},
        }
    ]


@pytest.mark.asyncio
async def test_send_image_with_caption():
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payloads.append(json.loads(request.content))
        return httpx.Response(200, json={"messages": [{"id": "wamid.2"}]})

    sender = _sender(handler)
    sender.channel.mark_ready()

    await sender.send("+1555", "caption", media_url="https://cdn.test/logo.png")

    assert payloads[0]["type"] == "image"
    assert payloads[0]["image"] == {"link": "https://cdn.test/logo.png", "caption": "caption"}


@pytest.mark.asyncio
async def test_send_when_not_ready_raises_without_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    sender = _sender(handler)
    with pytest.raises(DeliveryError, match="not ready"):
        await sender.send("+1555", "hello")


@pytest.mark.asyncio
async def test_send_api_error_raises():
    sender = _sender(lambda request: httpx.Response(400, json={"error": "invalid recipient"}))
    sender.channel.mark_ready()
    with pytest.raises(DeliveryError, match="400"):
        await sender.send("+1555", "hello")


@pytest.mark.asyncio
async def test_send_network_error_chains_cause():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    sender = _sender(handler)
    sender.channel.mark_ready()
    with pytest.raises(DeliveryError) as excinfo:
        await sender.send("+1555", "hello")
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
