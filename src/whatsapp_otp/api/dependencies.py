"""Shared instances for the HTTP layer (created once, reused across requests)."""

from whatsapp_otp.config import settings
from whatsapp_otp.delivery.base import MessageSender
from whatsapp_otp.delivery.channel_state import ChannelState
from whatsapp_otp.delivery.whatsapp import WhatsAppCloudSender
from whatsapp_otp.otp.service import OtpService
from whatsapp_otp.otp.store import OtpStore
from whatsapp_otp.otp.templates import TemplateRenderer

_channel = ChannelState()

_sender = WhatsAppCloudSender(
    channel=_channel,
    api_token=settings.whatsapp_api_token,
    phone_number_id=settings.whatsapp_phone_number_id,
    base_url=settings.whatsapp_api_base_url,
    timeout=settings.whatsapp_timeout_seconds,
)

_otp_service = OtpService(
    store=OtpStore(path=settings.otp_storage_path, capacity=settings.otp_capacity),
    renderer=TemplateRenderer.from_file(
        settings.otp_templates_path, default_company=settings.default_company
    ),
)


def get_channel() -> ChannelState:
    return _channel


def get_sender() -> MessageSender:
    return _sender


def get_otp_service() -> OtpService:
    return _otp_service


async def connect_channel() -> bool:
    """Bring the WhatsApp channel up (called from the app lifespan)."""
    return await _sender.connect()


def get_admin_token() -> str:
    return settings.admin_token
