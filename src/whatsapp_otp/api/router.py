"""OTP API router.

Endpoints
---------
GET /send-otp?phone=...&template=...   → issue + deliver an OTP
GET /verify-otp?phone=...&otp=...      → verify and consume an OTP
GET /active-otps                       → unexpired OTPs (admin token required)
GET /channel/status                    → messaging channel state
GET /templates                         → available template keys
"""

from __future__ import annotations

import logging
import re
import secrets
from datetime import datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from whatsapp_otp.api.dependencies import (
    get_admin_token,
    get_channel,
    get_otp_service,
    get_sender,
)
from whatsapp_otp.config import settings
from whatsapp_otp.delivery.base import MessageSender
from whatsapp_otp.delivery.channel_state import ChannelState
from whatsapp_otp.exceptions import ValidationError
from whatsapp_otp.otp.service import OtpService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["otp"])

_MEDIA_URL_RE = re.compile(r"https?://.+\.(jpg|jpeg|png|gif)", re.IGNORECASE)

# Query parameters with a meaning of their own; everything else is a template variable.
_RESERVED_PARAMS = frozenset({"phone", "length", "expiry", "template", "company", "image"})


# ── Response models ──────────────────────────────────────

class SendOtpResponse(BaseModel):
    success: bool
    message: str
    otp: str


class VerifyOtpResponse(BaseModel):
    success: bool
    message: str


class ActiveOtp(BaseModel):
    identity: str
    code: str
    issued_at: datetime
    expires_at: datetime


class ActiveOtpsResponse(BaseModel):
    success: bool
    otps: list[ActiveOtp]


class ChannelStatusResponse(BaseModel):
    status: str
    ready: bool


# ── Input helpers ────────────────────────────────────────

def _positive_int(name: str, raw: str | None, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer") from None
    if value <= 0:
        raise ValidationError(f"{name} must be positive")
    return value


def _validate_media_url(image: str | None) -> str | None:
    if image and not _MEDIA_URL_RE.fullmatch(image):
        raise ValidationError(
            "Invalid image URL. Only valid HTTP URLs for images are supported "
            "(jpg, jpeg, png, gif)."
        )
    return image or None


# ── Endpoints ────────────────────────────────────────────

@router.get("/send-otp", response_model=SendOtpResponse)
async def send_otp(
    request: Request,
    phone: str | None = Query(None, description="Recipient phone number"),
    length: str | None = Query(None),
    expiry: str | None = Query(None, description="Validity in minutes"),
    template: str | None = Query(None),
    company: str | None = Query(None),
    image: str | None = Query(None, description="Optional http(s) image URL"),
    service: OtpService = Depends(get_otp_service),
    sender: MessageSender = Depends(get_sender),
):
    """Issue an OTP for *phone* and deliver it over the messaging channel.

    The OTP is stored before delivery is attempted, so it stays
    verifiable when sending fails.
    """
    if not phone:
        raise ValidationError("Phone number is required")
    media_url = _validate_media_url(image)
    otp_length = _positive_int("length", length, settings.otp_default_length)
    if otp_length > settings.otp_max_length:
        raise ValidationError(f"length must be at most {settings.otp_max_length}")
    ttl_minutes = _positive_int("expiry", expiry, settings.otp_default_ttl_minutes)
    extra_vars = {
        key: value for key, value in request.query_params.items() if key not in _RESERVED_PARAMS
    }
    template_key = template or settings.default_template

    # Store calls take a lock and write to disk: keep them off the event loop.
    issued = await run_in_threadpool(
        service.request_otp,
        phone,
        length=otp_length,
        ttl_minutes=ttl_minutes,
        template_key=template_key,
        company=company or settings.default_company,
        extra_vars=extra_vars,
    )
    await sender.send(phone, issued.message, media_url)
    logger.info("OTP sent to %s with template %r", phone, template_key)
    return SendOtpResponse(success=True, message="OTP sent successfully!", otp=issued.code)


@router.get("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(
    phone: str | None = Query(None),
    otp: str | None = Query(None),
    service: OtpService = Depends(get_otp_service),
):
    """Verify and consume the OTP for *phone*."""
    if not phone or not otp:
        raise ValidationError("Phone and OTP are required")

    if await run_in_threadpool(service.verify_otp, phone, otp):
        return VerifyOtpResponse(success=True, message="OTP verified successfully!")
    return JSONResponse(
        status_code=400,
        content=VerifyOtpResponse(success=False, message="Invalid or expired OTP").model_dump(),
    )


@router.get("/active-otps", response_model=ActiveOtpsResponse)
async def active_otps(
    x_admin_token: str | None = Header(None),
    admin_token: str = Depends(get_admin_token),
    service: OtpService = Depends(get_otp_service),
):
    """Diagnostic listing of unexpired OTPs.  Disabled without ADMIN_TOKEN."""
    if not admin_token or not x_admin_token or not secrets.compare_digest(
        x_admin_token, admin_token
    ):
        logger.warning("Rejected /active-otps request without a valid admin token")
        raise HTTPException(status_code=403, detail="Forbidden")

    records = await run_in_threadpool(service.list_active)
    return ActiveOtpsResponse(
        success=True,
        otps=[
            ActiveOtp(
                identity=r.identity,
                code=r.code,
                issued_at=r.issued_at,
                expires_at=r.expires_at,
            )
            for r in records
        ],
    )


@router.get("/channel/status", response_model=ChannelStatusResponse)
async def channel_status(channel: ChannelState = Depends(get_channel)):
    """Report whether the messaging channel can currently deliver."""
    return ChannelStatusResponse(status=channel.status.value, ready=channel.is_ready)


@router.get("/templates")
async def list_templates(service: OtpService = Depends(get_otp_service)) -> dict:
    """List the template keys accepted by ``/send-otp``."""
    return {"templates": service.renderer.keys()}
