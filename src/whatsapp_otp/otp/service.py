"""OTP service — ties code generation, storage and message rendering together."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from whatsapp_otp.exceptions import ExpiredOtpError, InvalidOtpError, ValidationError
from whatsapp_otp.otp.generator import DEFAULT_LENGTH, generate_code
from whatsapp_otp.otp.store import OtpRecord, OtpStore, VerifyOutcome
from whatsapp_otp.otp.templates import DEFAULT_TEMPLATE_KEY, TemplateRenderer

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 5


@dataclass(frozen=True)
class IssuedOtp:
    """Value object returned by :meth:`OtpService.request_otp`."""

    code: str
    message: str
    record: OtpRecord


class OtpService:
    """Issues and verifies OTPs.

    The service never talks to the messaging channel: callers take
    ``IssuedOtp.message`` and hand it to a sender themselves, so a code
    stays verifiable even when delivery later fails.
    """

    def __init__(
        self,
        store: OtpStore,
        renderer: TemplateRenderer,
        generator: Callable[[int], str] = generate_code,
    ) -> None:
        self._store = store
        self._renderer = renderer
        self._generate = generator

    @property
    def store(self) -> OtpStore:
        return self._store

    @property
    def renderer(self) -> TemplateRenderer:
        return self._renderer

    def request_otp(
        self,
        identity: str,
        length: int = DEFAULT_LENGTH,
        ttl_minutes: int = DEFAULT_TTL_MINUTES,
        template_key: str = DEFAULT_TEMPLATE_KEY,
        company: str | None = None,
        extra_vars: Mapping[str, str] | None = None,
    ) -> IssuedOtp:
        """Generate a code for *identity*, store it and render its message."""
        _require("identity", identity)
        if ttl_minutes <= 0:
            raise ValidationError("ttl_minutes must be positive")

        code = self._generate(length)
        record = self._store.issue(identity, code, ttl_minutes)

        # Standard variables win over extras with the same name.
        variables = dict(extra_vars or {})
        variables.update(otp=code, expiry=str(ttl_minutes), company=company or "")
        message = self._renderer.render(template_key or DEFAULT_TEMPLATE_KEY, variables)
        return IssuedOtp(code=code, message=message, record=record)

    def verify_otp(self, identity: str, candidate: str) -> bool:
        _require("identity", identity)
        _require("otp", candidate)
        return self._store.verify(identity, candidate)

    def require_valid_otp(self, identity: str, candidate: str) -> None:
        """Like :meth:`verify_otp` but raise on failure.

        Raises ``ExpiredOtpError`` when the identity's record lapsed and
        ``InvalidOtpError`` for any other mismatch.
        """
        _require("identity", identity)
        _require("otp", candidate)
        outcome = self._store.check(identity, candidate)
        if outcome is VerifyOutcome.EXPIRED:
            raise ExpiredOtpError(f"OTP for {identity} has expired")
        if outcome is not VerifyOutcome.VERIFIED:
            raise InvalidOtpError(f"Invalid OTP for {identity}")

    def list_active(self) -> list[OtpRecord]:
        return self._store.list_active()


def _require(name: str, value: str | None) -> None:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
