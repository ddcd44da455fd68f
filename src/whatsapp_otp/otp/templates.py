"""Message templates and the renderer that fills them in.

Templates use ``{{name}}`` placeholders.  Rendering is a single regex
pass over the template: every placeholder token is resolved exactly once
and substituted text is never scanned again, so a variable value that
itself contains ``{{...}}`` is delivered literally.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from whatsapp_otp.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_KEY = "default"
DEFAULT_COMPANY = "Your Company"

# Variables every template can rely on; always emphasised.
STANDARD_VARIABLES = ("otp", "expiry", "company")

EMPHASIS = "*"

_PLACEHOLDER_RE = re.compile(r"\{\{([^{}]+)\}\}")

BUILTIN_TEMPLATES: Mapping[str, str] = MappingProxyType(
    {
        "default": "Your OTP is: {{otp}}. It will expire in {{expiry}} minutes. Powered by {{company}}.",
        "login": "Welcome, {{name}}! Your login OTP is: {{otp}}. Use this to access your account. Powered by {{company}}.",
        "verification": "Hi {{name}}, please verify your action using OTP: {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "transaction": "Dear {{name}}, to complete your transaction of {{amount}}, use OTP: {{otp}}. Expires in {{expiry}} minutes. Powered by {{company}}.",
        "registration": "Thank you for registering, {{name}}! Your OTP is {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "resetPassword": "Hi {{name}}, use OTP {{otp}} to reset your password. This OTP will expire in {{expiry}} minutes. Powered by {{company}}.",
        "updateDetails": "To update your details, use OTP: {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "bookingConfirmation": "Hi {{name}}, your booking for {{service}} is confirmed. Use OTP {{otp}} to view details. Powered by {{company}}.",
        "delivery": "Your delivery for {{item}} is scheduled. Use OTP: {{otp}} to confirm receipt. Powered by {{company}}.",
        "feedback": "We value your feedback, {{name}}! Use OTP {{otp}} to access the feedback form. Powered by {{company}}.",
        "payment": "Payment of {{amount}} is requested. Use OTP {{otp}} to authorize. Expires in {{expiry}} minutes. Powered by {{company}}.",
        "addressUpdate": "To update your address, {{name}}, use OTP {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "emailVerification": "Hi {{name}}, use OTP {{otp}} to verify your email address. Powered by {{company}}.",
        "phoneVerification": "Hi {{name}}, use OTP {{otp}} to verify your phone number. Powered by {{company}}.",
        "accountUnlock": "Hi {{name}}, use OTP {{otp}} to unlock your account. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "subscription": "Hi {{name}}, your subscription to {{plan}} is activated. Use OTP {{otp}} for confirmation. Powered by {{company}}.",
        "withdrawal": "Your withdrawal request of {{amount}} is processing. Use OTP {{otp}} to confirm. Powered by {{company}}.",
        "balanceCheck": "Hi {{name}}, check your balance with OTP {{otp}}. Expires in {{expiry}} minutes. Powered by {{company}}.",
        "fundTransfer": "To transfer {{amount}} to {{recipient}}, use OTP {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "loyalty": "Redeem your {{points}} loyalty points with OTP {{otp}}. Powered by {{company}}.",
        "locationAccess": "Access your location data using OTP {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "cancelService": "To cancel your {{service}} request, use OTP {{otp}}. Expires in {{expiry}} minutes. Powered by {{company}}.",
        "appointment": "Your appointment on {{date}} at {{time}} is scheduled. Use OTP {{otp}} to confirm. Powered by {{company}}.",
        "giftCard": "Redeem your {{value}} gift card using OTP {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "profileUpdate": "Hi {{name}}, update your profile using OTP {{otp}}. Powered by {{company}}.",
        "support": "Hi {{name}}, access support with OTP {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "gaming": "Welcome to {{game}}! Use OTP {{otp}} to start your adventure. Powered by {{company}}.",
        "education": "Hi {{name}}, access your course material using OTP {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
        "event": "Your registration for {{event}} is confirmed. Use OTP {{otp}} to check details. Powered by {{company}}.",
        "custom": "{{message}} Use OTP: {{otp}}. Valid for {{expiry}} minutes. Powered by {{company}}.",
    }
)


def _emphasise(value: str) -> str:
    return f"{EMPHASIS}{value}{EMPHASIS}"


class TemplateRenderer:
    """Turns a template key plus variables into outbound message text.

    The template table is copied into a read-only mapping on construction
    and never changes afterwards.
    """

    def __init__(
        self,
        templates: Mapping[str, str] | None = None,
        default_company: str = DEFAULT_COMPANY,
    ) -> None:
        table = dict(BUILTIN_TEMPLATES if templates is None else templates)
        if DEFAULT_TEMPLATE_KEY not in table:
            raise ValueError(f"Template table must define a {DEFAULT_TEMPLATE_KEY!r} template")
        self._templates: Mapping[str, str] = MappingProxyType(table)
        self._default_company = default_company

    @classmethod
    def from_file(
        cls, path: Path | None, default_company: str = DEFAULT_COMPANY
    ) -> TemplateRenderer:
        """Build a renderer from the built-in table plus overrides in *path*.

        *path* must hold a JSON object mapping template keys to strings.
        ``None`` yields the built-in table unchanged.
        """
        table = dict(BUILTIN_TEMPLATES)
        if path is not None:
            with open(path, encoding="utf-8") as fh:
                overrides = json.load(fh)
            if not isinstance(overrides, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in overrides.items()
            ):
                raise ValueError(f"{path} must contain a JSON object of string templates")
            table.update(overrides)
            logger.info("Loaded %d template(s) from %s", len(overrides), path)
        return cls(table, default_company=default_company)

    @property
    def templates(self) -> Mapping[str, str]:
        return self._templates

    def keys(self) -> list[str]:
        return list(self._templates)

    def render(self, key: str, variables: Mapping[str, str]) -> str:
        """Render template *key*, falling back to ``default`` for unknown keys.

        ``otp`` and ``expiry`` are mandatory; ``company`` falls back to the
        configured name when missing or empty.  Other placeholders are
        filled from *variables* by exact name: an empty value renders as
        an empty string, and a placeholder with no variable at all is left
        in the text untouched.
        """
        template = self._templates.get(key)
        if template is None:
            logger.debug("Unknown template %r, using %r", key, DEFAULT_TEMPLATE_KEY)
            template = self._templates[DEFAULT_TEMPLATE_KEY]

        standard: dict[str, str] = {}
        for name in ("otp", "expiry"):
            value = variables.get(name)
            if value is None or str(value) == "":
                raise ValidationError(f"Template variable {name!r} is required")
            standard[name] = str(value)
        standard["company"] = str(variables.get("company") or self._default_company)

        def _substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name in standard:
                return _emphasise(standard[name])
            if name not in variables:
                return match.group(0)
            value = variables[name]
            return _emphasise(str(value)) if value else ""

        return _PLACEHOLDER_RE.sub(_substitute, template)
