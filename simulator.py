"""Interactive console simulator — issue and verify OTPs without WhatsApp."""

import shlex

from whatsapp_otp.config import settings
from whatsapp_otp.exceptions import OtpServiceError
from whatsapp_otp.otp.service import OtpService
from whatsapp_otp.otp.store import OtpStore
from whatsapp_otp.otp.templates import TemplateRenderer

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

HELP = f"""{DIM}Commands:
  send <phone> [template] [key=value ...]   issue an OTP and print the message
  verify <phone> <code>                     verify and consume an OTP
  list                                      show active OTPs
  templates                                 list template keys
  quit{RESET}
"""


def _send(service: OtpService, args: list[str]) -> None:
    if not args:
        print(f"{RED}Usage: send <phone> [template] [key=value ...]{RESET}")
        return
    phone, rest = args[0], args[1:]
    template = settings.default_template
    if rest and "=" not in rest[0]:
        template, rest = rest[0], rest[1:]
    extras = dict(item.split("=", 1) for item in rest if "=" in item)
    company = extras.pop("company", settings.default_company)

    issued = service.request_otp(
        phone,
        length=settings.otp_default_length,
        ttl_minutes=settings.otp_default_ttl_minutes,
        template_key=template,
        company=company,
        extra_vars=extras,
    )
    print(f"{GREEN}{BOLD}→ {phone}:{RESET} {issued.message}")
    print(f"{DIM}  code {issued.code}, expires {issued.record.expires_at:%H:%M:%S} UTC{RESET}\n")


def _verify(service: OtpService, args: list[str]) -> None:
    if len(args) != 2:
        print(f"{RED}Usage: verify <phone> <code>{RESET}")
        return
    if service.verify_otp(args[0], args[1]):
        print(f"{GREEN}✅ OTP verified successfully!{RESET}\n")
    else:
        print(f"{RED}❌ Invalid or expired OTP{RESET}\n")


def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print("  🔐  WhatsApp OTP — Console Simulator")
    print(f"{'=' * 52}{RESET}\n")
    print(HELP)

    # Memory-only store: nothing touches the configured storage file.
    service = OtpService(
        store=OtpStore(capacity=settings.otp_capacity),
        renderer=TemplateRenderer.from_file(
            settings.otp_templates_path, default_company=settings.default_company
        ),
    )

    while True:
        try:
            line = input(f"{BLUE}{BOLD}otp>{RESET} ").strip()
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Goodbye!{RESET}")
            break

        if not line:
            continue
        try:
            command, *args = shlex.split(line)
        except ValueError as exc:
            print(f"{RED}Error: {exc}{RESET}\n")
            continue
        command = command.lower()

        if command == "quit":
            print(f"{DIM}Goodbye!{RESET}")
            break

        try:
            if command == "send":
                _send(service, args)
            elif command == "verify":
                _verify(service, args)
            elif command == "list":
                records = service.list_active()
                if not records:
                    print(f"{DIM}No active OTPs{RESET}\n")
                for r in records:
                    print(f"  {r.identity}  {r.code}  until {r.expires_at:%H:%M:%S} UTC")
            elif command == "templates":
                print(f"{YELLOW}{', '.join(service.renderer.keys())}{RESET}\n")
            else:
                print(HELP)
        except OtpServiceError as exc:
            print(f"{RED}Error: {exc}{RESET}\n")


if __name__ == "__main__":
    main()
