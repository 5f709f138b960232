"""ZeptoMail implementation of EmailProvider.

One Jinja2 HTML template per notification kind, plus a plain-text fallback.
Returns False (and logs) on any delivery failure; it never raises for
transport errors.
"""

import os
from datetime import datetime
from typing import Any, Callable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.email.protocol import NotificationKind
from infrastructure.http_client import HttpClient
from schemas.models.account import AccountDoc
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.com/v1.1/email"
_TOKEN_PREFIX = "Zoho-enczapikey "
_ACCEPTED = (200, 201, 202)
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


def _fmt(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d %b %Y, %H:%M UTC")
    return str(value)


def _text_vip_activated(name: str, p: dict) -> str:
    return (
        f"Hello {name},\n\n"
        f"Your {p['plan']} VIP subscription is active for {p['duration']} days.\n"
        f"Activated: {_fmt(p['activation'])}\n"
        f"Expires: {_fmt(p['expires'])}\n"
    )


def _text_vip_deactivated(name: str, p: dict) -> str:
    return f"Hello {name},\n\nYour VIP subscription has been cancelled.\n"


def _text_vip_expired(name: str, p: dict) -> str:
    return (
        f"Hello {name},\n\n"
        f"Your {p['duration']}-day VIP subscription has expired. "
        f"Renew any time to keep access to VIP tips.\n"
    )


def _text_vip_expiring_soon(name: str, p: dict) -> str:
    return (
        f"Hello {name},\n\n"
        f"Your VIP subscription expires on {_fmt(p['expires'])} "
        f"({p['days_left']} day(s) left).\n"
    )


def _text_verification_code(name: str, p: dict) -> str:
    return (
        f"Hello {name},\n\n"
        f"Your verification code is: {p['code']}\n\n"
        f"This code expires in {p['ttl_minutes']} minutes.\n"
    )


def _text_account_deleted(name: str, p: dict) -> str:
    return f"Hello {name},\n\n{p['message']}\n"


def _text_admin_changed(name: str, p: dict) -> str:
    return f"Hello {name},\n\n{p['title']}\n\n{p['message']}\n"


# kind → (default subject, template file, plain-text builder); a "subject"
# key in the payload overrides the default
_TEMPLATES: dict[NotificationKind, tuple[str, str, Callable[[str, dict], str]]] = {
    NotificationKind.VIP_ACTIVATED: (
        "VIP Activated", "vip_activated.html", _text_vip_activated
    ),
    NotificationKind.VIP_DEACTIVATED: (
        "VIP Unsubscribed", "vip_deactivated.html", _text_vip_deactivated
    ),
    NotificationKind.VIP_EXPIRED: (
        "VIP Expired", "vip_expired.html", _text_vip_expired
    ),
    NotificationKind.VIP_EXPIRING_SOON: (
        "Your VIP Reminder", "vip_expiring_soon.html", _text_vip_expiring_soon
    ),
    NotificationKind.VERIFICATION_CODE: (
        "Your Verification Code", "verification.html", _text_verification_code
    ),
    NotificationKind.ACCOUNT_DELETED: (
        "Account Deletion", "account_deleted.html", _text_account_deleted
    ),
    NotificationKind.ADMIN_CHANGED: (
        "Admin Access Update", "admin_changed.html", _text_admin_changed
    ),
}


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _auth_header(self) -> str:
        token = self._settings.zepto_api_token
        if token.startswith(_TOKEN_PREFIX):
            return token
        return f"{_TOKEN_PREFIX}{token}"

    def _message(
        self, to_email: str, to_name: str, subject: str, html: str, text: str
    ) -> dict:
        return {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": to_email, "name": to_name}}],
            "subject": subject,
            "htmlbody": html,
            "textbody": text,
        }

    async def _deliver(self, message: dict) -> bool:
        to_email = message["to"][0]["email_address"]["address"]
        subject = message["subject"]
        if not self._settings.zepto_api_token:
            log.error("email_send_skipped", reason="token_not_configured", subject=subject)
            return False

        try:
            response = await self._http.post(
                _ZEPTO_API_URL,
                json=message,
                headers={
                    "Authorization": self._auth_header(),
                    "Content-Type": "application/json",
                },
            )
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if response.status_code not in _ACCEPTED:
            log.error(
                "email_send_rejected",
                to_email=to_email,
                subject=subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False
        log.info("email_sent", to_email=to_email, subject=subject)
        return True

    async def send(
        self, kind: NotificationKind, account: AccountDoc, payload: dict[str, Any]
    ) -> bool:
        default_subject, template_name, text_builder = _TEMPLATES[kind]
        subject = payload.get("subject", default_subject)
        name = account.display_name
        template = self._jinja.get_template(template_name)
        html_body = template.render(
            username=name,
            website_link=self._settings.website_link,
            **{k: _fmt(v) for k, v in payload.items()},
        )
        message = self._message(
            account.email, name, subject, html_body, text_builder(name, payload)
        )
        return await self._deliver(message)
