"""
Email delivery with a provider abstraction.

Providers: SMTP (aiosmtplib), Resend (HTTP API), and a stub that only logs,
selected by ``NUDGE_EMAIL_PROVIDER``. Delivery failures are logged and
reported as False; they never propagate to the caller.
"""

from __future__ import annotations

import ssl
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING

import aiosmtplib
import httpx
import structlog

from nudge.config import Settings, get_settings
from nudge.email.templates import pinky_promise_reminder

if TYPE_CHECKING:
    from datetime import time

logger = structlog.get_logger()

RESEND_API_URL = "https://api.resend.com/emails"


class BaseEmailProvider(ABC):
    @abstractmethod
    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        """Send an email. Returns True on success."""


class SMTPProvider(BaseEmailProvider):
    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.use_tls = use_tls

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{self.from_address}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                tls_context=ssl.create_default_context() if self.use_tls else None,
            )
        except Exception:  # noqa: BLE001
            logger.exception("email_send_failed", to=to_email, provider="smtp")
            return False
        logger.info("email_sent", to=to_email, subject=subject, provider="smtp")
        return True


class ResendProvider(BaseEmailProvider):
    def __init__(
        self,
        api_key: str,
        from_address: str,
        from_name: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        self._http = http_client

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        return await client.post(
            RESEND_API_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=payload,
            timeout=10.0,
        )

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        payload = {
            "from": f"{self.from_name} <{self.from_address}>",
            "to": [to_email],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        try:
            if self._http is not None:
                response = await self._post(self._http, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
            response.raise_for_status()
        except httpx.HTTPError:
            logger.exception("email_send_failed", to=to_email, provider="resend")
            return False
        logger.info("email_sent", to=to_email, subject=subject, provider="resend")
        return True


class StubProvider(BaseEmailProvider):
    """Records messages instead of sending them (local dev, tests)."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        self.sent.append((to_email, subject))
        logger.info("email_stubbed", to=to_email, subject=subject)
        return True


def create_provider(settings: Settings | None = None) -> BaseEmailProvider:
    """Build the provider named in configuration."""
    settings = settings or get_settings()
    provider_name = settings.email_provider.lower()

    if provider_name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if provider_name == "resend":
        if not settings.resend_api_key:
            logger.warning("resend_api_key_missing", fallback="stub")
            return StubProvider()
        return ResendProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    if provider_name == "stub":
        return StubProvider()
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


class EmailService:
    def __init__(self, provider: BaseEmailProvider | None = None) -> None:
        self.provider = provider or create_provider()

    async def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        return await self.provider.send(to, subject, html_body, text_body)

    async def send_pinky_reminder(
        self,
        to: str,
        class_name: str | None,
        start_time: time,
        duration_minutes: int,
    ) -> bool:
        subject, html_body, text_body = pinky_promise_reminder(class_name, start_time, duration_minutes)
        return await self.send_email(to, subject, html_body, text_body)
