"""
Password reset delivery channels.

Each channel exposes ``configured`` and ``send_reset``; ``send_reset`` raises
``DeliveryError`` on any failure. Callers treat delivery as best effort:
they log the error and never undo token issuance because of it.
"""

from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

import requests

from config.settings import MailSettings, WhatsAppSettings
from nexus_admin.errors import DeliveryError
from nexus_admin.log import get_logger

logger = get_logger(__name__)

EMAIL = "email"
WHATSAPP = "whatsapp"
METHODS = (EMAIL, WHATSAPP)


class ResetChannel(Protocol):
    name: str

    @property
    def configured(self) -> bool: ...

    def send_reset(self, *, recipient: str, token: str, name: str) -> None: ...


def reset_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/reset-password?token={token}"


class EmailResetChannel:
    """Sends the reset link over SMTP."""

    name = EMAIL

    def __init__(self, mail: MailSettings):
        self._mail = mail

    @property
    def configured(self) -> bool:
        return self._mail.configured

    def _build_message(self, recipient: str, token: str, name: str) -> MIMEMultipart:
        link = reset_link(self._mail.app_base_url, token)
        msg = MIMEMultipart("alternative")
        msg["From"] = self._mail.from_address
        msg["To"] = recipient
        msg["Subject"] = "Recuperação de senha"
        text = (
            f"Olá {name},\n\n"
            "Recebemos uma solicitação para redefinir sua senha.\n"
            f"Acesse o link abaixo (válido por tempo limitado):\n\n{link}\n\n"
            "Se você não fez esta solicitação, ignore este email."
        )
        html = (
            f"<p>Olá {name},</p>"
            "<p>Recebemos uma solicitação para redefinir sua senha.</p>"
            f'<p><a href="{link}">Redefinir senha</a></p>'
            "<p>Se você não fez esta solicitação, ignore este email.</p>"
        )
        msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send_reset(self, *, recipient: str, token: str, name: str) -> None:
        if not self.configured:
            raise DeliveryError(self.name, "SMTP not configured")
        msg = self._build_message(recipient, token, name)
        try:
            with smtplib.SMTP(self._mail.smtp_host, self._mail.smtp_port, timeout=30) as server:
                if self._mail.smtp_starttls:
                    server.starttls()
                if self._mail.smtp_user:
                    server.login(self._mail.smtp_user, self._mail.smtp_password)
                server.send_message(msg, to_addrs=[recipient])
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(self.name, str(e)) from e
        logger.info("reset email sent")


class WhatsAppResetChannel:
    """Posts the reset link to the WhatsApp gateway endpoint."""

    name = WHATSAPP

    def __init__(self, whatsapp: WhatsAppSettings, app_base_url: str):
        self._whatsapp = whatsapp
        self._app_base_url = app_base_url

    @property
    def configured(self) -> bool:
        return self._whatsapp.configured

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self._whatsapp.api_key:
            headers["Authorization"] = f"Bearer {self._whatsapp.api_key}"
            headers["X-API-Key"] = self._whatsapp.api_key
        return headers

    def send_reset(self, *, recipient: str, token: str, name: str) -> None:
        if not self.configured:
            raise DeliveryError(self.name, "WhatsApp endpoint not configured")
        if not recipient:
            raise DeliveryError(self.name, "user has no phone number")
        link = reset_link(self._app_base_url, token)
        body = {
            "phone": recipient,
            "name": name,
            "message": f"Olá {name}, para redefinir sua senha acesse: {link}",
            "link": link,
        }
        try:
            resp = requests.post(
                self._whatsapp.endpoint_url,
                json=body,
                headers=self._headers(),
                timeout=self._whatsapp.timeout_seconds,
            )
        except requests.RequestException as e:
            raise DeliveryError(self.name, str(e)) from e
        if resp.status_code >= 400:
            raise DeliveryError(self.name, f"gateway returned {resp.status_code}: {resp.text[:200]}")
        logger.info("reset WhatsApp message sent")
