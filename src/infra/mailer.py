# src/infra/mailer.py
"""
Отправка писем через Resend.
"""

from __future__ import annotations

import asyncio
from typing import Any

import resend

from src.common.logger import log_info, log_warning

LOGGER_NAME = "petshop.email"


class EmailDeliveryError(Exception):
    pass


class EmailClient:
    def __init__(self, api_key: str | None = None, from_email: str | None = None) -> None:
        from src.config import settings

        self._api_key = api_key if api_key is not None else settings.email.RESEND_API_KEY
        self._from_email = from_email or settings.email.FROM_EMAIL

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def send_email(self, to: str | list[str], subject: str, html: str) -> str | None:
        """
        Отправляет письмо. Возвращает id письма в Resend
        или None, если ключ API не задан.
        """
        if not self.is_configured:
            await log_warning("Resend не настроен, письмо не отправлено", logger_name=LOGGER_NAME)
            return None

        resend.api_key = self._api_key
        params: dict[str, Any] = {
            "from": self._from_email,
            "to": to if isinstance(to, list) else [to],
            "subject": subject,
            "html": html,
        }
        try:
            response = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            raise EmailDeliveryError(str(e)) from e

        email_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        await log_info(f"Письмо «{subject}» отправлено", logger_name=LOGGER_NAME, extra={"email_id": email_id})
        return email_id


_client: EmailClient | None = None


def get_email_client() -> EmailClient:
    global _client
    if _client is None:
        _client = EmailClient()
    return _client
