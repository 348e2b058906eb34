# src/infra/sms.py
"""
Отправка SMS через REST API Twilio.
"""

from __future__ import annotations

import httpx

from src.common.logger import log_info, log_warning

LOGGER_NAME = "petshop.sms"


class SmsDeliveryError(Exception):
    pass


class SmsClient:
    """Twilio Messages API: POST /Accounts/{sid}/Messages.json с basic auth."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        api_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        from src.config import settings

        cfg = settings.twilio
        self._account_sid = account_sid if account_sid is not None else cfg.ACCOUNT_SID
        self._auth_token = auth_token if auth_token is not None else cfg.AUTH_TOKEN
        self._from_number = from_number if from_number is not None else cfg.PHONE_NUMBER
        self._api_url = (api_url or cfg.API_URL).rstrip("/")
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    async def send_sms(self, to: str, body: str) -> str | None:
        """
        Отправляет SMS.

        Returns:
            SID сообщения или None, если Twilio не настроен

        Raises:
            SmsDeliveryError: Twilio отклонил сообщение или недоступен
        """
        if not self.is_configured:
            await log_warning("Twilio не настроен, SMS не отправлено", logger_name=LOGGER_NAME)
            return None

        url = f"{self._api_url}/Accounts/{self._account_sid}/Messages.json"
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.post(
                    url,
                    auth=(self._account_sid, self._auth_token),
                    data={"To": to, "From": self._from_number, "Body": body},
                )
        except httpx.HTTPError as e:
            raise SmsDeliveryError(str(e)) from e

        result = response.json() if response.content else {}
        if response.status_code not in (200, 201):
            code = result.get("code")
            message = result.get("message", "Unknown error")
            raise SmsDeliveryError(f"[{code}] {message}" if code else message)

        await log_info(f"SMS отправлено на {to}", logger_name=LOGGER_NAME, extra={"sid": result.get("sid")})
        return result.get("sid")


_client: SmsClient | None = None


def get_sms_client() -> SmsClient:
    global _client
    if _client is None:
        _client = SmsClient()
    return _client
