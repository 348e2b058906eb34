# src/infra/errors.py
"""
Ошибки внешних платёжных шлюзов.
"""

from __future__ import annotations


class PaymentGatewayError(Exception):
    """Провайдер вернул ошибку или недоступен."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class WebhookSignatureError(ValueError):
    """Подпись вебхука отсутствует или не совпала."""
