# src/common/localization.py
"""
Модуль локализации.
Загружает тексты уведомлений из lang_dict.json и форматирует суммы и даты для pt-BR.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo


DEFAULT_LANG = "pt"


def get_lang_dict_path() -> Path:
    """Возвращает путь к файлу локализации."""
    return Path(__file__).parent.parent.parent / "config" / "lang_dict.json"


@lru_cache()
def load_lang_dict() -> dict[str, dict[str, str]]:
    """
    Загружает словарь локализации из JSON файла.
    Кэширует результат.
    """
    lang_path = get_lang_dict_path()
    if not lang_path.exists():
        raise FileNotFoundError(f"Файл локализации не найден: {lang_path}")

    with open(lang_path, "r", encoding="utf-8") as f:
        return json.load(f)


def get_text(
    key: str,
    lang: str = DEFAULT_LANG,
    default: str | None = None,
    **kwargs: Any,
) -> str:
    """
    Получает локализованный текст по ключу.

    Args:
        key: Ключ перевода
        lang: Код языка (pt, en)
        default: Значение, если ключ не найден
        **kwargs: Параметры для форматирования строки

    Example:
        >>> get_text("PAYMENT_APPROVED_MESSAGE", amount="R$ 80,00")
        "Seu pagamento de R$ 80,00 foi aprovado com sucesso."
    """
    try:
        lang_dict = load_lang_dict()
    except FileNotFoundError:
        return default if default else f"[{key}]"

    translations = lang_dict.get(key)
    if not translations:
        return default if default else f"[{key}]"

    text = translations.get(lang) or translations.get(DEFAULT_LANG)
    if not text:
        text = next(iter(translations.values()), f"[{key}]")

    if kwargs:
        try:
            text = text.format(**kwargs)
        except KeyError:
            pass  # недостающие плейсхолдеры остаются как есть

    return text


def get_available_languages() -> list[str]:
    """Возвращает список языков из первого ключа словаря."""
    try:
        lang_dict = load_lang_dict()
    except FileNotFoundError:
        return [DEFAULT_LANG]
    first_key = next(iter(lang_dict.values()), {})
    return list(first_key.keys()) or [DEFAULT_LANG]


def validate_lang_dict() -> list[str]:
    """
    Проверяет целостность словаря локализации.

    Returns:
        Список ошибок (пустой, если всё в порядке)
    """
    errors = []

    try:
        lang_dict = load_lang_dict()
    except FileNotFoundError as e:
        return [str(e)]

    available_langs = get_available_languages()

    for key, translations in lang_dict.items():
        if not isinstance(translations, dict):
            errors.append(f"Ключ '{key}' имеет неверный формат")
            continue

        missing_langs = set(available_langs) - set(translations.keys())
        if missing_langs:
            errors.append(f"Ключ '{key}' не имеет перевода для языков: {missing_langs}")

    return errors


# =============================================================================
# ФОРМАТИРОВАНИЕ ДЛЯ pt-BR
# =============================================================================

def format_currency(amount: float | int | Decimal, currency: str = "BRL") -> str:
    """
    Форматирует сумму в стиле pt-BR: 1234.5 -> "R$ 1.234,50".
    Для других валют код ставится перед суммой.
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer, _, cents = f"{abs(value):.2f}".partition(".")
    grouped = f"{int(integer):,}".replace(",", ".")
    symbol = "R$" if currency.upper() == "BRL" else currency.upper()
    return f"{sign}{symbol} {grouped},{cents}"


def format_cents(amount_cents: int, currency: str = "BRL") -> str:
    """Форматирует сумму, заданную в минимальных единицах (центах)."""
    return format_currency(Decimal(amount_cents) / 100, currency)


def format_datetime_local(value: datetime, tz_name: str = "America/Sao_Paulo") -> str:
    """Форматирует дату как DD/MM/YYYY HH:mm в заданном часовом поясе."""
    if value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(tz_name))
    return value.strftime("%d/%m/%Y %H:%M")
