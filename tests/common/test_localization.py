# tests/common/test_localization.py
"""
Тесты для модуля локализации.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

from src.common.localization import (
    format_cents,
    format_currency,
    format_datetime_local,
    get_lang_dict_path,
    get_text,
    load_lang_dict,
    validate_lang_dict,
)


class TestLangDict:
    def test_path_in_config_directory(self) -> None:
        path = get_lang_dict_path()
        assert isinstance(path, Path)
        assert path.name == "lang_dict.json"
        assert path.parent.name == "config"

    def test_all_keys_translated(self) -> None:
        """Каждый ключ переведён на все языки словаря."""
        load_lang_dict.cache_clear()
        assert validate_lang_dict() == []

    def test_notification_keys_present(self) -> None:
        lang_dict = load_lang_dict()
        for key in (
            "PAYMENT_APPROVED_TITLE",
            "APPOINTMENT_CREATED_SMS",
            "TAXI_DOG_STATUS_DELIVERED",
            "WELCOME_EMAIL_HTML",
            "PUSH_OPEN_ACTION",
        ):
            assert key in lang_dict, key


class TestGetText:
    def test_formats_placeholders(self) -> None:
        text = get_text("PAYMENT_APPROVED_MESSAGE", amount="R$ 80,00")
        assert text == "Seu pagamento de R$ 80,00 foi aprovado com sucesso."

    def test_other_language(self) -> None:
        assert get_text("PAYMENT_APPROVED_TITLE", lang="en") == "Payment Approved"

    def test_unknown_language_falls_back_to_default(self) -> None:
        assert get_text("PAYMENT_APPROVED_TITLE", lang="de") == "Pagamento Aprovado"

    def test_missing_key(self) -> None:
        assert get_text("NO_SUCH_KEY") == "[NO_SUCH_KEY]"
        assert get_text("NO_SUCH_KEY", default="") == "[NO_SUCH_KEY]"
        assert get_text("NO_SUCH_KEY", default="x") == "x"

    def test_missing_placeholder_keeps_template(self) -> None:
        text = get_text("PAYMENT_APPROVED_MESSAGE", other="1")
        assert "{amount}" in text

    def test_missing_file(self, tmp_path: Path) -> None:
        load_lang_dict.cache_clear()
        try:
            with patch("src.common.localization.get_lang_dict_path", return_value=tmp_path / "nope.json"):
                assert get_text("PAYMENT_APPROVED_TITLE") == "[PAYMENT_APPROVED_TITLE]"
        finally:
            load_lang_dict.cache_clear()


class TestFormatting:
    def test_currency_brl(self) -> None:
        assert format_currency(1234.5) == "R$ 1.234,50"
        assert format_currency(80) == "R$ 80,00"

    def test_currency_other(self) -> None:
        assert format_currency(10, "usd") == "USD 10,00"

    def test_negative(self) -> None:
        assert format_currency(-5.5) == "-R$ 5,50"

    def test_cents(self) -> None:
        assert format_cents(8000) == "R$ 80,00"
        assert format_cents(123456) == "R$ 1.234,56"

    def test_datetime_local(self) -> None:
        value = datetime(2025, 3, 10, 17, 30, tzinfo=timezone.utc)
        # São Paulo = UTC-3
        assert format_datetime_local(value) == "10/03/2025 14:30"

    def test_naive_datetime_unchanged(self) -> None:
        assert format_datetime_local(datetime(2025, 3, 10, 9, 5)) == "10/03/2025 09:05"
