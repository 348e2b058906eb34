# src/common/__init__.py
"""
Общие утилиты, константы и логгер.
"""

from src.common.logger import get_logger, log_info, log_error, log_warning, log_debug, setup_logging
from src.common.constants import TypeMsg, Collections
from src.common.localization import get_text, load_lang_dict, format_currency, format_cents

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "setup_logging",
    "TypeMsg",
    "Collections",
    "get_text",
    "load_lang_dict",
    "format_currency",
    "format_cents",
]
