# src/api/__init__.py
"""
HTTP-шлюз: единое FastAPI приложение со всеми роутерами.
"""
