# src/services/auth_service/__init__.py
"""
Аутентификация: вход через Firebase, JWT-сессии в cookie, доступ по ролям.
"""
