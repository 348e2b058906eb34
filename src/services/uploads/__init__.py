"""Загрузка файлов пользователей в Firebase Storage."""
