"""Сводная аналитика для администратора и журнал событий фронтенда."""
