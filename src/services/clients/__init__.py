"""Карточки клиентов: данные для записи, SMS и связи с пользователем."""
