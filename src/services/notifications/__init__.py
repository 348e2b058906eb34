"""Сервис уведомлений: рассылка push, отложенные рассылки, токены устройств и входящие."""
