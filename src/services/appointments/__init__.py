"""Записи на услуги и события, по которым воркер уведомляет клиента."""
