"""Taxi Dog: расчёт стоимости, заявки на перевозку питомцев и их статусы."""
