"""Питомцы клиентов и их медицинские данные."""
