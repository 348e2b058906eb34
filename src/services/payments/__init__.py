# src/services/payments/__init__.py
"""
Платежи: создание оплаты в Stripe и Mercado Pago и сверка статусов по вебхукам.
"""
