# src/shared/__init__.py
"""
Общий код HTTP-шлюза и воркера.

- events: доменные события RabbitMQ
- models: Pydantic-модели запросов, ответов и перечисления
"""

__all__: list[str] = []
