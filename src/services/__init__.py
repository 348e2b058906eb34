# src/services/__init__.py
"""
Доменные сервисы PetShop SaaS.

Каждый пакет: routes (FastAPI APIRouter), service (бизнес-логика),
repository (доступ к документам) и dependencies (Depends-провайдеры).

Сервисы:
- auth_service: вход, сессии, доступ к страницам по роли
- payments: Stripe/Mercado Pago и сверка вебхуков
- notifications: рассылки FCM, токены устройств, входящие
- taxi_dog: перевозка питомцев
- clients: карточки клиентов
- pets: питомцы клиентов
- catalog: каталог услуг
- appointments: записи на услуги
- analytics: сводка и отчёты для администратора
- uploads: файлы в Firebase Storage
"""

__all__: list[str] = []
