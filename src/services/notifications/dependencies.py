# src/services/notifications/dependencies.py
"""
Dependency Injection для уведомлений.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_firebase, get_store
from src.infra.documents import DocumentStore
from src.infra.firebase import FirebaseClient
from src.services.notifications.repository import NotificationRepository
from src.services.notifications.service import NotificationService


def get_notification_repository(store: Annotated[DocumentStore, Depends(get_store)]) -> NotificationRepository:
    return NotificationRepository(store)


def get_notification_service(
    repository: Annotated[NotificationRepository, Depends(get_notification_repository)],
    firebase: Annotated[FirebaseClient, Depends(get_firebase)],
) -> NotificationService:
    return NotificationService(repository, firebase)
