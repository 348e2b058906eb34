# src/services/catalog/dependencies.py
from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from src.api.dependencies import get_store
from src.infra.documents import DocumentStore
from src.services.catalog.repository import CatalogRepository
from src.services.catalog.service import CatalogService


def get_catalog_service(store: Annotated[DocumentStore, Depends(get_store)]) -> CatalogService:
    return CatalogService(CatalogRepository(store))
