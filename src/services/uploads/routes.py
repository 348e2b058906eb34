# src/services/uploads/routes.py
"""
Endpoints файлов:
- POST /api/upload - загрузить (multipart: file, folder, public)
- GET /api/upload?folder=&type= - свои файлы
- DELETE /api/upload?path= - удалить свой файл
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from src.api.dependencies import CurrentUser, get_firebase
from src.api.errors import ERROR_RESPONSES, service_errors
from src.infra.firebase import FirebaseClient
from src.services.uploads.service import UploadService

router = APIRouter(prefix="/api/upload", tags=["Uploads"])


def get_upload_service(firebase: Annotated[FirebaseClient, Depends(get_firebase)]) -> UploadService:
    return UploadService(firebase)


Service = Annotated[UploadService, Depends(get_upload_service)]


@router.post("", responses=ERROR_RESPONSES, summary="Загрузить файл")
async def upload_file(
    user: CurrentUser,
    service: Service,
    file: Annotated[UploadFile | None, File()] = None,
    folder: Annotated[str | None, Form()] = None,
    public: Annotated[bool, Form()] = False,
) -> dict:
    content = await file.read() if file is not None else None
    with service_errors():
        return await service.upload(
            user,
            filename=file.filename if file is not None else None,
            content_type=file.content_type if file is not None else None,
            content=content,
            folder=folder,
            public=public,
        )


@router.get("", responses=ERROR_RESPONSES, summary="Список файлов")
async def list_files(
    user: CurrentUser,
    service: Service,
    folder: Annotated[str | None, Query()] = None,
    type: Annotated[str | None, Query()] = None,
) -> dict:
    with service_errors():
        return await service.list_files(user, folder, type)


@router.delete("", responses=ERROR_RESPONSES, summary="Удалить файл")
async def delete_file(
    user: CurrentUser,
    service: Service,
    path: Annotated[str | None, Query()] = None,
) -> dict:
    with service_errors():
        return await service.delete_file(user, path)
