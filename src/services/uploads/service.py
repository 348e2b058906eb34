# src/services/uploads/service.py
"""
Файлы пользователей в Firebase Storage.

Пути:
    public/{folder}/{timestamp}_{uuid}.{ext}       - публичные
    users/{uid}/{folder}/{timestamp}_{uuid}.{ext}  - личные (подписанная ссылка на 7 дней)
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any
from uuid import uuid4

from src.common.logger import log_info
from src.config import settings
from src.infra.documents import utc_now
from src.infra.firebase import FirebaseClient
from src.shared.models.user import AuthUser

LOGGER_NAME = "petshop.uploads"

DEFAULT_FOLDER = "general"
LIST_LIMIT = 50
SIGNED_URL_DAYS = 7

FILE_CATEGORIES: dict[str, tuple[str, ...]] = {
    "images": ("image/",),
    "documents": (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    "videos": ("video/",),
}

_FOLDER_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_folder(folder: str | None) -> str:
    folder = folder or DEFAULT_FOLDER
    if not _FOLDER_RE.match(folder):
        raise ValueError("Nome de pasta inválido")
    return folder


def file_extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return "bin"
    ext = filename.rsplit(".", 1)[-1].lower()
    return ext if ext.isalnum() else "bin"


def unique_file_name(filename: str | None, now: datetime | None = None) -> str:
    now = now or utc_now()
    return f"{int(now.timestamp() * 1000)}_{uuid4().hex}.{file_extension(filename)}"


def matches_category(content_type: str | None, category: str) -> bool:
    prefixes = FILE_CATEGORIES.get(category)
    if prefixes is None:
        return True
    return any((content_type or "").startswith(p) for p in prefixes)


class UploadService:
    def __init__(self, firebase: FirebaseClient) -> None:
        self.firebase = firebase

    async def upload(
        self,
        user: AuthUser,
        filename: str | None,
        content_type: str | None,
        content: bytes | None,
        folder: str | None = None,
        public: bool = False,
    ) -> dict[str, Any]:
        if content is None:
            raise ValueError("Arquivo é obrigatório")

        cfg = settings.uploads
        if content_type not in cfg.ALLOWED_TYPES:
            raise ValueError(f"Tipo de arquivo não permitido. Tipos aceitos: {', '.join(cfg.ALLOWED_TYPES)}")
        if len(content) > cfg.MAX_FILE_SIZE:
            raise ValueError(f"Arquivo muito grande. Tamanho máximo: {cfg.MAX_FILE_SIZE // (1024 * 1024)}MB")

        folder = validate_folder(folder)
        name = unique_file_name(filename)
        path = f"public/{folder}/{name}" if public else f"users/{user.uid}/{folder}/{name}"

        url = await self.firebase.upload_file(
            path,
            content,
            content_type=content_type,
            metadata={
                "uploadedBy": user.uid,
                "originalName": filename or name,
                "uploadedAt": utc_now().isoformat(),
                "folder": folder,
                "isPublic": str(public).lower(),
            },
            public=public,
            signed_url_days=SIGNED_URL_DAYS,
        )

        await log_info(f"Файл {path} загружен пользователем {user.uid}", logger_name=LOGGER_NAME)
        return {
            "message": "Arquivo enviado com sucesso",
            "file": {
                "url": url,
                "fileName": name,
                "fileSize": len(content),
                "fileType": content_type,
                "path": path,
            },
        }

    async def list_files(self, user: AuthUser, folder: str | None = None, file_type: str | None = None) -> dict[str, Any]:
        folder = validate_folder(folder)
        files = await self.firebase.list_files(f"users/{user.uid}/{folder}/", LIST_LIMIT)
        if file_type:
            files = [f for f in files if matches_category(f.get("contentType"), file_type)]
        return {"files": files, "total": len(files), "folder": folder}

    async def delete_file(self, user: AuthUser, path: str | None) -> dict[str, Any]:
        if not path:
            raise ValueError("Caminho do arquivo é obrigatório")
        if not path.startswith(f"users/{user.uid}/") or ".." in path.split("/"):
            raise PermissionError("Acesso negado")
        if not await self.firebase.delete_file(path):
            raise LookupError("Arquivo não encontrado")
        return {"message": "Arquivo deletado com sucesso", "path": path}
