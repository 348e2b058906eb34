# src/infra/firebase.py
"""
Клиент Firebase Admin: проверка ID-токенов, профили Auth, custom claims,
push через Cloud Messaging и файлы в Cloud Storage.

SDK синхронный, поэтому вызовы уходят в пул потоков (asyncio.to_thread).
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any

import firebase_admin
import httpx
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials, messaging, storage
from firebase_admin.exceptions import FirebaseError, InvalidArgumentError

from src.common.logger import log_info, log_warning
from src.shared.models.notification import PushPayload

LOGGER_NAME = "petshop.firebase"


class FirebaseAuthError(Exception):
    """Ошибка Firebase Auth с кодом (user-not-found, invalid-token, INVALID_PASSWORD, ...)."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code


class PushDeliveryError(Exception):
    """Ошибка доставки push. token_invalid=True - токен больше не действителен."""

    def __init__(self, message: str, token_invalid: bool = False) -> None:
        super().__init__(message)
        self.token_invalid = token_invalid


def _is_invalid_token_error(error: Exception) -> bool:
    if isinstance(error, messaging.UnregisteredError):
        return True
    return isinstance(error, InvalidArgumentError) and "registration token" in str(error).lower()


def build_fcm_message(token: str, push: PushPayload) -> messaging.Message:
    """Собирает сообщение FCM с настройками Android, APNs и Web Push."""
    high = push.priority == "high"

    webpush_actions = None
    if push.action_url:
        webpush_actions = [messaging.WebpushNotificationAction(action="open", title=push.open_action_title)]

    return messaging.Message(
        token=token,
        notification=messaging.Notification(
            title=push.title,
            body=push.body,
            image=push.image_url,
        ),
        data={k: str(v) for k, v in push.data.items()},
        android=messaging.AndroidConfig(
            priority="high" if high else "normal",
            notification=messaging.AndroidNotification(
                channel_id=push.channel_id,
                priority="high" if high else "default",
                default_sound=True,
                default_vibrate_timings=True,
            ),
        ),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    alert=messaging.ApsAlert(title=push.title, body=push.body),
                    sound="default",
                    badge=1,
                ),
            ),
        ),
        webpush=messaging.WebpushConfig(
            notification=messaging.WebpushNotification(
                title=push.title,
                body=push.body,
                icon=push.icon,
                badge=push.badge,
                image=push.image_url,
                require_interaction=high,
                actions=webpush_actions,
            ),
            fcm_options=messaging.WebpushFCMOptions(link=push.action_url) if push.action_url else None,
        ),
    )


class FirebaseClient:
    """
    Обёртка над firebase_admin (Singleton).
    Приложение инициализируется один раз сервисным аккаунтом из настроек.
    """

    _instance: FirebaseClient | None = None

    def __new__(cls) -> FirebaseClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._app: firebase_admin.App | None = None
        self._web_api_key = ""
        self._auth_rest_url = "https://identitytoolkit.googleapis.com/v1"

    @property
    def app(self) -> firebase_admin.App:
        if self._app is None:
            raise RuntimeError("Firebase не инициализирован. Вызовите initialize() сначала.")
        return self._app

    async def initialize(self) -> None:
        from src.config import settings

        if self._app is not None:
            return

        cfg = settings.firebase
        self._web_api_key = cfg.WEB_API_KEY
        self._auth_rest_url = cfg.AUTH_REST_URL
        options = {"projectId": cfg.PROJECT_ID}
        if cfg.STORAGE_BUCKET:
            options["storageBucket"] = cfg.STORAGE_BUCKET

        try:
            self._app = firebase_admin.get_app()
            return
        except ValueError:
            pass

        if cfg.is_configured:
            cred = credentials.Certificate({
                "type": "service_account",
                "project_id": cfg.PROJECT_ID,
                "private_key": cfg.PRIVATE_KEY,
                "client_email": cfg.CLIENT_EMAIL,
                "token_uri": "https://oauth2.googleapis.com/token",
            })
            self._app = firebase_admin.initialize_app(cred, options)
            await log_info("Firebase Admin инициализирован сервисным аккаунтом", logger_name=LOGGER_NAME)
        else:
            self._app = firebase_admin.initialize_app(credentials.ApplicationDefault(), options)
            await log_warning(
                "Ключ сервисного аккаунта не задан, используются Application Default Credentials",
                logger_name=LOGGER_NAME,
            )

    # =========================================================================
    # AUTH
    # =========================================================================

    async def verify_id_token(self, id_token: str) -> dict[str, Any]:
        """Проверяет ID-токен клиента и возвращает его claims (uid, email, ...)."""
        try:
            return await asyncio.to_thread(firebase_auth.verify_id_token, id_token, self.app)
        except (ValueError, FirebaseError) as e:
            raise FirebaseAuthError("invalid-token", str(e)) from e

    async def get_user(self, uid: str) -> dict[str, Any]:
        try:
            record = await asyncio.to_thread(firebase_auth.get_user, uid, self.app)
        except firebase_auth.UserNotFoundError as e:
            raise FirebaseAuthError("user-not-found", str(e)) from e
        except (ValueError, FirebaseError) as e:
            raise FirebaseAuthError("internal-error", str(e)) from e

        return {
            "uid": record.uid,
            "email": record.email,
            "display_name": record.display_name,
            "photo_url": record.photo_url,
            "disabled": record.disabled,
            "custom_claims": record.custom_claims or {},
        }

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        """
        Вход по email и паролю через REST API Firebase Auth.
        Код ошибки (EMAIL_NOT_FOUND, INVALID_PASSWORD, ...) попадает в FirebaseAuthError.code.
        """
        url = f"{self._auth_rest_url}/accounts:signInWithPassword"
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                url,
                params={"key": self._web_api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
            )

        body = response.json() if response.content else {}
        if response.status_code >= 400:
            message = body.get("error", {}).get("message", "UNKNOWN")
            # Сообщение вида "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account..."
            raise FirebaseAuthError(message.split(" ")[0].strip(), message)

        return {"uid": body.get("localId"), "email": body.get("email"), "id_token": body.get("idToken")}

    async def revoke_refresh_tokens(self, uid: str) -> None:
        try:
            await asyncio.to_thread(firebase_auth.revoke_refresh_tokens, uid, self.app)
        except (ValueError, FirebaseError) as e:
            raise FirebaseAuthError("revoke-failed", str(e)) from e

    async def set_custom_user_claims(self, uid: str, claims: dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(firebase_auth.set_custom_user_claims, uid, claims, self.app)
        except (ValueError, FirebaseError) as e:
            raise FirebaseAuthError("claims-failed", str(e)) from e

    # =========================================================================
    # CLOUD MESSAGING
    # =========================================================================

    async def send_push(self, token: str, push: PushPayload) -> str:
        """
        Отправляет push на один токен устройства.

        Returns:
            message_id от FCM

        Raises:
            PushDeliveryError: при любой ошибке доставки
        """
        message = build_fcm_message(token, push)
        try:
            return await asyncio.to_thread(messaging.send, message, False, self.app)
        except (ValueError, FirebaseError) as e:
            raise PushDeliveryError(str(e), token_invalid=_is_invalid_token_error(e)) from e

    # =========================================================================
    # CLOUD STORAGE
    # =========================================================================

    def _bucket(self) -> Any:
        return storage.bucket(app=self.app)

    async def upload_file(
        self,
        path: str,
        content: bytes,
        content_type: str,
        metadata: dict[str, str],
        public: bool,
        signed_url_days: int = 7,
    ) -> str:
        """Загружает файл и возвращает URL: публичный или подписанный."""
        def _upload() -> str:
            bucket = self._bucket()
            blob = bucket.blob(path)
            blob.metadata = metadata
            blob.upload_from_string(content, content_type=content_type)
            if public:
                blob.make_public()
                return f"https://storage.googleapis.com/{bucket.name}/{path}"
            return blob.generate_signed_url(expiration=timedelta(days=signed_url_days), method="GET")

        return await asyncio.to_thread(_upload)

    async def list_files(self, prefix: str, limit: int) -> list[dict[str, Any]]:
        """Файлы по префиксу с подписанными ссылками на 1 час."""
        def _list() -> list[dict[str, Any]]:
            files = []
            for blob in self._bucket().list_blobs(prefix=prefix, max_results=limit):
                meta = blob.metadata or {}
                files.append({
                    "name": blob.name.rsplit("/", 1)[-1],
                    "path": blob.name,
                    "url": blob.generate_signed_url(expiration=timedelta(hours=1), method="GET"),
                    "size": int(blob.size or 0),
                    "contentType": blob.content_type,
                    "uploadedAt": meta.get("uploadedAt"),
                    "folder": meta.get("folder"),
                    "originalName": meta.get("originalName"),
                })
            return files

        return await asyncio.to_thread(_list)

    async def delete_file(self, path: str) -> bool:
        """Удаляет файл. False, если файла нет."""
        def _delete() -> bool:
            blob = self._bucket().blob(path)
            if not blob.exists():
                return False
            blob.delete()
            return True

        return await asyncio.to_thread(_delete)

    async def health_check(self) -> bool:
        return self._app is not None


def get_firebase() -> FirebaseClient:
    """Возвращает глобальный экземпляр FirebaseClient."""
    return FirebaseClient()


async def init_firebase() -> None:
    await get_firebase().initialize()
