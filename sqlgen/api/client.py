"""
HTTP-клиент к REST API бэкенда.

- базовый URL, префикс заголовка авторизации и таймаут берутся из Settings;
- токен кладётся в заголовок Authorization, если он есть в TokenStore;
- любой сбой превращается в ApiError(message, status, status_text, data);
- 401 очищает токен и вызывает on_unauthorized (переход на логин).
"""
import logging
from typing import Any, Callable, Dict, Optional

import requests

from sqlgen.config import Settings
from sqlgen.errors import ApiError

log = logging.getLogger(__name__)


class TokenStore:
    """Хранилище токена авторизации (в памяти, под ключом из настроек)."""

    def __init__(self, key: str = "authToken"):
        self.key = key
        self._values: Dict[str, str] = {}

    def get(self) -> Optional[str]:
        return self._values.get(self.key)

    def set(self, token: str) -> None:
        self._values[self.key] = token

    def clear(self) -> None:
        self._values.pop(self.key, None)


class ApiClient:
    def __init__(
        self,
        settings: Settings,
        token_store: Optional[TokenStore] = None,
        session: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self.settings = settings
        self.base_url = settings.api_base_url.rstrip("/")
        self.token_store = token_store or TokenStore(settings.auth_token_key)
        self.session = session or requests.Session()
        self.on_unauthorized = on_unauthorized

    # --- public ---

    def get(self, url: str, **kwargs) -> Any:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, data: Any = None, **kwargs) -> Any:
        return self.request("POST", url, json=data, **kwargs)

    def put(self, url: str, data: Any = None, **kwargs) -> Any:
        return self.request("PUT", url, json=data, **kwargs)

    def delete(self, url: str, **kwargs) -> Any:
        return self.request("DELETE", url, **kwargs)

    def upload_file(self, url: str, files: Dict[str, Any], data: Optional[Dict[str, Any]] = None) -> Any:
        # Content-Type с boundary выставит requests
        return self.request("POST", url, files=files, data=data, _multipart=True)

    def request(self, method: str, url: str, _multipart: bool = False, **kwargs) -> Any:
        full_url = self._url(url)
        headers = dict(kwargs.pop("headers", None) or {})
        if not _multipart:
            headers.setdefault("Content-Type", "application/json")
        token = self.token_store.get()
        if token:
            headers["Authorization"] = f"{self.settings.auth_header_prefix} {token}"

        log.debug("[api] %s %s", method, full_url)
        try:
            resp = self.session.request(
                method, full_url, headers=headers, timeout=self.settings.request_timeout, **kwargs
            )
        except requests.RequestException as e:
            log.warning("[api] %s %s failed: %s", method, full_url, e)
            raise ApiError(str(e) or "Unknown error") from e

        if not resp.ok:
            raise self._error_from_response(resp)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    # --- internal ---

    def _url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    def _error_from_response(self, resp: requests.Response) -> ApiError:
        try:
            data = resp.json()
        except ValueError:
            data = resp.text or None

        if resp.status_code == 401:
            self.token_store.clear()
            cb = self.on_unauthorized
            if callable(cb):
                cb()

        message = None
        if isinstance(data, dict):
            message = data.get("message")
        message = message or resp.reason or f"HTTP {resp.status_code}"
        log.info("[api] %s %s -> %s %s", resp.request.method if resp.request else "?", resp.url,
                 resp.status_code, message)
        return ApiError(message, status=resp.status_code, status_text=resp.reason, data=data)
