import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlgen.api.client import ApiClient
from sqlgen.api.envelope import unwrap
from sqlgen.errors import ApiError

log = logging.getLogger(__name__)


@dataclass
class User:
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            email=data.get("email") or "",
            avatar_url=data.get("avatarUrl"),
        )


class AuthService:
    """/auth/*: логин/регистрация кладут токен в TokenStore клиента."""

    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, email: str, password: str) -> User:
        try:
            response = self.api.post("/auth/login", {"email": email, "password": password})
        except ApiError as e:
            if e.status == 401:
                raise ApiError("Invalid email or password", e.status, e.status_text, e.data) from e
            if e.status == 403:
                raise ApiError("Account is locked. Please contact support", e.status, e.status_text, e.data) from e
            raise
        return self._store_session(response)

    def signup(self, name: str, email: str, password: str) -> User:
        response = self.api.post("/auth/signup", {"name": name, "email": email, "password": password})
        return self._store_session(response)

    def logout(self) -> None:
        self.api.token_store.clear()

    def is_authenticated(self) -> bool:
        return bool(self.api.token_store.get())

    def current_user(self) -> Optional[User]:
        if not self.is_authenticated():
            return None
        try:
            data = unwrap(self.api.get("/auth/me"), "user")
        except ApiError as e:
            # токен невалиден - сбрасываем
            log.info("[auth] /auth/me failed: %s", e)
            self.api.token_store.clear()
            return None
        return User.from_dict(data) if isinstance(data, dict) else None

    def _store_session(self, response: Any) -> User:
        token = unwrap(response, "token")
        user = unwrap(response, "user")
        if not token or not isinstance(user, dict):
            raise ApiError("Unexpected response from auth endpoint", data=response)
        self.api.token_store.set(token)
        return User.from_dict(user)
