import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from sqlgen.errors import ConfigError

DEFAULT_API_URL = "http://localhost:3000/api"

# порты по умолчанию для формы подключения
DEFAULT_PORTS = {"mysql": 3306, "postgresql": 5432, "mongodb": 27017}


def _default_ports() -> Dict[str, int]:
    return dict(DEFAULT_PORTS)


@dataclass
class Settings:
    """
    Конфигурация клиента. Создаётся один раз при старте и передаётся
    явно во все сервисы (ApiClient, движки SQLAlchemy, PlaygroundSession).
    """

    api_base_url: str = DEFAULT_API_URL
    auth_header_prefix: str = "Bearer"
    auth_token_key: str = "authToken"
    request_timeout: Optional[float] = 30.0
    sandbox_dsn: Optional[str] = None
    store_dsn: str = "sqlite:///sqlgen.db"
    history_limit: int = 100
    default_ports: Dict[str, int] = field(default_factory=_default_ports)
    enable_sample_databases: bool = True

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Прочитать настройки из окружения (и из .env, если он есть).
        Значения, уже выставленные в окружении, .env не перетирает.
        """
        load_dotenv(env_file)

        ports = _default_ports()
        for db_type in list(ports):
            raw = os.getenv(f"DEFAULT_DB_PORT_{db_type.upper()}")
            if raw:
                ports[db_type] = _parse_int(f"DEFAULT_DB_PORT_{db_type.upper()}", raw)

        timeout_raw = os.getenv("REQUEST_TIMEOUT", "").strip()
        if timeout_raw.lower() in ("0", "none", "off"):
            timeout = None
        elif timeout_raw:
            timeout = _parse_float("REQUEST_TIMEOUT", timeout_raw)
        else:
            timeout = cls.request_timeout

        history_raw = os.getenv("HISTORY_LIMIT", "").strip()
        history_limit = _parse_int("HISTORY_LIMIT", history_raw) if history_raw else cls.history_limit
        if history_limit < 1:
            raise ConfigError("HISTORY_LIMIT must be a positive integer")

        return cls(
            api_base_url=os.getenv("API_URL") or DEFAULT_API_URL,
            auth_header_prefix=os.getenv("AUTH_HEADER_PREFIX") or "Bearer",
            auth_token_key=os.getenv("AUTH_TOKEN_KEY") or "authToken",
            request_timeout=timeout,
            sandbox_dsn=os.getenv("BASE_DSN") or None,
            store_dsn=os.getenv("STORE_DSN") or cls.store_dsn,
            history_limit=history_limit,
            default_ports=ports,
            enable_sample_databases=os.getenv("ENABLE_SAMPLE_DATABASES", "true").lower() == "true",
        )


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
