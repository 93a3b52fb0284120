import logging
import time
from typing import Dict, Iterable

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from sqlgen.config import Settings
from sqlgen.errors import ConfigError

log = logging.getLogger(__name__)

# кеш движков по DSN
_engines: Dict[str, Engine] = {}


def get_engine(dsn: str) -> Engine:
    """
    Возвращает (или создаёт) SQLAlchemy Engine для DSN песочницы/хранилища.
    """
    if not dsn:
        raise ConfigError("DSN is empty. Set BASE_DSN / STORE_DSN in your .env file.")
    if dsn in _engines:
        return _engines[dsn]

    url = make_url(dsn)
    log.debug("[db] DSN: %s", url.render_as_string(hide_password=True))
    connect_args = {}
    if url.get_backend_name() == "postgresql":
        connect_args["connect_timeout"] = 5
    engine = create_engine(
        url,
        echo=False,
        pool_pre_ping=True,             # пинг перед выдачей соединения из пула
        connect_args=connect_args,
    )
    _engines[dsn] = engine
    return engine


def dispose_engines() -> None:
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


def test_connection(dsn: str) -> bool:
    """
    Пинг базы: выполняет SELECT 1. Возвращает True/False.
    """
    try:
        eng = get_engine(dsn)
        t0 = time.perf_counter()
        with eng.connect() as conn:
            conn.execute(text("SELECT 1"))
        dt = (time.perf_counter() - t0) * 1000
        log.info("[db] OK  '%s' (%.1f ms)", eng.url.render_as_string(hide_password=True), dt)
        return True
    except SQLAlchemyError as e:
        log.warning("[db] ERR '%s': %s", dsn, e)
        return False


def startup_healthcheck(settings: Settings, dsns: Iterable[str] = (), strict: bool = False) -> int:
    """
    Проверка соединений при старте:
    - песочница из settings.sandbox_dsn плюс переданные dsns
    - strict=True -> RuntimeError, если есть ошибки
    Возвращает число неудачных проверок.
    """
    targets = [d for d in [settings.sandbox_dsn, *dsns] if d]
    if not targets:
        return 0

    log.info("[startup] health check for %d database(s)", len(targets))
    failures = sum(1 for dsn in targets if not test_connection(dsn))
    if failures:
        msg = f"[startup] {failures} connection(s) failed"
        if strict:
            raise RuntimeError(msg)
        log.warning(msg)
    return failures
