import logging
import time
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sqlgen.errors import QueryExecutionError
from sqlgen.services.results import ExecuteResult
from sqlgen.sql.compiler import BoundQuery

log = logging.getLogger(__name__)

Query = Union[str, BoundQuery]


class LocalQueryExecutor:
    """
    Выполнение запросов на локальной песочнице (любой движок SQLAlchemy).
    Тот же интерфейс, что у GuiBuilderService: execute_query(connection_id, sql).
    """

    def __init__(self, engine: Engine, max_rows: Optional[int] = None):
        self.engine = engine
        self.max_rows = max_rows
        self.on_executed: Optional[Callable[[Dict[str, Any]], None]] = None

    def run(self, query: Query, params: Optional[Dict[str, Any]] = None) -> ExecuteResult:
        if isinstance(query, BoundQuery):
            stmt, sql = query.to_text(), query.sql
        else:
            stmt, sql = text(query), query
        if not sql.strip():
            raise QueryExecutionError("No SQL query to execute", sql)

        t0 = time.perf_counter()
        cols, rows, total = [], [], 0
        try:
            with self.engine.begin() as conn:
                res = conn.execute(stmt, params or {})
                if res.returns_rows:
                    cols = list(res.keys())
                    for r in res.mappings():
                        total += 1
                        if self.max_rows is None or len(rows) < self.max_rows:
                            rows.append(dict(r))
                else:
                    total = max(res.rowcount, 0)
        except SQLAlchemyError as e:
            dt = round((time.perf_counter() - t0) * 1000, 2)
            log.info("[local] query failed after %s ms: %s", dt, e)
            self._notify(sql, False, dt, str(e))
            # текст ошибки драйвера без SQL и ссылок на документацию
            message = str(getattr(e, "orig", None) or e)
            raise QueryExecutionError(message, sql) from e

        dt = round((time.perf_counter() - t0) * 1000, 2)
        self._notify(sql, True, dt, None)
        return ExecuteResult(columns=cols, rows=rows, total_rows=total, execution_time=dt)

    def execute_query(self, connection_id: Optional[str], sql: Query) -> ExecuteResult:
        # connection_id не нужен: движок уже привязан к песочнице
        return self.run(sql)

    def _notify(self, sql: str, ok: bool, duration_ms: float, error: Optional[str]) -> None:
        cb = self.on_executed
        if callable(cb):
            cb({"sql_text": sql, "ok": ok, "duration_ms": duration_ms, "error_text": error})
