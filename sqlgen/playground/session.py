"""
Оркестрация плейграунда: промпт -> сгенерированный SQL -> выполнение -> история.

    IDLE -> GENERATING -> IDLE          generate_sql_from_prompt()
    IDLE -> EXECUTING  -> IDLE          execute_query()

Ошибки наружу не пробрасываются: текст последней ошибки лежит в session.error,
предыдущий SQL при этом не меняется. Вызовы во время GENERATING/EXECUTING
игнорируются (защита от повторного нажатия).
"""
from __future__ import annotations

import enum
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Protocol, Union

from sqlalchemy.exc import SQLAlchemyError

from sqlgen.errors import SqlgenError
from sqlgen.playground.models import Playground, QueryHistoryItem, utcnow
from sqlgen.services.results import ExecuteResult
from sqlgen.sql.formatter import is_dml_query, parse_error_message
from sqlgen.sql.response import GeneratedSql

log = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


class Status(enum.Enum):
    IDLE = "idle"
    GENERATING = "generating"
    EXECUTING = "executing"


class SqlGenerator(Protocol):
    def generate_sql(self, prompt: str, connection_id: str, playground_id: Optional[str] = None) -> GeneratedSql:
        ...


class QueryExecutor(Protocol):
    def execute_query(self, connection_id: str, sql_query: str) -> ExecuteResult:
        ...


class PlaygroundStore(Protocol):
    def save_playground(self, playground: Playground) -> None:
        ...

    def load_playground(self, playground_id: str) -> Optional[Playground]:
        ...


class PlaygroundSession:
    def __init__(
        self,
        generator: SqlGenerator,
        executor: QueryExecutor,
        store: Optional[PlaygroundStore] = None,
        connection_id: Optional[str] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        fallback_store: Optional[PlaygroundStore] = None,
    ):
        self.generator = generator
        self.executor = executor
        self.store = store
        self.fallback_store = fallback_store
        self.connection_id = connection_id
        self.history_limit = max(1, history_limit)

        self.playground: Optional[Playground] = None
        self.status = Status.IDLE
        self.error: Optional[str] = None
        self.query_results: Optional[List[Dict[str, Any]]] = None
        self.last_result: Optional[ExecuteResult] = None

    @property
    def is_generating(self) -> bool:
        return self.status is Status.GENERATING

    @property
    def is_executing(self) -> bool:
        return self.status is Status.EXECUTING

    # --- lifecycle ---

    def create_playground(self, name: str, database_id: Optional[str] = None) -> Playground:
        self.playground = Playground(name=name, database_id=database_id)
        self.query_results = None
        self.error = None
        if database_id:
            self.connection_id = database_id
        self._persist()
        return self.playground

    def load_playground(self, playground_id: str) -> Optional[Playground]:
        """Сначала основное хранилище, при ошибке или пустом ответе - запасное."""
        self.error = None
        found = None
        for store in (self.store, self.fallback_store):
            if store is None:
                continue
            try:
                found = store.load_playground(playground_id)
            except (SqlgenError, SQLAlchemyError) as e:
                log.info("[playground] could not load %s from %s: %s", playground_id, type(store).__name__, e)
                continue
            if found is not None:
                break

        if found is None:
            self.error = f"Playground with ID {playground_id} not found"
            return None

        self.playground = found
        self.query_results = None
        if found.database_id:
            self.connection_id = found.database_id
        return found

    def save_playground(self, **updates: Any) -> None:
        if self.playground is None:
            return
        self.playground = replace(self.playground, **updates, last_updated=utcnow())
        self._persist()

    # --- generate ---

    def generate_sql_from_prompt(self, prompt: str) -> None:
        if self.status is not Status.IDLE:
            log.debug("[playground] generate ignored while %s", self.status.value)
            return
        if self.playground is None:
            self.error = "No active playground"
            return
        if not self.connection_id:
            self.error = "No active database connection"
            return
        if not prompt.strip():
            self.error = "Please provide a valid prompt"
            return

        self.status = Status.GENERATING
        self.error = None
        try:
            # промпт сохраняем сразу, до ответа генератора
            self.save_playground(current_prompt=prompt)
            generated = self.generator.generate_sql(
                prompt, self.connection_id, playground_id=self.playground.id
            )
        except SqlgenError as e:
            self.error = str(e) or "Failed to generate SQL"
            log.info("[playground] generation failed: %s", self.error)
            return
        finally:
            self.status = Status.IDLE

        self.save_playground(
            current_sql=generated.sql,
            current_prompt=prompt,
            current_explanation=generated.explanation,
        )

    # --- execute ---

    def execute_query(self, confirm_dml: bool = False) -> Optional[ExecuteResult]:
        if self.status is not Status.IDLE:
            log.debug("[playground] execute ignored while %s", self.status.value)
            return None
        if self.playground is None or not self.playground.current_sql.strip():
            self.error = "No SQL query to execute"
            return None
        if not self.connection_id:
            self.error = "No active database connection"
            return None

        pg = self.playground
        if is_dml_query(pg.current_sql) and not confirm_dml:
            self.error = "This query modifies data. Confirm execution to continue."
            return None

        self.status = Status.EXECUTING
        self.error = None
        try:
            result = self.executor.execute_query(self.connection_id, pg.current_sql)
        except SqlgenError as e:
            message = parse_error_message(str(e) or "Failed to execute query")
            self.error = message
            self.query_results = None
            self.last_result = None
            self._add_history(QueryHistoryItem(
                prompt=pg.current_prompt,
                sql=pg.current_sql,
                has_error=True,
                error=message,
                explanation=pg.current_explanation,
            ))
            return None
        finally:
            self.status = Status.IDLE

        self.query_results = result.rows
        self.last_result = result
        self._add_history(QueryHistoryItem(
            prompt=pg.current_prompt,
            sql=pg.current_sql,
            row_count=result.total_rows,
            execution_time=result.execution_time,
            explanation=pg.current_explanation,
        ))
        return result

    # --- history ---

    def select_history_item(self, key: Union[int, str]) -> None:
        """Восстановить SQL/промпт/объяснение из истории (по индексу или id), без запуска."""
        if self.playground is None:
            return
        history = self.playground.history
        if isinstance(key, int):
            item = history[key] if 0 <= key < len(history) else None
        else:
            item = next((h for h in history if h.id == key), None)
        if item is None:
            return
        self.save_playground(
            current_sql=item.sql,
            current_prompt=item.prompt,
            current_explanation=item.explanation or "",
        )

    def set_current_sql(self, sql: str) -> None:
        self.save_playground(current_sql=sql)

    def clear_history(self) -> None:
        self.save_playground(history=[])

    # --- internal ---

    def _add_history(self, item: QueryHistoryItem) -> None:
        # свежие сверху; старые записи за пределами лимита отбрасываются
        history = [item] + self.playground.history[: self.history_limit - 1]
        self.save_playground(history=history)

    def _persist(self) -> None:
        if self.store is None or self.playground is None:
            return
        try:
            self.store.save_playground(self.playground)
        except (SqlgenError, SQLAlchemyError) as e:
            log.warning("[playground] failed to save %s: %s", self.playground.id, e)
            if self.fallback_store is None:
                self.error = self.error or f"Failed to save playground: {e}"
                return
            try:
                self.fallback_store.save_playground(self.playground)
            except (SqlgenError, SQLAlchemyError) as e2:
                log.error("[playground] fallback save of %s failed: %s", self.playground.id, e2)
                # ошибка выполнения запроса важнее ошибки сохранения
                self.error = self.error or f"Failed to save playground: {e2}"
