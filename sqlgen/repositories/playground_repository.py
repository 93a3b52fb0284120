# sqlgen/repositories/playground_repository.py
from typing import List, Dict, Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine

from sqlgen.playground.models import Playground, QueryHistoryItem, parse_dt

_DDL = [
    """
    CREATE TABLE IF NOT EXISTS playgrounds (
        id VARCHAR(64) PRIMARY KEY,
        name TEXT NOT NULL,
        database_id VARCHAR(64),
        current_sql TEXT NOT NULL DEFAULT '',
        current_prompt TEXT NOT NULL DEFAULT '',
        current_explanation TEXT NOT NULL DEFAULT '',
        last_updated VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS playground_history (
        id VARCHAR(64) PRIMARY KEY,
        playground_id VARCHAR(64) NOT NULL REFERENCES playgrounds(id) ON DELETE CASCADE,
        position INTEGER NOT NULL,
        prompt TEXT NOT NULL DEFAULT '',
        sql_text TEXT NOT NULL,
        ts VARCHAR(40) NOT NULL,
        has_error BOOLEAN NOT NULL,
        error_text TEXT,
        row_count INTEGER,
        execution_time REAL,
        explanation TEXT
    )
    """,
]


class PlaygroundRepository:
    """
    Локальное хранилище плейграундов (вместо localStorage браузера).
    История хранится отдельной таблицей, position 0 - самый свежий запуск.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.ensure_schema()

    def ensure_schema(self) -> None:
        with self.engine.begin() as conn:
            for ddl in _DDL:
                conn.execute(text(ddl))

    def save_playground(self, playground: Playground) -> None:
        """Upsert плейграунда и полная перезапись его истории."""
        params = {
            "id": playground.id,
            "name": playground.name,
            "db": playground.database_id,
            "sql": playground.current_sql,
            "prompt": playground.current_prompt,
            "expl": playground.current_explanation,
            "ts": playground.last_updated.isoformat(),
        }
        with self.engine.begin() as conn:
            updated = conn.execute(
                text("""
                    UPDATE playgrounds
                    SET name = :name, database_id = :db, current_sql = :sql,
                        current_prompt = :prompt, current_explanation = :expl, last_updated = :ts
                    WHERE id = :id
                """),
                params,
            ).rowcount
            if not updated:
                conn.execute(
                    text("""
                        INSERT INTO playgrounds
                            (id, name, database_id, current_sql, current_prompt, current_explanation, last_updated)
                        VALUES (:id, :name, :db, :sql, :prompt, :expl, :ts)
                    """),
                    params,
                )

            conn.execute(text("DELETE FROM playground_history WHERE playground_id = :id"), {"id": playground.id})
            if playground.history:
                conn.execute(
                    text("""
                        INSERT INTO playground_history
                            (id, playground_id, position, prompt, sql_text, ts, has_error,
                             error_text, row_count, execution_time, explanation)
                        VALUES (:id, :pg, :pos, :prompt, :sql, :ts, :err, :err_text, :rows, :dt, :expl)
                    """),
                    [
                        {
                            "id": h.id,
                            "pg": playground.id,
                            "pos": pos,
                            "prompt": h.prompt,
                            "sql": h.sql,
                            "ts": h.timestamp.isoformat(),
                            "err": h.has_error,
                            "err_text": h.error,
                            "rows": h.row_count,
                            "dt": h.execution_time,
                            "expl": h.explanation,
                        }
                        for pos, h in enumerate(playground.history)
                    ],
                )

    def get_playground(self, playground_id: str) -> Optional[Playground]:
        with self.engine.connect() as conn:
            row = conn.execute(
                text("SELECT * FROM playgrounds WHERE id = :id"), {"id": playground_id}
            ).mappings().fetchone()
            if not row:
                return None
            history = conn.execute(
                text("""
                    SELECT * FROM playground_history
                    WHERE playground_id = :id
                    ORDER BY position
                """),
                {"id": playground_id},
            ).mappings().all()
        return self._to_playground(dict(row), [dict(h) for h in history])

    def load_playground(self, playground_id: str) -> Optional[Playground]:
        return self.get_playground(playground_id)

    def list_playgrounds(self) -> List[Dict[str, Any]]:
        """Краткий список без истории, свежие сверху."""
        with self.engine.connect() as conn:
            rows = conn.execute(text("""
                SELECT p.id, p.name, p.database_id, p.last_updated,
                       (SELECT COUNT(*) FROM playground_history h WHERE h.playground_id = p.id) AS runs
                FROM playgrounds p
                ORDER BY p.last_updated DESC
            """)).mappings().all()
        return [dict(r) for r in rows]

    def delete_playground(self, playground_id: str) -> bool:
        with self.engine.begin() as conn:
            conn.execute(text("DELETE FROM playground_history WHERE playground_id = :id"), {"id": playground_id})
            deleted = conn.execute(text("DELETE FROM playgrounds WHERE id = :id"), {"id": playground_id}).rowcount
        return bool(deleted)

    @staticmethod
    def _to_playground(row: Dict[str, Any], history: List[Dict[str, Any]]) -> Playground:
        return Playground(
            id=row["id"],
            name=row["name"],
            database_id=row["database_id"],
            current_sql=row["current_sql"],
            current_prompt=row["current_prompt"],
            current_explanation=row["current_explanation"],
            last_updated=parse_dt(row["last_updated"]),
            history=[
                QueryHistoryItem(
                    id=h["id"],
                    prompt=h["prompt"],
                    sql=h["sql_text"],
                    timestamp=parse_dt(h["ts"]),
                    has_error=bool(h["has_error"]),
                    error=h["error_text"],
                    row_count=h["row_count"],
                    execution_time=h["execution_time"],
                    explanation=h["explanation"],
                )
                for h in history
            ],
        )
