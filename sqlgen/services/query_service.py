from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlgen.api.client import ApiClient
from sqlgen.api.envelope import unwrap
from sqlgen.errors import ApiError, GenerationError
from sqlgen.sql.response import GeneratedSql, unwrap_generated_sql


@dataclass
class GeneratedQuery:
    record: Dict[str, Any]  # data.query как его вернул бэкенд
    sql: str
    explanation: str

    @property
    def query_id(self) -> Optional[str]:
        return self.record.get("id")


class QueryService:
    """Генерация SQL по промпту и выполнение сохранённых запросов."""

    def __init__(self, api: ApiClient):
        self.api = api

    def generate_query(
        self,
        prompt: str,
        connection_id: str,
        playground_id: Optional[str] = None,
        enforce_dql: Optional[bool] = None,
    ) -> GeneratedQuery:
        payload: Dict[str, Any] = {"prompt": prompt, "connectionId": connection_id}
        if playground_id is not None:
            payload["playgroundId"] = playground_id
        if enforce_dql is not None:
            payload["enforceDQL"] = enforce_dql

        response = self.api.post("/queries/generate", payload)
        record = unwrap(response, "query")
        if not isinstance(record, dict):
            raise ApiError("Unexpected response from /queries/generate", data=response)

        parsed = unwrap_generated_sql(record.get("sqlQuery"), record.get("explanation") or "")
        return GeneratedQuery(record, parsed.sql, parsed.explanation)

    def generate_sql(
        self, prompt: str, connection_id: str, playground_id: Optional[str] = None
    ) -> GeneratedSql:
        """Вариант для PlaygroundSession: только SQL и объяснение."""
        if not prompt.strip():
            raise GenerationError("Please provide a valid prompt")
        generated = self.generate_query(prompt, connection_id, playground_id=playground_id)
        if not generated.sql:
            raise GenerationError("No SQL query generated")
        return GeneratedSql(generated.sql, generated.explanation)

    def execute_query(self, query_id: str, sql_query: str) -> Any:
        return self.api.post("/queries/execute", {"queryId": query_id, "sqlQuery": sql_query})
