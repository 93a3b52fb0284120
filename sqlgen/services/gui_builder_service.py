from typing import Union

from sqlgen.api.client import ApiClient
from sqlgen.api.envelope import unwrap
from sqlgen.errors import QueryExecutionError
from sqlgen.services.results import ExecuteResult
from sqlgen.sql.compiler import BoundQuery


class GuiBuilderService:
    """POST /gui-builder/execute {connectionId, sqlQuery}."""

    def __init__(self, api: ApiClient):
        self.api = api

    def execute_query(self, connection_id: str, sql_query: Union[str, BoundQuery]) -> ExecuteResult:
        if isinstance(sql_query, BoundQuery):
            # бэкенд принимает только текст, параметры передать некуда
            if sql_query.params:
                raise QueryExecutionError("Remote execution accepts plain SQL text only", sql_query.sql)
            sql_query = sql_query.sql
        response = self.api.post("/gui-builder/execute", {
            "connectionId": connection_id,
            "sqlQuery": sql_query,
        })
        data = unwrap(response, "data")
        return ExecuteResult.from_dict(data if isinstance(data, dict) else None)
