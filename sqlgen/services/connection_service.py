from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlgen.api.client import ApiClient
from sqlgen.api.envelope import unwrap
from sqlgen.errors import ApiError
from sqlgen.schema.model import DatabaseSchema
from sqlgen.services.results import ExecuteResult

log = logging.getLogger(__name__)


@dataclass
class DatabaseConnection:
    id: str
    name: str
    type: str
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    status: str = "connected"
    last_connected: Optional[datetime] = None
    sandbox_db: Optional[Dict[str, str]] = None

    @property
    def is_sandbox(self) -> bool:
        return self.sandbox_db is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseConnection":
        updated = data.get("updatedAt")
        sandbox = data.get("sandboxDb")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            type=data.get("type") or "",
            host=data.get("host") or None,
            port=data.get("port"),
            username=data.get("username"),
            # есть данные - считаем подключённым
            status="connected",
            last_connected=datetime.fromisoformat(updated.replace("Z", "+00:00")) if updated else None,
            sandbox_db={"id": sandbox["id"], "name": sandbox["name"]} if sandbox else None,
        )


class ConnectionService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_connections(self) -> List[DatabaseConnection]:
        items = unwrap(self.api.get("/connections"), "connections", default=[])
        if not isinstance(items, list):
            log.warning("[connections] connections is not a list: %r", items)
            return []
        return [DatabaseConnection.from_dict(c) for c in items]

    def get_connection(self, connection_id: str) -> DatabaseConnection:
        data = unwrap(self.api.get(f"/connections/{connection_id}"), "connection")
        if not isinstance(data, dict):
            raise ApiError(f"Connection {connection_id} not found", status=404)
        return DatabaseConnection.from_dict(data)

    def create_connection(self, params: Dict[str, Any]) -> DatabaseConnection:
        """params: name, type, host, port, username, password, database, createSandbox..."""
        data = unwrap(self.api.post("/connections", params), "connection")
        if not isinstance(data, dict):
            raise ApiError("Failed to connect to database", data=data)
        return DatabaseConnection.from_dict(data)

    def upload_sqlite(self, name: str, path: str, create_sandbox: bool = True) -> DatabaseConnection:
        with open(path, "rb") as fh:
            response = self.api.upload_file(
                "/connections/sqlite-upload",
                files={"sqliteFile": fh},
                data={"name": name, "type": "sqlite", "createSandbox": "true" if create_sandbox else "false"},
            )
        return DatabaseConnection.from_dict(unwrap(response, "connection"))

    def test_connection(self, params: Dict[str, Any]) -> bool:
        try:
            self.api.post("/connections/test", params)
            return True
        except ApiError as e:
            log.info("[connections] test failed: %s", e)
            return False

    def delete_connection(self, connection_id: str) -> None:
        self.api.delete(f"/connections/{connection_id}")

    def refresh_schema(self, connection_id: str) -> DatabaseSchema:
        schema = unwrap(self.api.get(f"/connections/{connection_id}/schema"), "schema")
        if not isinstance(schema, dict):
            log.warning("[connections] unexpected schema response for %s", connection_id)
            return DatabaseSchema()
        return DatabaseSchema.from_dict(schema)

    def execute_query(self, connection_id: str, sql_query: str) -> ExecuteResult:
        """POST /queries/execute {connectionId, sqlQuery} -> query.result."""
        query = unwrap(self.api.post("/queries/execute", {
            "connectionId": connection_id,
            "sqlQuery": sql_query,
        }), "query") or {}
        result = query.get("result") or {}
        rows = result.get("rows") or []
        return ExecuteResult(
            columns=list(result.get("columns") or (rows[0].keys() if rows else [])),
            rows=rows,
            total_rows=result.get("rowCount") or len(rows),
            execution_time=query.get("executionTime") or 0,
        )
