from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def parse_dt(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return utcnow()


@dataclass
class QueryHistoryItem:
    prompt: str
    sql: str
    has_error: bool = False
    error: Optional[str] = None
    row_count: Optional[int] = None
    execution_time: Optional[float] = None
    explanation: Optional[str] = None
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "sql": self.sql,
            "timestamp": self.timestamp.isoformat(),
            "hasError": self.has_error,
            "error": self.error,
            "rowCount": self.row_count,
            "executionTime": self.execution_time,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryHistoryItem":
        return cls(
            id=data.get("id") or new_id(),
            prompt=data.get("prompt") or "",
            sql=data.get("sql") or "",
            timestamp=parse_dt(data.get("timestamp")),
            has_error=bool(data.get("hasError", False)),
            error=data.get("error"),
            row_count=data.get("rowCount"),
            execution_time=data.get("executionTime"),
            explanation=data.get("explanation"),
        )


@dataclass
class Playground:
    """Именованная сессия: подключение + текущий SQL + история запусков."""

    name: str
    database_id: Optional[str] = None
    current_sql: str = ""
    current_prompt: str = ""
    current_explanation: str = ""
    history: List[QueryHistoryItem] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    last_updated: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "databaseId": self.database_id,
            "currentSql": self.current_sql,
            "currentPrompt": self.current_prompt,
            "currentExplanation": self.current_explanation,
            "history": [h.to_dict() for h in self.history],
            "lastUpdated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Playground":
        """
        Понимает и локальный формат (to_dict), и ответ API, где подключение
        лежит в connections[0].connectionId, а дата - в updatedAt/createdAt.
        """
        database_id = data.get("databaseId")
        if database_id is None:
            connections = data.get("connections") or []
            if connections:
                database_id = connections[0].get("connectionId")
        history = data.get("history")
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name") or "",
            database_id=database_id,
            current_sql=data.get("currentSql") or "",
            current_prompt=data.get("currentPrompt") or "",
            current_explanation=data.get("currentExplanation") or "",
            history=[QueryHistoryItem.from_dict(h) for h in history] if isinstance(history, list) else [],
            last_updated=parse_dt(data.get("lastUpdated") or data.get("updatedAt") or data.get("createdAt")),
        )
