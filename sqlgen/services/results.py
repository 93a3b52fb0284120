from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ExecuteResult:
    """Результат выполнения запроса: {columns, rows, totalRows, executionTime}."""

    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
    execution_time: Optional[float] = None  # ms

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ExecuteResult":
        data = data or {}
        rows = list(data.get("rows") or [])
        columns = list(data.get("columns") or [])
        if not columns and rows and isinstance(rows[0], dict):
            columns = list(rows[0])
        total = data.get("totalRows")
        return cls(
            columns=columns,
            rows=rows,
            total_rows=int(total) if total is not None else len(rows),
            execution_time=data.get("executionTime"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": self.columns,
            "rows": self.rows,
            "totalRows": self.total_rows,
            "executionTime": self.execution_time,
        }
