from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class DatabaseColumn:
    name: str
    type: str
    nullable: bool = True
    is_primary_key: bool = False
    is_foreign_key: bool = False
    referenced_table: Optional[str] = None
    referenced_column: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseColumn":
        return cls(
            name=data["name"],
            type=data.get("type") or "",
            nullable=bool(data.get("nullable", True)),
            is_primary_key=bool(data.get("isPrimaryKey", False)),
            is_foreign_key=bool(data.get("isForeignKey", False)),
            referenced_table=data.get("referencedTable"),
            referenced_column=data.get("referencedColumn"),
        )


@dataclass
class DatabaseTable:
    name: str
    columns: List[DatabaseColumn] = field(default_factory=list)
    row_count: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseTable":
        return cls(
            name=data["name"],
            columns=[DatabaseColumn.from_dict(c) for c in data.get("columns") or []],
            row_count=data.get("rowCount"),
        )


@dataclass
class DatabaseView:
    name: str
    columns: List[DatabaseColumn] = field(default_factory=list)


@dataclass
class DatabaseSchema:
    tables: List[DatabaseTable] = field(default_factory=list)
    views: List[DatabaseView] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DatabaseSchema":
        """Схема в формате GET /connections/:id/schema (tables/views)."""
        if not data:
            return cls()
        return cls(
            tables=[DatabaseTable.from_dict(t) for t in data.get("tables") or []],
            views=[
                DatabaseView(v["name"], [DatabaseColumn.from_dict(c) for c in v.get("columns") or []])
                for v in data.get("views") or []
            ],
        )
