from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

JOIN_TYPES = ("INNER", "LEFT", "RIGHT", "OUTER")
LOGICAL_OPERATORS = ("AND", "OR")
DIRECTIONS = ("ASC", "DESC")

# операторы WHERE, которые предлагает конструктор
OPERATORS = (
    "=", "<>", ">", "<", ">=", "<=",
    "LIKE", "NOT LIKE", "IN", "NOT IN", "IS NULL", "IS NOT NULL",
)


@dataclass(frozen=True)
class Table:
    name: str
    alias: Optional[str] = None

    @property
    def ref(self) -> str:
        """Имя, под которым таблица видна в запросе."""
        return self.alias or self.name


@dataclass(frozen=True)
class Column:
    name: str
    type: str
    table: str  # имя или алиас таблицы из QueryState.tables

    @property
    def qualified(self) -> str:
        return f"{self.table}.{self.name}"


@dataclass(frozen=True)
class Join:
    type: str
    table: str
    condition: str
    alias: Optional[str] = None

    @property
    def ref(self) -> str:
        return self.alias or self.table


@dataclass(frozen=True)
class WhereCondition:
    id: str
    column: str
    operator: str
    value: str
    logical_operator: Optional[str] = None  # у первого условия не используется


@dataclass(frozen=True)
class OrderByClause:
    column: str
    direction: str = "ASC"


@dataclass(frozen=True)
class CatalogTable:
    """Таблица, доступная конструктору: имя и [(колонка, тип), ...]."""

    name: str
    columns: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class QueryState:
    """
    Структурное описание SELECT-запроса.
    Неизменяемое: каждая мутация конструктора создаёт новый объект.
    """

    tables: Tuple[Table, ...] = ()
    selected_columns: Tuple[Column, ...] = ()
    joins: Tuple[Join, ...] = ()
    where_conditions: Tuple[WhereCondition, ...] = ()
    group_by_columns: Tuple[str, ...] = ()
    order_by_clauses: Tuple[OrderByClause, ...] = ()
    limit: str = ""
    offset: str = ""
    distinct: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": [_drop_none({"name": t.name, "alias": t.alias}) for t in self.tables],
            "selectedColumns": [
                {"name": c.name, "type": c.type, "table": c.table} for c in self.selected_columns
            ],
            "joins": [
                _drop_none({"type": j.type, "table": j.table, "alias": j.alias, "condition": j.condition})
                for j in self.joins
            ],
            "whereConditions": [
                _drop_none({
                    "id": w.id,
                    "column": w.column,
                    "operator": w.operator,
                    "value": w.value,
                    "logicalOperator": w.logical_operator,
                })
                for w in self.where_conditions
            ],
            "groupByColumns": list(self.group_by_columns),
            "orderByClauses": [
                {"column": o.column, "direction": o.direction} for o in self.order_by_clauses
            ],
            "limit": self.limit,
            "offset": self.offset,
            "distinct": self.distinct,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryState":
        """Обратное к to_dict(); отсутствующие ключи дают пустые значения."""
        where = []
        for i, w in enumerate(data.get("whereConditions") or []):
            where.append(WhereCondition(
                id=w.get("id") or f"condition-{i + 1}",
                column=w.get("column", ""),
                operator=w.get("operator") or "=",
                value="" if w.get("value") is None else str(w["value"]),
                logical_operator=w.get("logicalOperator"),
            ))
        return cls(
            tables=tuple(Table(t["name"], t.get("alias")) for t in data.get("tables") or []),
            selected_columns=tuple(
                Column(c["name"], c.get("type", ""), c["table"]) for c in data.get("selectedColumns") or []
            ),
            joins=tuple(
                Join(j.get("type", "INNER"), j["table"], j.get("condition", ""), j.get("alias"))
                for j in data.get("joins") or []
            ),
            where_conditions=tuple(where),
            group_by_columns=tuple(data.get("groupByColumns") or []),
            order_by_clauses=tuple(
                OrderByClause(o["column"], o.get("direction", "ASC")) for o in data.get("orderByClauses") or []
            ),
            limit=str(data.get("limit") or ""),
            offset=str(data.get("offset") or ""),
            distinct=bool(data.get("distinct", False)),
        )


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}
