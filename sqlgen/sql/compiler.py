"""
Сборка SQL-текста из QueryState.

Один рендерер на все случаи: dialect=None оставляет идентификаторы как есть
(превью конструктора), "mysql" / "postgresql" / "sqlite" экранируют каждую
часть идентификатора средствами диалекта SQLAlchemy.

    render(state)                 -> str         (превью, значения встраиваются)
    compile_bound(state, dialect) -> BoundQuery  (значения уходят в параметры)

Рендерер никогда не бросает исключений на "плохом" состоянии: пустые таблицы
или колонки дают пустую строку, остальное подставляется как есть.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.elements import TextClause

from sqlgen.errors import UnsupportedDialectError
from sqlgen.state.query_state import QueryState

NO_VALUE_OPERATORS = ("IS NULL", "IS NOT NULL")
LIST_OPERATORS = ("IN", "NOT IN")

_DIALECTS: Dict[str, Callable[[], Dialect]] = {
    "mysql": mysql.dialect,
    "postgresql": postgresql.dialect,
    "postgres": postgresql.dialect,
    "sqlite": sqlite.dialect,
}

_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
_INT_RE = re.compile(r"^\d+$")
_SIGNED_INT_RE = re.compile(r"^-?\d+$")

_dialect_cache: Dict[str, Dialect] = {}


def get_dialect(name: Optional[str]) -> Optional[Dialect]:
    """SQLAlchemy-диалект по имени; None -> без экранирования."""
    if name is None:
        return None
    key = name.lower()
    if key not in _DIALECTS:
        raise UnsupportedDialectError(name)
    if key not in _dialect_cache:
        _dialect_cache[key] = _DIALECTS[key]()
    return _dialect_cache[key]


def quote_identifier(ident: str, dialect: Optional[str] = None) -> str:
    """
    'orders.total' -> '"orders"."total"' (postgresql)
    'orders.total' -> '`orders`.`total`' (mysql)
    'orders.total' -> 'orders.total'     (dialect=None)
    """
    return _Renderer(get_dialect(dialect), bind=False).ident(ident)


def quote_literal(value: str) -> str:
    """Грубая типизация: число -> без кавычек, иначе строка в одинарных."""
    if _NUMBER_RE.match(value.strip()):
        return value.strip()
    return "'" + value.replace("'", "''") + "'"


@dataclass
class BoundQuery:
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_text(self) -> TextClause:
        stmt = text(self.sql)
        if self.params:
            stmt = stmt.bindparams(**self.params)
        return stmt

    def __bool__(self) -> bool:
        return bool(self.sql)


class _Renderer:
    def __init__(self, dialect: Optional[Dialect], bind: bool):
        self.dialect = dialect
        self.bind = bind
        self.params: Dict[str, Any] = {}

    def ident(self, ref: str) -> str:
        if self.dialect is None:
            return ref
        preparer = self.dialect.identifier_preparer
        return ".".join(
            part if part == "*" else preparer.quote_identifier(part)
            for part in ref.split(".")
        )

    def value(self, raw: str) -> str:
        if self.bind:
            return self._param(_coerce(raw))
        return quote_literal(raw)

    def value_list(self, raw: str) -> str:
        if not self.bind:
            # строку списка не разбираем, только оборачиваем в скобки
            return raw
        items = [item.strip() for item in raw.split(",") if item.strip()]
        return ", ".join(self._param(_coerce(item)) for item in items)

    def _param(self, value: Any) -> str:
        name = f"p{len(self.params) + 1}"
        self.params[name] = value
        return f":{name}"

    def render(self, state: QueryState) -> str:
        if not state.tables or not state.selected_columns:
            return ""

        lines: List[str] = []

        # SELECT
        select = "SELECT "
        if state.distinct:
            select += "DISTINCT "
        select += ", ".join(self.ident(c.qualified) for c in state.selected_columns)
        lines.append(select)

        # FROM: только первая таблица, остальные приходят через JOIN
        main = state.tables[0]
        lines.append(f"FROM {self.ident(main.name)}{self._alias(main.alias)} ")

        for join in state.joins:
            lines.append(
                f"{join.type} JOIN {self.ident(join.table)}{self._alias(join.alias)} ON {join.condition} "
            )

        # WHERE: плоская цепочка без скобок
        if state.where_conditions:
            where = "WHERE "
            for i, cond in enumerate(state.where_conditions):
                if i > 0:
                    where += f" {cond.logical_operator or 'AND'} "
                where += self._condition(cond.column, cond.operator, cond.value)
            lines.append(where)

        if state.group_by_columns:
            lines.append("GROUP BY " + ", ".join(self.ident(c) for c in state.group_by_columns))

        if state.order_by_clauses:
            lines.append("ORDER BY " + ", ".join(
                f"{self.ident(o.column)} {o.direction}" for o in state.order_by_clauses
            ))

        limit_clause = self._limit(state.limit, state.offset)
        if limit_clause:
            lines.append(limit_clause)

        return "\n".join(lines) + ";"

    def _alias(self, alias: Optional[str]) -> str:
        return f" AS {self.ident(alias)}" if alias else ""

    def _condition(self, column: str, operator: str, value: str) -> str:
        op = operator.upper()
        col = self.ident(column)
        if op in NO_VALUE_OPERATORS:
            return f"{col} {op}"
        if op in LIST_OPERATORS:
            return f"{col} {op} ({self.value_list(value)})"
        return f"{col} {operator} {self.value(value)}"

    def _limit(self, limit: str, offset: str) -> str:
        if not limit:
            return ""
        if not self.bind:
            clause = f"LIMIT {limit}"
            if offset:
                clause += f" OFFSET {offset}"
            return clause
        # в параметризованном виде пропускаем только целые числа
        if not _INT_RE.match(limit.strip()):
            return ""
        clause = f"LIMIT {int(limit)}"
        if offset and _INT_RE.match(offset.strip()):
            clause += f" OFFSET {int(offset)}"
        return clause


def _coerce(raw: str) -> Any:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    if _SIGNED_INT_RE.match(value):
        return int(value)
    if _NUMBER_RE.match(value):
        return float(value)
    return raw


def render(state: QueryState, dialect: Optional[str] = None) -> str:
    """QueryState -> SQL-текст для превью и отправки на /gui-builder/execute."""
    return _Renderer(get_dialect(dialect), bind=False).render(state)


def compile_bound(state: QueryState, dialect: Optional[str] = None) -> BoundQuery:
    """То же, что render(), но значения условий вынесены в именованные параметры."""
    renderer = _Renderer(get_dialect(dialect), bind=True)
    sql = renderer.render(state)
    return BoundQuery(sql, renderer.params if sql else {})
