from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence

from sqlgen.sql.compiler import get_dialect, render
from sqlgen.state.query_state import (
    CatalogTable,
    Column,
    Join,
    OrderByClause,
    QueryState,
    Table,
    WhereCondition,
)

log = logging.getLogger(__name__)

OnChange = Callable[[str, QueryState], None]

_CONDITION_ID = re.compile(r"^condition-(\d+)$")


def _next_condition_seq(conditions: Iterable[WhereCondition]) -> int:
    """Следующий свободный номер condition-N (после загрузки чужого состояния)."""
    taken = [int(m.group(1)) for m in (_CONDITION_ID.match(c.id) for c in conditions) if m]
    return max(taken, default=0) + 1


class QueryBuilder:
    """
    Состояние визуального конструктора SELECT.

    - self.state заменяется новым QueryState на каждой мутации;
    - после каждой мутации SQL пересобирается (self.sql) и вызывается on_change;
    - мутации не бросают исключений: неверный ввод - тихий no-op.
    """

    def __init__(
        self,
        available_tables: Sequence[CatalogTable] = (),
        dialect: Optional[str] = None,
        initial_state: Optional[QueryState] = None,
        on_change: Optional[OnChange] = None,
    ):
        get_dialect(dialect)  # неизвестный диалект - ошибка сразу, а не при рендере
        self.available_tables = list(available_tables)
        self.dialect = dialect
        self.on_change = on_change
        self.state = initial_state or QueryState()
        self._condition_seq = _next_condition_seq(self.state.where_conditions)
        self.sql = render(self.state, self.dialect)

    # --- internal ---

    def _commit(self, new_state: QueryState) -> None:
        if new_state == self.state:
            return
        self.state = new_state
        self.sql = render(self.state, self.dialect)
        cb = self.on_change
        if callable(cb):
            cb(self.sql, self.state)

    def _catalog(self, name: str) -> Optional[CatalogTable]:
        for t in self.available_tables:
            if t.name == name:
                return t
        return None

    # --- columns ---

    def available_columns(self) -> List[Column]:
        """Колонки всех таблиц запроса; table = алиас или имя таблицы."""
        columns = []
        for table in self.state.tables:
            found = self._catalog(table.name)
            if found is None:
                continue
            for col_name, col_type in found.columns:
                columns.append(Column(col_name, col_type, table.ref))
        return columns

    def set_available_tables(self, tables: Iterable[CatalogTable]) -> None:
        self.available_tables = list(tables)

    # --- tables ---

    def add_table(self, name: str) -> None:
        if any(t.name == name for t in self.state.tables):
            return
        self._commit(replace(self.state, tables=self.state.tables + (Table(name),)))

    def add_column(self, column: Column) -> None:
        if any(c.name == column.name and c.table == column.table for c in self.state.selected_columns):
            return
        self._commit(replace(self.state, selected_columns=self.state.selected_columns + (column,)))

    def remove_column(self, column: Column) -> None:
        self._commit(replace(self.state, selected_columns=tuple(
            c for c in self.state.selected_columns
            if not (c.name == column.name and c.table == column.table)
        )))

    # --- WHERE ---

    def add_where_condition(self) -> None:
        available = self.available_columns()
        if not available:
            return
        first = available[0]
        condition = WhereCondition(
            id=f"condition-{self._condition_seq}",
            column=first.qualified,
            operator="=",
            value="",
            logical_operator="AND" if self.state.where_conditions else None,
        )
        self._condition_seq += 1
        self._commit(replace(self.state, where_conditions=self.state.where_conditions + (condition,)))

    def update_where_condition(self, condition_id: str, field: str, value: str) -> None:
        if field not in ("column", "operator", "value", "logical_operator"):
            log.debug("[builder] ignore update of unknown where field %r", field)
            return
        self._commit(replace(self.state, where_conditions=tuple(
            replace(c, **{field: value}) if c.id == condition_id else c
            for c in self.state.where_conditions
        )))

    def remove_where_condition(self, condition_id: str) -> None:
        self._commit(replace(self.state, where_conditions=tuple(
            c for c in self.state.where_conditions if c.id != condition_id
        )))

    # --- JOIN ---

    def add_join(self) -> None:
        if len(self.available_tables) < 2 or not self.state.tables:
            return

        main = self.state.tables[0]
        candidate = next(
            (t for t in self.available_tables
             if t.name != main.name and not any(qt.name == t.name for qt in self.state.tables)),
            None,
        )
        if candidate is None:
            return

        join = Join(
            type="INNER",
            table=candidate.name,
            condition=f"{main.ref}.id = {candidate.name}.{main.name.lower()}_id",
        )
        self._commit(replace(
            self.state,
            joins=self.state.joins + (join,),
            tables=self.state.tables + (Table(candidate.name),),
        ))

    def update_join(self, index: int, field: str, value: str) -> None:
        if field not in ("type", "table", "alias", "condition"):
            return
        if not 0 <= index < len(self.state.joins):
            return
        new_value = (value or None) if field == "alias" else value
        joins = list(self.state.joins)
        joined = joins[index]
        joins[index] = replace(joined, **{field: new_value})
        tables = self.state.tables
        if field == "alias":
            # алиас JOIN'а виден и в списке таблиц, иначе колонки предлагаются по имени
            tables = tuple(
                replace(t, alias=new_value) if t.name == joined.table else t for t in tables
            )
        self._commit(replace(self.state, joins=tuple(joins), tables=tables))

    def remove_join(self, index: int) -> None:
        """
        Удалить JOIN вместе с таблицей и всем, что на неё ссылается
        (колонки SELECT, условия WHERE, GROUP BY, ORDER BY).
        """
        if not 0 <= index < len(self.state.joins):
            return
        removed = self.state.joins[index]
        refs = {r for r in (removed.table, removed.alias) if r}
        prefixes = tuple(f"{r}." for r in refs)

        s = self.state
        self._commit(replace(
            s,
            joins=tuple(j for i, j in enumerate(s.joins) if i != index),
            tables=tuple(t for t in s.tables if t.name != removed.table),
            selected_columns=tuple(c for c in s.selected_columns if c.table not in refs),
            where_conditions=tuple(c for c in s.where_conditions if not c.column.startswith(prefixes)),
            group_by_columns=tuple(c for c in s.group_by_columns if not c.startswith(prefixes)),
            order_by_clauses=tuple(o for o in s.order_by_clauses if not o.column.startswith(prefixes)),
        ))

    # --- GROUP BY / ORDER BY ---

    def add_group_by_column(self, column: str) -> None:
        if column in self.state.group_by_columns:
            return
        self._commit(replace(self.state, group_by_columns=self.state.group_by_columns + (column,)))

    def remove_group_by_column(self, column: str) -> None:
        self._commit(replace(self.state, group_by_columns=tuple(
            c for c in self.state.group_by_columns if c != column
        )))

    def add_order_by_clause(self) -> None:
        available = self.available_columns()
        if not available:
            return
        clause = OrderByClause(available[0].qualified, "ASC")
        self._commit(replace(self.state, order_by_clauses=self.state.order_by_clauses + (clause,)))

    def update_order_by_clause(self, index: int, field: str, value: str) -> None:
        if field not in ("column", "direction") or not 0 <= index < len(self.state.order_by_clauses):
            return
        if field == "direction" and value not in ("ASC", "DESC"):
            return
        clauses = list(self.state.order_by_clauses)
        clauses[index] = replace(clauses[index], **{field: value})
        self._commit(replace(self.state, order_by_clauses=tuple(clauses)))

    def remove_order_by_clause(self, index: int) -> None:
        self._commit(replace(self.state, order_by_clauses=tuple(
            o for i, o in enumerate(self.state.order_by_clauses) if i != index
        )))

    # --- options ---

    def set_limit(self, limit: str) -> None:
        self._commit(replace(self.state, limit=limit or ""))

    def set_offset(self, offset: str) -> None:
        self._commit(replace(self.state, offset=offset or ""))

    def set_distinct(self, distinct: bool) -> None:
        self._commit(replace(self.state, distinct=bool(distinct)))

    def reset(self) -> None:
        self._condition_seq = 1
        self._commit(QueryState())
