from __future__ import annotations
from typing import Any, Dict, List, Optional

from sqlalchemy import func, inspect, select, table
from sqlalchemy.engine import Dialect, Engine, Inspector
from sqlalchemy.exc import CompileError
from sqlalchemy.types import TypeEngine

from sqlgen.db.connections import get_engine
from .base import (
    BaseExtractor,
    TableInfo,
    ColumnInfo,
    PrimaryKeyInfo,
    ForeignKeyInfo,
)


class InspectorExtractor(BaseExtractor):
    """
    Реализация BaseExtractor поверх sqlalchemy.inspect():
    работает с любой СУБД, для которой есть диалект SQLAlchemy.
    """

    def __init__(self, conn_params: Dict[str, Any]):
        """
        conn_params: {'engine': Engine} или {'dsn': 'sqlite:///...'}.
        """
        super().__init__(conn_params)
        self._engine: Optional[Engine] = None
        self._inspector: Optional[Inspector] = None

    def connect(self) -> None:
        if self._inspector is not None:
            return
        self._engine = self.conn_params.get("engine") or get_engine(self.conn_params["dsn"])
        self._inspector = inspect(self._engine)

    def close(self) -> None:
        # движок общий (кеш get_engine), поэтому не dispose
        self._inspector = None
        self._engine = None

    @property
    def inspector(self) -> Inspector:
        self.connect()
        return self._inspector

    # --- API из BaseExtractor -------------------------------------------------

    def list_tables(self, *, schema: Optional[str] = None) -> List[TableInfo]:
        insp = self.inspector
        tables = [
            TableInfo(schema=schema, table_name=name, table_type="BASE TABLE")
            for name in sorted(insp.get_table_names(schema=schema))
        ]
        tables += [
            TableInfo(schema=schema, table_name=name, table_type="VIEW")
            for name in sorted(insp.get_view_names(schema=schema))
        ]
        return tables

    def list_columns(self, table_name: str, *, schema: Optional[str] = None) -> List[ColumnInfo]:
        self.connect()
        dialect = self._engine.dialect
        columns = []
        for pos, col in enumerate(self.inspector.get_columns(table_name, schema=schema), start=1):
            default = col.get("default")
            columns.append(ColumnInfo(
                name=col["name"],
                data_type=_type_name(col["type"], dialect),
                is_nullable=bool(col.get("nullable", True)),
                ordinal_position=pos,
                default=str(default) if default is not None else None,
            ))
        return columns

    def list_primary_keys(self, table_name: str, *, schema: Optional[str] = None) -> List[PrimaryKeyInfo]:
        pk = self.inspector.get_pk_constraint(table_name, schema=schema)
        if not pk or not pk.get("constrained_columns"):
            return []
        return [PrimaryKeyInfo(constraint_name=pk.get("name"), columns=list(pk["constrained_columns"]))]

    def list_foreign_keys(self, table_name: str, *, schema: Optional[str] = None) -> List[ForeignKeyInfo]:
        fks = []
        for fk in self.inspector.get_foreign_keys(table_name, schema=schema):
            src = list(fk["constrained_columns"])
            tgt = list(fk["referred_columns"])
            fks.append(ForeignKeyInfo(
                constraint_name=fk.get("name"),
                columns=src,
                referenced_schema=fk.get("referred_schema"),
                referenced_table=fk["referred_table"],
                referenced_columns=tgt,
                column_pairs=list(zip(src, tgt)),
            ))
        return fks

    def count_rows(self, table_name: str, *, schema: Optional[str] = None) -> Optional[int]:
        self.connect()
        stmt = select(func.count()).select_from(table(table_name, schema=schema))
        with self._engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one())


def _type_name(col_type: TypeEngine, dialect: Dialect) -> str:
    try:
        return col_type.compile(dialect=dialect)
    except CompileError:
        # колонка без объявленного типа (NullType)
        return ""
