from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TypedDict, Tuple

from sqlgen.schema.model import DatabaseColumn, DatabaseSchema, DatabaseTable, DatabaseView


# ---- типизированные структуры данных

class TableInfo(TypedDict):
    schema: Optional[str]  # схема (None - схема по умолчанию)
    table_name: str
    table_type: str        # 'BASE TABLE' или 'VIEW'


class ColumnInfo(TypedDict, total=False):
    name: str
    data_type: str          # тип как его печатает СУБД, например "VARCHAR(50)"
    is_nullable: bool
    ordinal_position: int
    default: Optional[str]


class PrimaryKeyInfo(TypedDict):
    constraint_name: Optional[str]
    columns: List[str]


class ForeignKeyInfo(TypedDict):
    constraint_name: Optional[str]
    columns: List[str]
    referenced_schema: Optional[str]
    referenced_table: str
    referenced_columns: List[str]
    column_pairs: List[Tuple[str, str]]  # (исходная -> целевая колонка)


class BaseExtractor(ABC):
    """
    Извлечение метаданных песочницы для конструктора и AI-контекста.
    Реализации возвращают нормализованные, независимые от СУБД структуры.
    """

    def __init__(self, conn_params: Dict[str, Any]):
        self.conn_params = conn_params

    def connect(self) -> None:
        raise NotImplementedError("connect() - необязательный метод, переопределите при необходимости.")

    def close(self) -> None:
        raise NotImplementedError("close() - необязательный метод, переопределите при необходимости.")

    def __enter__(self) -> "BaseExtractor":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.close()
        except NotImplementedError:
            pass

    # ---- основное API ----

    @abstractmethod
    def list_tables(self, *, schema: Optional[str] = None) -> List[TableInfo]:
        """Таблицы и представления."""

    @abstractmethod
    def list_columns(self, table_name: str, *, schema: Optional[str] = None) -> List[ColumnInfo]:
        """Колонки таблицы в порядке следования."""

    @abstractmethod
    def list_primary_keys(self, table_name: str, *, schema: Optional[str] = None) -> List[PrimaryKeyInfo]:
        ...

    @abstractmethod
    def list_foreign_keys(self, table_name: str, *, schema: Optional[str] = None) -> List[ForeignKeyInfo]:
        ...

    def count_rows(self, table_name: str, *, schema: Optional[str] = None) -> Optional[int]:
        return None

    # ---- сборка DatabaseSchema ----

    def extract_schema(self, *, schema: Optional[str] = None, with_row_counts: bool = False) -> DatabaseSchema:
        """
        Собрать DatabaseSchema: колонки, PK/FK-флаги, ссылки FK.
        Для составных FK ссылка берётся по паре колонок.
        """
        result = DatabaseSchema()
        for info in self.list_tables(schema=schema):
            name = info["table_name"]
            pk_cols = {c for pk in self.list_primary_keys(name, schema=schema) for c in pk["columns"]}
            fk_refs: Dict[str, Tuple[str, str]] = {}
            for fk in self.list_foreign_keys(name, schema=schema):
                for src, tgt in fk["column_pairs"]:
                    fk_refs[src] = (fk["referenced_table"], tgt)

            columns = []
            for col in self.list_columns(name, schema=schema):
                ref = fk_refs.get(col["name"])
                columns.append(DatabaseColumn(
                    name=col["name"],
                    type=col.get("data_type", ""),
                    nullable=col.get("is_nullable", True),
                    is_primary_key=col["name"] in pk_cols,
                    is_foreign_key=ref is not None,
                    referenced_table=ref[0] if ref else None,
                    referenced_column=ref[1] if ref else None,
                ))

            if info["table_type"] == "VIEW":
                result.views.append(DatabaseView(name, columns))
            else:
                row_count = self.count_rows(name, schema=schema) if with_row_counts else None
                result.tables.append(DatabaseTable(name, columns, row_count))
        return result
