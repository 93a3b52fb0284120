import re
from typing import Dict, List, Optional

from sqlgen.schema.model import DatabaseColumn, DatabaseSchema, DatabaseTable
from sqlgen.state.query_state import CatalogTable

_DATE_TYPE_RE = re.compile(r"date|time", re.IGNORECASE)


def get_all_tables(schema: DatabaseSchema) -> List[str]:
    return [t.name for t in schema.tables]


def get_all_columns(schema: DatabaseSchema) -> List[str]:
    """Все колонки таблиц и представлений в виде 'table.column'."""
    columns = [f"{t.name}.{c.name}" for t in schema.tables for c in t.columns]
    columns += [f"{v.name}.{c.name}" for v in schema.views for c in v.columns]
    return columns


def find_table_by_name(schema: DatabaseSchema, name: str) -> Optional[DatabaseTable]:
    lowered = name.lower()
    for table in schema.tables:
        if table.name.lower() == lowered:
            return table
    return None


def find_column_in_table(table: DatabaseTable, name: str) -> Optional[DatabaseColumn]:
    lowered = name.lower()
    for column in table.columns:
        if column.name.lower() == lowered:
            return column
    return None


def to_catalog(schema: DatabaseSchema) -> List[CatalogTable]:
    """Схема -> список таблиц для QueryBuilder."""
    return [
        CatalogTable(t.name, tuple((c.name, c.type) for c in t.columns))
        for t in schema.tables
    ]


def schema_to_ai_context(schema: DatabaseSchema) -> str:
    """Текстовое описание схемы для промпта генерации SQL."""
    lines = ["Database Schema:", ""]

    for table in schema.tables:
        lines.append(f"Table: {table.name}")
        lines.append("Columns:")
        for column in table.columns:
            entry = f"- {column.name} ({column.type})"
            if column.is_primary_key:
                entry += " PRIMARY KEY"
            if column.is_foreign_key and column.referenced_table:
                entry += (
                    f" FOREIGN KEY REFERENCES {column.referenced_table}"
                    f"({column.referenced_column or 'id'})"
                )
            if not column.nullable:
                entry += " NOT NULL"
            lines.append(entry)
        lines.append("")

    if schema.views:
        lines.append("")
        lines.append("Views:")
        for view in schema.views:
            lines.append(f"View: {view.name}")
            lines.append("Columns:")
            lines.extend(f"- {c.name} ({c.type})" for c in view.columns)
            lines.append("")

    return "\n".join(lines) + "\n"


def get_relationships(schema: DatabaseSchema) -> List[Dict[str, str]]:
    relationships = []
    for table in schema.tables:
        for column in table.columns:
            if column.is_foreign_key and column.referenced_table:
                relationships.append({
                    "source": table.name,
                    "target": column.referenced_table,
                    "source_column": column.name,
                    "target_column": column.referenced_column or "id",
                })
    return relationships


def generate_sample_query(table: DatabaseTable) -> str:
    """SELECT всех колонок, сортировка по PK или по первой колонке-дате, LIMIT 100."""
    columns = ", ".join(c.name for c in table.columns) or "*"
    order_by = (
        next((c for c in table.columns if c.is_primary_key), None)
        or next((c for c in table.columns if _DATE_TYPE_RE.search(c.type)), None)
        or (table.columns[0] if table.columns else None)
    )

    sql = f"SELECT {columns}\nFROM {table.name}"
    if order_by is not None:
        sql += f"\nORDER BY {order_by.name}"
        if _DATE_TYPE_RE.search(order_by.type):
            sql += " DESC"
    return sql + "\nLIMIT 100;"
