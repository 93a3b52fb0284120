import pytest

from sqlgen.schema.model import DatabaseSchema
from sqlgen.schema.parser import (
    find_column_in_table,
    find_table_by_name,
    generate_sample_query,
    get_all_columns,
    get_all_tables,
    get_relationships,
    schema_to_ai_context,
    to_catalog,
)
from sqlgen.state.query_state import CatalogTable


@pytest.fixture
def schema():
    return DatabaseSchema.from_dict({
        "tables": [
            {
                "name": "customers",
                "rowCount": 3,
                "columns": [
                    {"name": "id", "type": "integer", "nullable": False, "isPrimaryKey": True},
                    {"name": "name", "type": "text"},
                ],
            },
            {
                "name": "orders",
                "columns": [
                    {"name": "created_at", "type": "timestamp"},
                    {"name": "customer_id", "type": "integer", "isForeignKey": True,
                     "referencedTable": "customers", "referencedColumn": "id"},
                    {"name": "total", "type": "numeric"},
                ],
            },
        ],
        "views": [
            {"name": "big_orders", "columns": [{"name": "total", "type": "numeric"}]},
        ],
    })


def test_from_dict(schema):
    customers = schema.tables[0]
    assert customers.row_count == 3
    assert customers.columns[0].is_primary_key
    assert not customers.columns[0].nullable
    assert schema.views[0].name == "big_orders"
    assert DatabaseSchema.from_dict(None) == DatabaseSchema()


def test_lookups(schema):
    assert get_all_tables(schema) == ["customers", "orders"]
    assert get_all_columns(schema) == [
        "customers.id", "customers.name",
        "orders.created_at", "orders.customer_id", "orders.total",
        "big_orders.total",
    ]
    table = find_table_by_name(schema, "ORDERS")
    assert table is schema.tables[1]
    assert find_column_in_table(table, "Total").type == "numeric"
    assert find_table_by_name(schema, "missing") is None
    assert find_column_in_table(table, "missing") is None


def test_to_catalog(schema):
    assert to_catalog(schema)[0] == CatalogTable("customers", (("id", "integer"), ("name", "text")))


def test_relationships(schema):
    assert get_relationships(schema) == [{
        "source": "orders",
        "target": "customers",
        "source_column": "customer_id",
        "target_column": "id",
    }]


def test_ai_context(schema):
    context = schema_to_ai_context(schema)
    assert context.startswith("Database Schema:\n\nTable: customers\nColumns:\n")
    assert "- id (integer) PRIMARY KEY NOT NULL\n" in context
    assert "- customer_id (integer) FOREIGN KEY REFERENCES customers(id)\n" in context
    assert "Views:\nView: big_orders\nColumns:\n- total (numeric)\n" in context


def test_sample_query_orders_by_primary_key(schema):
    assert generate_sample_query(schema.tables[0]) == (
        "SELECT id, name\nFROM customers\nORDER BY id\nLIMIT 100;"
    )


def test_sample_query_orders_by_date_desc(schema):
    assert generate_sample_query(schema.tables[1]) == (
        "SELECT created_at, customer_id, total\nFROM orders\nORDER BY created_at DESC\nLIMIT 100;"
    )
