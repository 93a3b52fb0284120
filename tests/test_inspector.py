import pytest
from sqlalchemy import create_engine, text

from sqlgen.extractors.inspector import InspectorExtractor


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE customers (id INTEGER PRIMARY KEY, name VARCHAR(50) NOT NULL)"))
        conn.execute(text("""
            CREATE TABLE orders (
                id INTEGER PRIMARY KEY,
                customer_id INTEGER REFERENCES customers(id),
                total NUMERIC
            )
        """))
        conn.execute(text("CREATE VIEW big_orders AS SELECT id, total FROM orders WHERE total > 100"))
        conn.execute(text("INSERT INTO customers (id, name) VALUES (1, 'Ann'), (2, 'Bob')"))
    yield engine
    engine.dispose()


def test_list_tables(engine):
    with InspectorExtractor({"engine": engine}) as ex:
        tables = ex.list_tables()
    assert [(t["table_name"], t["table_type"]) for t in tables] == [
        ("customers", "BASE TABLE"),
        ("orders", "BASE TABLE"),
        ("big_orders", "VIEW"),
    ]


def test_list_columns_and_keys(engine):
    ex = InspectorExtractor({"engine": engine})
    columns = ex.list_columns("customers")
    assert [c["name"] for c in columns] == ["id", "name"]
    assert columns[1]["data_type"] == "VARCHAR(50)"
    assert columns[1]["is_nullable"] is False
    assert columns[1]["ordinal_position"] == 2

    assert ex.list_primary_keys("customers")[0]["columns"] == ["id"]
    fk = ex.list_foreign_keys("orders")[0]
    assert fk["referenced_table"] == "customers"
    assert fk["column_pairs"] == [("customer_id", "id")]


def test_extract_schema(engine):
    with InspectorExtractor({"engine": engine}) as ex:
        schema = ex.extract_schema(with_row_counts=True)

    assert [t.name for t in schema.tables] == ["customers", "orders"]
    assert [v.name for v in schema.views] == ["big_orders"]

    customers, orders = schema.tables
    assert customers.row_count == 2
    assert orders.row_count == 0
    assert customers.columns[0].is_primary_key

    customer_id = orders.columns[1]
    assert customer_id.is_foreign_key
    assert customer_id.referenced_table == "customers"
    assert customer_id.referenced_column == "id"


def test_extract_schema_without_counts(engine):
    with InspectorExtractor({"engine": engine}) as ex:
        schema = ex.extract_schema()
    assert all(t.row_count is None for t in schema.tables)
