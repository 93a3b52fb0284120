import pytest
from sqlalchemy import create_engine, text

from sqlgen.errors import QueryExecutionError
from sqlgen.services.local_executor import LocalQueryExecutor
from sqlgen.sql.compiler import compile_bound
from sqlgen.state.query_state import Column, QueryState, Table, WhereCondition


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, age INTEGER)"))
        conn.execute(text(
            "INSERT INTO users (id, name, age) VALUES (1, 'Ann', 31), (2, 'Bob', 25), (3, 'O''Neil', 40)"
        ))
    yield engine
    engine.dispose()


def test_select(engine):
    result = LocalQueryExecutor(engine).execute_query(None, "SELECT id, name FROM users ORDER BY id")
    assert result.columns == ["id", "name"]
    assert result.rows[0] == {"id": 1, "name": "Ann"}
    assert result.total_rows == 3
    assert result.execution_time >= 0


def test_max_rows_truncates_but_counts_all(engine):
    result = LocalQueryExecutor(engine, max_rows=2).run("SELECT * FROM users")
    assert len(result.rows) == 2
    assert result.total_rows == 3


def test_bound_query_from_builder_state(engine):
    state = QueryState(
        tables=(Table("users"),),
        selected_columns=(Column("name", "TEXT", "users"),),
        where_conditions=(
            WhereCondition("condition-1", "users.name", "=", "O'Neil"),
            WhereCondition("condition-2", "users.age", ">", "30", "OR"),
        ),
        limit="10",
    )
    result = LocalQueryExecutor(engine).run(compile_bound(state, "sqlite"))
    assert sorted(r["name"] for r in result.rows) == ["Ann", "O'Neil"]


def test_dml_reports_rowcount(engine):
    executor = LocalQueryExecutor(engine)
    result = executor.run("UPDATE users SET age = age + 1 WHERE age > :min", {"min": 30})
    assert result.columns == []
    assert result.total_rows == 2
    assert executor.run("SELECT age FROM users WHERE id = 1").rows == [{"age": 32}]


def test_error_is_wrapped_and_logged(engine):
    entries = []
    executor = LocalQueryExecutor(engine)
    executor.on_executed = entries.append

    with pytest.raises(QueryExecutionError) as exc_info:
        executor.run("SELECT nope FROM users")
    assert "no such column" in str(exc_info.value)
    assert exc_info.value.sql == "SELECT nope FROM users"

    executor.run("SELECT 1")
    assert [e["ok"] for e in entries] == [False, True]
    assert entries[0]["error_text"]
    assert entries[1]["error_text"] is None


def test_blank_sql(engine):
    with pytest.raises(QueryExecutionError):
        LocalQueryExecutor(engine).run("   ")
