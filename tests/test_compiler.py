import pytest
from sqlalchemy import text

from sqlgen.errors import UnsupportedDialectError
from sqlgen.sql.compiler import compile_bound, quote_identifier, quote_literal, render
from sqlgen.state.query_state import (
    Column,
    Join,
    OrderByClause,
    QueryState,
    Table,
    WhereCondition,
)


@pytest.fixture
def orders_state():
    return QueryState(
        tables=(Table("orders"),),
        selected_columns=(
            Column("id", "integer", "orders"),
            Column("total", "numeric", "orders"),
        ),
        where_conditions=(WhereCondition("condition-1", "orders.total", ">", "100"),),
        limit="10",
    )


def test_render_simple_select(orders_state):
    assert render(orders_state) == (
        "SELECT orders.id, orders.total\nFROM orders \nWHERE orders.total > 100\nLIMIT 10;"
    )


def test_render_empty_state():
    assert render(QueryState()) == ""
    # таблица есть, колонок нет
    assert render(QueryState(tables=(Table("orders"),))) == ""


def test_render_full_clause_order():
    state = QueryState(
        tables=(Table("customers", "c"), Table("orders")),
        selected_columns=(Column("name", "text", "c"), Column("total", "numeric", "orders")),
        joins=(Join("LEFT", "orders", "c.id = orders.customers_id"),),
        where_conditions=(
            WhereCondition("condition-1", "c.name", "LIKE", "A%"),
            WhereCondition("condition-2", "orders.total", ">=", "10.5", "OR"),
        ),
        group_by_columns=("c.name",),
        order_by_clauses=(OrderByClause("c.name", "DESC"),),
        limit="5",
        offset="20",
        distinct=True,
    )
    assert render(state) == (
        "SELECT DISTINCT c.name, orders.total\n"
        "FROM customers AS c \n"
        "LEFT JOIN orders ON c.id = orders.customers_id \n"
        "WHERE c.name LIKE 'A%' OR orders.total >= 10.5\n"
        "GROUP BY c.name\n"
        "ORDER BY c.name DESC\n"
        "LIMIT 5 OFFSET 20;"
    )


def test_render_null_and_list_operators():
    state = QueryState(
        tables=(Table("users"),),
        selected_columns=(Column("id", "integer", "users"),),
        where_conditions=(
            WhereCondition("condition-1", "users.deleted_at", "IS NULL", "ignored"),
            WhereCondition("condition-2", "users.id", "IN", "1, 2, 3", "AND"),
        ),
    )
    assert render(state) == (
        "SELECT users.id\nFROM users \nWHERE users.deleted_at IS NULL AND users.id IN (1, 2, 3);"
    )


def test_render_without_limit_has_no_limit_line(orders_state):
    from dataclasses import replace

    sql = render(replace(orders_state, limit="", offset="5"))
    assert "LIMIT" not in sql
    assert "OFFSET" not in sql
    assert sql.endswith("WHERE orders.total > 100;")


def test_quote_literal():
    assert quote_literal("42") == "42"
    assert quote_literal("-3.5") == "-3.5"
    assert quote_literal("O'Brien") == "'O''Brien'"
    assert quote_literal("1e5") == "'1e5'"


def test_quote_identifier_per_dialect():
    assert quote_identifier("orders.total") == "orders.total"
    assert quote_identifier("orders.total", "postgresql") == '"orders"."total"'
    assert quote_identifier("orders.total", "mysql") == "`orders`.`total`"
    assert quote_identifier("orders.*", "postgres") == '"orders".*'


def test_render_with_dialect_quotes_identifiers(orders_state):
    assert render(orders_state, "mysql") == (
        "SELECT `orders`.`id`, `orders`.`total`\nFROM `orders` \nWHERE `orders`.`total` > 100\nLIMIT 10;"
    )


def test_unknown_dialect():
    with pytest.raises(UnsupportedDialectError):
        render(QueryState(), "oracle")


def test_compile_bound_moves_values_to_params():
    state = QueryState(
        tables=(Table("users"),),
        selected_columns=(Column("id", "integer", "users"),),
        where_conditions=(
            WhereCondition("condition-1", "users.name", "=", "O'Brien"),
            WhereCondition("condition-2", "users.id", "NOT IN", "1, 2", "OR"),
        ),
        limit="10; DROP TABLE users",
    )
    bound = compile_bound(state, "sqlite")
    assert bound.sql == (
        'SELECT "users"."id"\nFROM "users" \n'
        'WHERE "users"."name" = :p1 OR "users"."id" NOT IN (:p2, :p3);'
    )
    assert bound.params == {"p1": "O'Brien", "p2": 1, "p3": 2}
    assert bound


def test_compile_bound_keeps_integer_limit(orders_state):
    bound = compile_bound(orders_state)
    assert bound.sql.endswith("WHERE orders.total > :p1\nLIMIT 10;")
    assert bound.params == {"p1": 100}


def test_compile_bound_empty_state():
    bound = compile_bound(QueryState())
    assert bound.sql == ""
    assert bound.params == {}
    assert not bound


def test_bound_query_to_text(orders_state):
    stmt = compile_bound(orders_state).to_text()
    assert stmt.compile().params == {"p1": 100}
    assert str(stmt) == str(text(compile_bound(orders_state).sql))


def test_null_operator_from_saved_state_defaults_to_equals():
    state = QueryState.from_dict({
        "tables": [{"name": "users"}],
        "selectedColumns": [{"name": "id", "type": "integer", "table": "users"}],
        "whereConditions": [{"id": "condition-1", "column": "users.id", "operator": None, "value": "7"}],
    })
    assert state.where_conditions[0].operator == "="
    assert render(state) == "SELECT users.id\nFROM users \nWHERE users.id = 7;"
