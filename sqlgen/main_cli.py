"""Командная строка sqlgen.

    sqlgen build state.json --dialect postgresql
    sqlgen ask "top 10 customers by revenue" --connection 42
    sqlgen run "SELECT 1" --local --export csv --output out.csv
    sqlgen schema --dsn sqlite:///shop.db
"""
import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from sqlgen.api.client import ApiClient, TokenStore
from sqlgen.config import Settings
from sqlgen.db.connections import get_engine
from sqlgen.errors import SqlgenError
from sqlgen.export.exporters import FORMATS, export_rows
from sqlgen.extractors.inspector import InspectorExtractor
from sqlgen.schema.parser import schema_to_ai_context
from sqlgen.services.connection_service import ConnectionService
from sqlgen.services.gui_builder_service import GuiBuilderService
from sqlgen.services.local_executor import LocalQueryExecutor
from sqlgen.services.query_service import QueryService
from sqlgen.sql.compiler import render
from sqlgen.sql.formatter import format_sql, is_dml_query
from sqlgen.state.query_state import QueryState

log = logging.getLogger(__name__)


def _api(settings: Settings, token: Optional[str]) -> ApiClient:
    store = TokenStore(settings.auth_token_key)
    if token:
        store.set(token)
    return ApiClient(settings, token_store=store)


def _print_rows(columns: List[str], rows: List[Dict[str, Any]]) -> None:
    if not columns:
        print("(no rows)")
        return
    cells = [[("NULL" if r.get(c) is None else str(r.get(c))) for c in columns] for r in rows]
    widths = [max([len(c)] + [len(row[i]) for row in cells]) for i, c in enumerate(columns)]
    print(" | ".join(c.ljust(w) for c, w in zip(columns, widths)))
    print("-+-".join("-" * w for w in widths))
    for row in cells:
        print(" | ".join(v.ljust(w) for v, w in zip(row, widths)))


def cmd_build(args: argparse.Namespace, settings: Settings) -> int:
    try:
        with open(args.state, encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as e:
        print(f"Cannot read state file: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"Invalid query state: {e}", file=sys.stderr)
        return 1

    try:
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        state = QueryState.from_dict(data)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        log.debug("[cli] bad state in %s", args.state, exc_info=True)
        print(f"Invalid query state: {e}", file=sys.stderr)
        return 1
    print(render(state, args.dialect))
    return 0


def cmd_ask(args: argparse.Namespace, settings: Settings) -> int:
    service = QueryService(_api(settings, args.token))
    generated = service.generate_sql(args.prompt, args.connection, playground_id=args.playground)
    print(format_sql(generated.sql))
    if generated.explanation:
        print()
        print(generated.explanation)
    return 0


def cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    if is_dml_query(args.sql) and not args.yes:
        print("This query modifies data. Re-run with --yes to execute it.", file=sys.stderr)
        return 2

    if args.local:
        dsn = args.dsn or settings.sandbox_dsn
        if not dsn:
            print("No sandbox DSN: pass --dsn or set BASE_DSN", file=sys.stderr)
            return 2
        result = LocalQueryExecutor(get_engine(dsn)).execute_query(None, args.sql)
    else:
        if not args.connection:
            print("--connection is required for remote execution", file=sys.stderr)
            return 2
        result = GuiBuilderService(_api(settings, args.token)).execute_query(args.connection, args.sql)

    if args.export:
        path = args.output or f"query-results.{args.export}"
        export_rows(result.rows, args.export, path)
        print(f"{result.total_rows} row(s) exported to {path}")
    else:
        _print_rows(result.columns, result.rows)
        print(f"\n{result.total_rows} row(s) in {result.execution_time} ms")
    return 0


def cmd_schema(args: argparse.Namespace, settings: Settings) -> int:
    if args.dsn:
        with InspectorExtractor({"dsn": args.dsn}) as ex:
            schema = ex.extract_schema(schema=args.db_schema, with_row_counts=args.row_counts)
    elif args.connection:
        schema = ConnectionService(_api(settings, args.token)).refresh_schema(args.connection)
    else:
        print("Pass --dsn or --connection", file=sys.stderr)
        return 2
    print(schema_to_ai_context(schema), end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sqlgen", description="Build, generate and run SQL queries.")
    parser.add_argument("--env-file", help="Path to a .env file with settings.")
    parser.add_argument("--token", default=os.getenv("SQLGEN_TOKEN"), help="API auth token.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("build", help="Render SQL from a saved query builder state (JSON).")
    p.add_argument("state", help="Path to the JSON state file.")
    p.add_argument("--dialect", choices=["mysql", "postgresql", "postgres", "sqlite"],
                   help="Quote identifiers for this dialect.")
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("ask", help="Generate SQL from a natural language prompt.")
    p.add_argument("prompt")
    p.add_argument("--connection", required=True, help="Connection id on the server.")
    p.add_argument("--playground", help="Playground id to attach the query to.")
    p.set_defaults(func=cmd_ask)

    p = sub.add_parser("run", help="Execute a SQL query.")
    p.add_argument("sql")
    p.add_argument("--connection", help="Connection id on the server.")
    p.add_argument("--local", action="store_true", help="Run against the local sandbox engine.")
    p.add_argument("--dsn", help="Sandbox DSN for --local (defaults to BASE_DSN).")
    p.add_argument("--yes", action="store_true", help="Confirm execution of data-modifying queries.")
    p.add_argument("--export", choices=FORMATS, help="Export rows instead of printing them.")
    p.add_argument("--output", help="Export file path.")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("schema", help="Print a database schema as AI prompt context.")
    p.add_argument("--connection", help="Connection id on the server.")
    p.add_argument("--dsn", help="Inspect a database directly through SQLAlchemy.")
    p.add_argument("--db-schema", help="Database schema name (e.g. public).")
    p.add_argument("--row-counts", action="store_true", help="Include row counts.")
    p.set_defaults(func=cmd_schema)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = Settings.from_env(args.env_file)
        return args.func(args, settings)
    except SqlgenError as e:
        log.debug("[cli] %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
