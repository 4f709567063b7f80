"""
tablequery command line interface.

Runs serialized queries against table files and previews the result.

::: This is-in-layer UI-Layer.
::: This is-in-component Command-Line.
::: This depends-on rich.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import pyarrow as pa
from rich.console import Console
from rich.markup import escape
from rich.table import Table as RichTable

from .config import QueryConfig
from .exceptions import TableQueryError
from .logging_config import configure_logging
from .builder import Query
from .table import Catalog, Table, write_table
from .verbs import VerbRegistry

logger = logging.getLogger(__name__)


def _split_pair(value: str, option: str) -> Tuple[str, str]:
    name, sep, rest = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"{option} expects NAME=VALUE, got {value!r}")
    return name, rest


def _parse_param(value: str) -> Any:
    """Parameter values are JSON when they parse as JSON, strings otherwise."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _read_query(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def render_table(table: Table, max_rows: int, title: Optional[str] = None) -> RichTable:
    """Build a rich table showing the first ``max_rows`` rows of ``table``."""
    shown = max(0, min(max_rows, table.num_rows))
    preview = RichTable(title=title, caption=f"{shown} of {table.num_rows} rows")
    for name in table.column_names:
        preview.add_column(name, overflow="fold")
    for row in table.data.slice(0, shown).to_pylist():
        preview.add_row(*["" if value is None else str(value) for value in row.values()])
    return preview


# =============================================================================
# Commands
# =============================================================================

def cmd_run(args: argparse.Namespace, config: QueryConfig, console: Console) -> int:
    catalog = Catalog()
    for spec in args.table:
        name, path = _split_pair(spec, "--table")
        catalog.load(name, path)

    q = Query.from_object(_read_query(args.query), strict=config.strict_verbs)
    if args.param:
        q.params(dict(
            (name, _parse_param(value))
            for name, value in (_split_pair(p, "--param") for p in args.param)
        ))

    source = catalog(args.input) if args.input else None
    result = q.evaluate(source, catalog)

    if args.output:
        write_table(result, args.output)
        console.print(f"Wrote {result.num_rows} rows to {args.output}")
    else:
        console.print(render_table(result, config.max_rows, title=q.table_name or args.input))
    return 0


def cmd_ast(args: argparse.Namespace, config: QueryConfig, console: Console) -> int:
    q = Query.from_object(_read_query(args.query), strict=config.strict_verbs)
    print(json.dumps(q.to_ast(), indent=2))
    return 0


def cmd_verbs(args: argparse.Namespace, config: QueryConfig, console: Console) -> int:
    listing = RichTable(title="Verbs")
    listing.add_column("Verb", style="bold")
    listing.add_column("Description")
    for name in sorted(VerbRegistry.names()):
        doc = (VerbRegistry.get(name).__doc__ or "").strip()
        listing.add_row(name, doc.splitlines()[0] if doc else "")
    console.print(listing)
    return 0


COMMANDS = {
    "run": cmd_run,
    "ast": cmd_ast,
    "verbs": cmd_verbs,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tablequery", description="Run serialized table queries")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Evaluate a query file")
    run.add_argument("query", type=Path, help="Query JSON file (object form)")
    run.add_argument("--table", "-t", action="append", default=[], metavar="NAME=PATH",
                     help="Register a table file in the catalog (repeatable)")
    run.add_argument("--param", "-p", action="append", default=[], metavar="NAME=VALUE",
                     help="Set a query parameter; values are parsed as JSON when possible (repeatable)")
    run.add_argument("--input", "-i", metavar="NAME",
                     help="Catalog table to use as input instead of the query's table")
    run.add_argument("--output", "-o", type=Path, help="Write the result to a .csv or .parquet file")
    run.add_argument("--max-rows", type=int, help="Rows to show in the preview")

    ast = subparsers.add_parser("ast", help="Print the AST form of a query file")
    ast.add_argument("query", type=Path, help="Query JSON file (object form)")

    subparsers.add_parser("verbs", help="List registered verbs")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the tablequery command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = QueryConfig.from_env()
    if args.verbose:
        config.log_level = "DEBUG"
    if getattr(args, "max_rows", None) is not None:
        config.max_rows = args.max_rows
    configure_logging(config, force=True)
    for warning in config.validate():
        logger.warning(warning)

    console = Console()
    try:
        return COMMANDS[args.command](args, config, console)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except (TableQueryError, pa.ArrowException, OSError, ValueError) as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
