"""
CLI entry point for the script archive.

This is where .env is loaded for command-line use.
All other modules access environment variables via os.environ.

Usage:
    uv run python -m scriptsnip.cli init-db
    uv run python -m scriptsnip.cli import --file SCRIPTS.json
    uv run python -m scriptsnip.cli list --search "hamlet" --sort-by title --sort-order asc
    uv run python -m scriptsnip.cli random --count 5 --exclude id1,id2
    uv run python -m scriptsnip.cli stats
    uv run python -m scriptsnip.cli serve --port 8000
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

# Load .env BEFORE importing other modules
from dotenv import load_dotenv
load_dotenv()

from .config import DB_PATH
from .db import ScriptStore
from .errors import ScriptSnipError
from .importer import import_scripts, load_scripts_file
from .listing import list_scripts
from .sampling import parse_id_list, random_scripts
from . import logger


def cmd_init_db(store: ScriptStore, args) -> int:
    """Create the database schema (done by main before dispatch)."""
    logger.print_success(f"Database ready at {store.db_path}")
    return 0


def cmd_import(store: ScriptStore, args) -> int:
    """Import snippets from a JSON file."""
    logger.console.print(f"\n[bold]Importing scripts[/bold]")
    logger.console.print(f"File: {args.file}")

    try:
        records = load_scripts_file(args.file)
    except (OSError, ValueError) as e:
        logger.print_error(f"Error reading or parsing JSON file: {e}")
        return 1

    logger.console.print(f"Loaded {len(records)} records\n")

    with logger.create_progress() as progress:
        task = progress.add_task("Inserting", total=len(records))
        result = import_scripts(
            store,
            records,
            on_progress=lambda done: progress.update(task, completed=done),
        )

    logger.print_import_summary(result.total, result.imported, result.failed, result.errors)
    return 0 if result.failed == 0 else 1


def cmd_list(store: ScriptStore, args) -> int:
    """Print one page of snippets."""
    result = list_scripts(
        store,
        page=args.page,
        limit=args.limit,
        search=args.search,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
    )
    page = result.to_dict()
    meta = page["pagination"]

    if not page["data"]:
        logger.console.print("[yellow]No scripts found[/yellow]")
    else:
        logger.print_scripts_table(
            page["data"],
            title=f"Page {meta['currentPage']}/{meta['totalPages']} ({meta['totalItems']} scripts)",
        )
    return 0


def cmd_random(store: ScriptStore, args) -> int:
    """Print random snippets."""
    scripts = random_scripts(store, count=args.count, exclude_ids=parse_id_list(args.exclude))

    if args.json:
        logger.console.print_json(json.dumps([s.to_dict() for s in scripts]))
    elif not scripts:
        logger.console.print("[yellow]No scripts left after exclusions[/yellow]")
    else:
        logger.print_scripts_table([s.to_dict() for s in scripts], title="Random Scripts")
    return 0


def cmd_stats(store: ScriptStore, args) -> int:
    """Show database statistics."""
    logger.console.print(f"\n[bold]Script Database Stats[/bold]")
    logger.console.print(f"  Path: {store.db_path}")
    logger.console.print(f"  Total scripts: {store.count()}")
    return 0


def cmd_serve(store: ScriptStore, args) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


COMMANDS = {
    "init-db": cmd_init_db,
    "import": cmd_import,
    "list": cmd_list,
    "random": cmd_random,
    "stats": cmd_stats,
    "serve": cmd_serve,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Script snippet archive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DB_PATH,
        help=f"SQLite database path (default: {DB_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create the database schema")

    import_parser = subparsers.add_parser("import", help="Import scripts from a JSON file")
    import_parser.add_argument(
        "--file",
        type=Path,
        default=Path("SCRIPTS.json"),
        help="JSON array of scripts (default: SCRIPTS.json)",
    )

    list_parser = subparsers.add_parser("list", help="List scripts")
    list_parser.add_argument("--page", default="1", help="Page number (default: 1)")
    list_parser.add_argument("--limit", default="10", help="Page size (default: 10)")
    list_parser.add_argument("--search", help="Match title, characters or dialogue")
    list_parser.add_argument("--sort-by", default="createdAt", help="title or createdAt")
    list_parser.add_argument("--sort-order", default="desc", help="asc or desc")

    random_parser = subparsers.add_parser("random", help="Show random scripts")
    random_parser.add_argument("--count", default="3", help="Number of scripts (default: 3)")
    random_parser.add_argument("--exclude", help="Comma-separated IDs to leave out")
    random_parser.add_argument("--json", action="store_true", help="Print raw JSON")

    subparsers.add_parser("stats", help="Show database statistics")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    logger.setup_logging()
    store = ScriptStore(args.db)

    try:
        if args.command != "serve":
            store.init_database()
        return handler(store, args)
    except ScriptSnipError as e:
        logger.print_error(e.message)
        return 1


def run():
    """Synchronous entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
