"""CLI module for MySQL table design.

Provides commands for connection profile management, schema browsing, and
planning/applying table designs kept as JSON files.

Usage:
    DB_PROFILE=local mysql-designer connect
    mysql-designer status
    mysql-designer profiles
    mysql-designer tables app
    mysql-designer describe app users
    mysql-designer export app users -o users.json
    mysql-designer plan app users --design users.json
    mysql-designer apply app users --design users.json --confirm
    mysql-designer apply app audit_log --design audit_log.json --new --confirm

Commands:
    connect   - Connect to a profile's server and remember the profile
    status    - Show current connection status
    profiles  - List available profiles
    tables    - List tables of a database
    describe  - Show columns, indexes, foreign keys and options of a table
    export    - Write a table's structure to a design file
    plan      - Show the DDL a design file would execute
    apply     - Execute the DDL for a design file
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from mysql_designer.config.loader import load_db_config
from mysql_designer.config.models import DesignerSettings
from mysql_designer.errors import DesignerError
from mysql_designer.factory import (
    ProfileNotFoundError,
    connect_and_validate,
    get_adapter,
    read_profile_lock,
)
from mysql_designer.schema.editor import TableStructureEditor
from mysql_designer.schema.introspector import SchemaIntrospector
from mysql_designer.schema.models import Snapshot

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _load_design(path: str | Path) -> Snapshot:
    """Read a design file written by ``export`` (or by hand).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a valid design.
    """
    design_path = Path(path)
    if not design_path.exists():
        raise FileNotFoundError(f"Design file not found: {design_path}")
    try:
        return Snapshot.model_validate_json(design_path.read_text())
    except PydanticValidationError as e:
        raise ValueError(f"Invalid design file {design_path}: {e}") from e


def _designer_settings() -> DesignerSettings:
    """Designer settings from db.toml, or the defaults without one."""
    try:
        return load_db_config().designer
    except FileNotFoundError:
        return DesignerSettings()


def _print_snapshot(title: str, snapshot: Snapshot) -> None:
    columns = Table(title=title, show_header=True, header_style="bold")
    columns.add_column("Column")
    columns.add_column("Type")
    columns.add_column("Null")
    columns.add_column("Key")
    columns.add_column("Default")
    columns.add_column("Extra")
    columns.add_column("Comment", style="dim")
    for col in snapshot.columns:
        columns.add_row(
            f"[bold cyan]{col.name}[/bold cyan]",
            col.type,
            "YES" if col.nullable else "NO",
            "" if col.key == "none" else col.key,
            "NULL" if col.default is None else col.default,
            f"{col.generated} GENERATED" if col.generated else col.extra,
            col.comment,
        )
    console.print(columns)

    if snapshot.indexes:
        indexes = Table(title="Indexes", show_header=True, header_style="bold")
        indexes.add_column("Key name")
        indexes.add_column("Column")
        indexes.add_column("Kind")
        indexes.add_column("Method")
        indexes.add_column("Seq", justify="right")
        for idx in snapshot.indexes:
            indexes.add_row(
                idx.key_name, idx.column_name, idx.kind, idx.method, str(idx.seq_in_index)
            )
        console.print(indexes)

    if snapshot.foreign_keys:
        fks = Table(title="Foreign Keys", show_header=True, header_style="bold")
        fks.add_column("Name")
        fks.add_column("Column")
        fks.add_column("References")
        fks.add_column("On update")
        fks.add_column("On delete")
        for fk in snapshot.foreign_keys:
            fks.add_row(
                fk.name,
                fk.column,
                f"{fk.referenced_table}.{fk.referenced_column}",
                fk.on_update,
                fk.on_delete,
            )
        console.print(fks)

    options = snapshot.options
    console.print(
        f"[dim]Engine:[/dim] {options.engine or '-'}  "
        f"[dim]Charset:[/dim] {options.charset or '-'}  "
        f"[dim]Collation:[/dim] {options.collation or '-'}  "
        f"[dim]Row format:[/dim] {options.row_format or '-'}"
    )
    if options.comment:
        console.print(f"[dim]Comment:[/dim] {options.comment}")


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_connect(args: argparse.Namespace) -> int:
    """Async implementation for connect command.

    Args:
        args: Parsed arguments with env_prefix.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")

    previous_profile = read_profile_lock()

    console.print("Connecting to database...", style="dim")

    result = await connect_and_validate(env_prefix=env_prefix)

    if result.success:
        console.print()
        console.print(
            f"[bold green]v[/bold green] Connected to profile: "
            f"[bold cyan]{result.profile_name}[/bold cyan]"
        )
        if result.server_version:
            console.print(f"  Server version: [green]{result.server_version}[/green]")

        # Show profile switch notice
        if previous_profile and previous_profile != result.profile_name:
            console.print(
                f"\n[dim]Switched from[/dim] [bold]{previous_profile}[/bold] "
                f"[dim]to[/dim] [bold cyan]{result.profile_name}[/bold cyan]"
            )

        return 0
    else:
        console.print()
        console.print(f"[bold red]x[/bold red] {result.error}")
        return 1


async def _async_tables(args: argparse.Namespace) -> int:
    """Async implementation for tables command.

    Returns:
        0 on success, 1 on failure.
    """
    adapter = await get_adapter(env_prefix=getattr(args, "env_prefix", ""))
    try:
        tables = await SchemaIntrospector(adapter).list_tables(args.database)
    finally:
        await adapter.close()

    if not tables:
        console.print(f"[yellow]No tables in[/yellow] [bold]{args.database}[/bold]")
        return 0

    table = Table(title=f"Tables in {args.database}", show_header=False)
    table.add_column("Table")
    for name in tables:
        table.add_row(name)
    console.print(table)
    return 0


async def _async_describe(args: argparse.Namespace) -> int:
    """Async implementation for describe command.

    Returns:
        0 on success, 1 on failure.
    """
    adapter = await get_adapter(env_prefix=getattr(args, "env_prefix", ""))
    try:
        snapshot = await SchemaIntrospector(adapter).load_snapshot(args.database, args.table)
    finally:
        await adapter.close()

    _print_snapshot(f"{args.database}.{args.table}", snapshot)
    return 0


async def _async_export(args: argparse.Namespace) -> int:
    """Async implementation for export command.

    Returns:
        0 on success, 1 on failure.
    """
    adapter = await get_adapter(env_prefix=getattr(args, "env_prefix", ""))
    try:
        snapshot = await SchemaIntrospector(adapter).load_snapshot(args.database, args.table)
    finally:
        await adapter.close()

    output = snapshot.model_dump_json(indent=2)
    if args.output:
        Path(args.output).write_text(output + "\n")
        console.print(
            f"[bold green]v[/bold green] Wrote [cyan]{args.database}.{args.table}[/cyan] "
            f"to [bold]{args.output}[/bold]"
        )
    else:
        print(output)
    return 0


async def _async_plan(args: argparse.Namespace, execute: bool) -> int:
    """Async implementation for plan and apply commands.

    Opens an editor on the table (or a new-table editor with ``--new``),
    replaces its edited snapshot with the design file, and previews or
    saves.

    Args:
        args: Parsed arguments with database, table, design, new, rename,
            confirm and env_prefix.
        execute: Save instead of only previewing.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        design = _load_design(args.design)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"\n[red]Error: {e}[/red]")
        return 1

    settings = _designer_settings()
    adapter = await get_adapter(env_prefix=getattr(args, "env_prefix", ""))
    try:
        editor = TableStructureEditor(
            adapter,
            args.database,
            args.table,
            is_new_table=args.new,
            policy=settings.policy,
            default_options=settings.default_options,
        )
        await editor.open()
        editor.replace_snapshot(design)
        if args.rename:
            editor.rename_table(args.rename)

        statement = editor.preview()
        console.print()
        console.print(f"[bold]{statement.kind} TABLE[/bold] [cyan]{args.database}.{args.table}[/cyan]")
        console.print(Syntax(statement.sql, "sql", word_wrap=True))

        if not execute:
            return 0

        if not args.confirm:
            console.print()
            console.print(
                "[dim]To execute this statement, add[/dim] [cyan]--confirm[/cyan] "
                "[dim]flag.[/dim]"
            )
            return 0

        await editor.save()
        editor.close()
    finally:
        await adapter.close()

    console.print()
    console.print(
        f"[bold green]v[/bold green] Applied {statement.kind} to "
        f"[cyan]{args.database}.{editor.table_name}[/cyan]"
    )
    return 0


def _run(coro) -> int:
    """Run an async command, reporting designer and profile errors."""
    try:
        return asyncio.run(coro)
    except ProfileNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return 1
    except (DesignerError, FileNotFoundError, ValueError, KeyError) as e:
        console.print(f"\n[bold red]x[/bold red] {e}")
        return 1


# ============================================================================
# Command wrappers
# ============================================================================


def cmd_connect(args: argparse.Namespace) -> int:
    """Connect to database and remember the profile.

    Wraps the async implementation with ``asyncio.run()``.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on failure.
    """
    return asyncio.run(_async_connect(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show current connection status.

    Reads only local files (lock file and TOML config) -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 always (informational command).
    """
    profile = read_profile_lock()

    if profile:
        table = Table(title="Connection Status", show_header=False)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Current profile", f"[bold cyan]{profile}[/bold cyan]")
        table.add_row("Profile source", ".db-profile (connected)")

        try:
            config = load_db_config()
            if profile in config.profiles:
                p = config.profiles[profile]
                table.add_row("Provider", p.provider)
                if p.description:
                    table.add_row("Description", p.description)
            table.add_row(
                "Synthesis",
                f"columns={config.designer.column_strategy} "
                f"indexes={config.designer.index_strategy} "
                f"options={config.designer.options_strategy}",
            )
        except FileNotFoundError:
            table.add_row("Warning", "[yellow]db.toml not found[/yellow]")

        console.print(table)
    else:
        console.print("[yellow]No connected profile.[/yellow]")
        console.print("[dim]Run:[/dim] [cyan]DB_PROFILE=<name> mysql-designer connect[/cyan]")

    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 if db.toml not found.
    """
    try:
        config = load_db_config()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    current = read_profile_lock()

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.provider,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = current profile")

    return 0


def cmd_tables(args: argparse.Namespace) -> int:
    """List base tables of a database."""
    return _run(_async_tables(args))


def cmd_describe(args: argparse.Namespace) -> int:
    """Show the structure of a table."""
    return _run(_async_describe(args))


def cmd_export(args: argparse.Namespace) -> int:
    """Write a table's structure to a JSON design file."""
    return _run(_async_export(args))


def cmd_plan(args: argparse.Namespace) -> int:
    """Preview the DDL for a design file without executing it."""
    return _run(_async_plan(args, execute=False))


def cmd_apply(args: argparse.Namespace) -> int:
    """Execute the DDL for a design file (requires ``--confirm``)."""
    return _run(_async_plan(args, execute=True))


def _add_design_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("database", help="Database (schema) name")
    parser.add_argument("table", help="Table name")
    parser.add_argument(
        "--design",
        required=True,
        help="Path to a JSON design file (see the export command)",
    )
    parser.add_argument(
        "--new",
        action="store_true",
        help="Create the table instead of altering an existing one",
    )
    parser.add_argument(
        "--rename",
        default=None,
        help="Rename the table to this name",
    )


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="mysql-designer",
        description="MySQL table structure designer",
    )

    # Global option: --env-prefix
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log synthesized statements and editor state changes",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # connect command
    p_connect = subparsers.add_parser(
        "connect",
        help="Connect to a profile's server and remember the profile",
    )
    p_connect.set_defaults(func=cmd_connect)

    # status command
    p_status = subparsers.add_parser(
        "status",
        help="Show current connection status",
    )
    p_status.set_defaults(func=cmd_status)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # tables command
    p_tables = subparsers.add_parser(
        "tables",
        help="List tables of a database",
    )
    p_tables.add_argument("database", help="Database (schema) name")
    p_tables.set_defaults(func=cmd_tables)

    # describe command
    p_describe = subparsers.add_parser(
        "describe",
        help="Show the structure of a table",
    )
    p_describe.add_argument("database", help="Database (schema) name")
    p_describe.add_argument("table", help="Table name")
    p_describe.set_defaults(func=cmd_describe)

    # export command
    p_export = subparsers.add_parser(
        "export",
        help="Write a table's structure to a design file",
    )
    p_export.add_argument("database", help="Database (schema) name")
    p_export.add_argument("table", help="Table name")
    p_export.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output path (default: print to stdout)",
    )
    p_export.set_defaults(func=cmd_export)

    # plan command
    p_plan = subparsers.add_parser(
        "plan",
        help="Show the DDL a design file would execute",
    )
    _add_design_arguments(p_plan)
    p_plan.set_defaults(func=cmd_plan)

    # apply command
    p_apply = subparsers.add_parser(
        "apply",
        help="Execute the DDL for a design file",
    )
    _add_design_arguments(p_apply)
    p_apply.add_argument(
        "--confirm",
        action="store_true",
        help="Actually execute the statement",
    )
    p_apply.set_defaults(func=cmd_apply)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
