"""txsql CLI - Command-line interface for the SQL access layer."""

from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from sqlalchemy.engine import make_url
from typing_extensions import Annotated

from txsql import __version__
from txsql.core.bulk_copy import bulk_insert_on_connection
from txsql.core.connection import create_open_connection
from txsql.core.execution import execute, query, scalar
from txsql.core.railway import Ok, try_run
from txsql.core.transaction import begin_transaction, commit_or_rollback
from txsql.exceptions import TxSQLError
from txsql.models.descriptor import ConnectionDescriptor, IntegratedSecurity, UserIdAndPassword
from txsql.models.statement import new_cmd, new_sproc
from txsql.sources import CsvSource, ParquetSource
from txsql.utils.logging import configure_logging

app = typer.Typer(
    name="txsql",
    help="txsql - Transactional SQL access layer",
    add_completion=True,
)

UrlOption = Annotated[
    str,
    typer.Option("--url", "-u", envvar="TXSQL_URL", help="SQLAlchemy connection URL"),
]
ParamOption = Annotated[
    Optional[list[str]],
    typer.Option("--param", "-p", help="Statement parameter as name=value (repeatable)"),
]


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"txsql version {__version__}")
        raise typer.Exit()


def _split_pair(value: str, option: str) -> tuple[str, str]:
    """Split a name=value option."""
    name, sep, rest = value.partition("=")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected name=value, got {value!r}", param_hint=option)
    return name.strip(), rest


def _parse_params(values: Optional[list[str]]) -> list[tuple[str, Any]]:
    return [_split_pair(v, "--param") for v in values or []]


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _format_value(value: Any) -> str:
    return "" if value is None else str(value)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (defaults to TXSQL_LOG_LEVEL)"),
    ] = None,
    log_format: Annotated[
        Optional[str],
        typer.Option("--log-format", help="Log format: text or json (defaults to TXSQL_LOG_FORMAT)"),
    ] = None,
) -> None:
    """txsql - Run statements and bulk loads inside explicit transactions."""
    try:
        configure_logging(level=log_level, log_format=log_format)
    except ValueError as e:
        raise typer.BadParameter(str(e))


@app.command("connection-string")
def connection_string(
    data_source: Annotated[
        str,
        typer.Option("--data-source", "-s", help="Server address (host, host:port, host,port) or database file"),
    ],
    catalog: Annotated[
        str,
        typer.Option("--catalog", "-c", help="Initial catalog (database name)"),
    ] = "",
    user: Annotated[
        Optional[str],
        typer.Option("--user", help="Login name (omit for integrated security)"),
    ] = None,
    password: Annotated[
        Optional[str],
        typer.Option("--password", help="Login password"),
    ] = None,
    driver: Annotated[
        Optional[str],
        typer.Option("--driver", "-d", help="SQLAlchemy driver (defaults to TXSQL_DEFAULT_DRIVER)"),
    ] = None,
    show_password: Annotated[
        bool,
        typer.Option("--show-password", help="Print the password in clear text"),
    ] = False,
) -> None:
    """Build a connection string from its parts."""
    try:
        if user:
            security = UserIdAndPassword(user_id=user, password=password or "")
        else:
            security = IntegratedSecurity(enabled=True)
        descriptor = ConnectionDescriptor(data_source=data_source, catalog=catalog, security=security)
        url = descriptor.build(driver)
    except ValidationError as e:
        _fail(f"Invalid connection descriptor: {e}")
    except TxSQLError as e:
        _fail(f"Error: {e}")

    if not show_password:
        url = make_url(url).render_as_string(hide_password=True)
    typer.echo(url)


@app.command("exec")
def exec_(
    sql: Annotated[str, typer.Argument(help="SQL text, or procedure name with --procedure")],
    url: UrlOption,
    param: ParamOption = None,
    procedure: Annotated[
        bool,
        typer.Option("--procedure", help="Run SQL as the name of a stored procedure"),
    ] = False,
) -> None:
    """Run a statement in a transaction, committed on success and rolled back on failure."""
    params = _parse_params(param)
    try:
        statement = new_sproc(sql) if procedure else new_cmd(sql)
        connection = create_open_connection(url)
    except (ValidationError, TxSQLError) as e:
        _fail(f"Error: {e}")

    with connection:
        try:
            tx = begin_transaction(connection)
            result = commit_or_rollback(tx, try_run(execute, statement, params, tx))
        except TxSQLError as e:
            _fail(f"Error: {e}")

    if isinstance(result, Ok):
        typer.secho("Committed", fg=typer.colors.GREEN)
    else:
        _fail(f"Rolled back: {result.error}")


@app.command("scalar")
def scalar_(
    sql: Annotated[str, typer.Argument(help="SQL text")],
    url: UrlOption,
    param: ParamOption = None,
) -> None:
    """Run a query and print the first column of its first row."""
    params = _parse_params(param)
    try:
        statement = new_cmd(sql)
        with create_open_connection(url) as connection:
            with begin_transaction(connection) as tx:
                value = scalar(statement, params, lambda v: v, tx)
    except (ValidationError, TxSQLError) as e:
        _fail(f"Error: {e}")

    typer.echo(_format_value(value))


@app.command("query")
def query_(
    sql: Annotated[str, typer.Argument(help="SQL text")],
    url: UrlOption,
    param: ParamOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", min=0, help="Stop after this many rows"),
    ] = None,
) -> None:
    """Run a query and print its rows as tab-separated values."""
    params = _parse_params(param)
    try:
        statement = new_cmd(sql)
        with create_open_connection(url) as connection:
            with begin_transaction(connection) as tx:
                with query(statement, params, lambda record: record, tx) as rows:
                    header_written = False
                    for count, record in enumerate(rows):
                        if limit is not None and count >= limit:
                            break
                        if not header_written:
                            typer.echo("\t".join(record.keys()))
                            header_written = True
                        typer.echo("\t".join(_format_value(v) for v in record.as_tuple()))
    except (ValidationError, TxSQLError) as e:
        _fail(f"Error: {e}")


@app.command("bulk-load")
def bulk_load(
    file: Annotated[
        Path,
        typer.Argument(
            help="CSV or Parquet file to load",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    table: Annotated[str, typer.Argument(help="Destination table")],
    url: UrlOption,
    mapping: Annotated[
        Optional[list[str]],
        typer.Option("--map", "-m", help="Column mapping as source=destination (repeatable)"),
    ] = None,
    delimiter: Annotated[
        str,
        typer.Option("--delimiter", help="CSV field delimiter"),
    ] = ",",
) -> None:
    """Bulk load a file into a table in a transaction of its own."""
    mappings = [_split_pair(m, "--map") for m in mapping or []]

    suffix = file.suffix.lower()
    if suffix == ".parquet":
        source = ParquetSource(file)
    elif suffix in (".csv", ".tsv", ".txt"):
        source = CsvSource(file, delimiter="\t" if suffix == ".tsv" else delimiter)
    else:
        _fail(f"Unsupported file type: {file.suffix} (expected .csv, .tsv, .txt or .parquet)")

    try:
        with create_open_connection(url) as connection:
            result = bulk_insert_on_connection(table, mappings, source, connection)
    except TxSQLError as e:
        source.close()
        _fail(f"Bulk load failed: {e}")

    typer.secho(
        f"Loaded {result.rows_copied:,} rows into {result.destination_table} "
        f"in {result.duration_seconds:.2f}s",
        fg=typer.colors.GREEN,
    )


if __name__ == "__main__":
    app()
