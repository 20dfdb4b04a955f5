from __future__ import annotations

import sys
from typing import List, Optional

import typer

from insert_bench.config import get_settings
from insert_bench.errors import BenchmarkError
from insert_bench.infrastructure.db_factory import connection_scope
from insert_bench.infrastructure.schema import provision as provision_schema
from insert_bench.orchestrator import RunConfig, run_pathways
from insert_bench.pathways import available_pathways, pathway_factories
from insert_bench.reporter import print_results
from insert_bench.utils.logging import configure_logging

app = typer.Typer(help="Insert pathway benchmark CLI.")


def _configure(json_logs: Optional[bool] = None) -> None:
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_logs=settings.log_json if json_logs is None else json_logs,
    )


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"rows={settings.benchmark_rows} results_dir={settings.results_dir}"
    )


@app.command("list")
def list_pathways() -> None:
    """
    List available pathways in run order.
    """
    for name, factory in pathway_factories().items():
        pathway = factory()
        typer.echo(f"{name:<16} {pathway.table:<40} {pathway.description}")


@app.command()
def provision(
    reset: bool = typer.Option(
        False,
        "--reset",
        help="Drop benchmark schemas (and all rows) before recreating them.",
    ),
) -> None:
    """
    Create the schemas, tables and procedures every pathway needs.
    """
    _configure()
    try:
        with connection_scope() as conn:
            provision_schema(conn, reset=reset)
    except BenchmarkError as exc:
        typer.echo(f"Provisioning failed: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Schema provisioned." if not reset else "Schema reset and provisioned.")


@app.command()
def run(
    pathway: List[str] = typer.Option(
        ["all"],
        "--pathway",
        "-p",
        help=f"Pathway to run; repeatable ({', '.join(available_pathways())}, all).",
    ),
    rows: Optional[int] = typer.Option(
        None,
        "--rows",
        "-r",
        min=0,
        help="Override number of rows per pathway (default from settings).",
    ),
    persist: bool = typer.Option(
        True,
        "--persist/--no-persist",
        help="Write results to the results directory.",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Stop at the first failed pathway instead of continuing.",
    ),
    json_logs: Optional[bool] = typer.Option(
        None,
        "--json-logs/--plain-logs",
        help="Override LOG_JSON.",
    ),
) -> None:
    """
    Run one or all pathways sequentially and report elapsed time per pathway.
    """
    settings = get_settings()
    _configure(json_logs)
    total_rows = rows if rows is not None else settings.benchmark_rows

    typer.echo(f"Running pathway(s)={', '.join(pathway)} for rows={total_rows}.")
    try:
        results = run_pathways(
            RunConfig(
                pathway_names=pathway,
                row_count=total_rows,
                persist=persist,
                failure_policy="strict" if strict else "tolerant",
            )
        )
    except (BenchmarkError, ValueError) as exc:
        typer.echo(f"Benchmark failed: {exc}", err=True)
        raise typer.Exit(code=1)
    print_results(results)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
