from __future__ import annotations

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from insert_bench.domain.models import BenchmarkResult
from insert_bench.utils.logging import get_logger

log = get_logger(__name__)


class ReportEmitter:
    """
    Sink for committed run results.

    `emit` prints one `pathway -> elapsed ms` line per result. A broken sink
    is logged and ignored; it never fails the benchmark.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def emit(self, result: BenchmarkResult) -> None:
        try:
            self.console.print(
                f"[cyan]{result['pathway']}[/cyan] -> "
                f"[bold green]{result['elapsed_ms']:,.2f} ms[/bold green] "
                f"[dim]({result['rows']:,} rows)[/dim]"
            )
        except OSError as exc:
            log.warning(
                "Could not emit result",
                extra={"pathway": result.get("pathway"), "error": str(exc)},
            )


def print_results(results: List[BenchmarkResult], console: Optional[Console] = None) -> None:
    """
    Render benchmark results as a rich table, in run order.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(
        title="Insert Pathway Benchmark Results",
        box=box.ROUNDED,
        caption="In run order (disk, memory, compiled_memory)",
    )

    table.add_column("Pathway", style="cyan", no_wrap=True)
    table.add_column("Rows", justify="right", style="magenta")
    table.add_column("Elapsed (ms)", justify="right", style="green")
    table.add_column("Throughput (rows/s)", justify="right", style="bold green")
    table.add_column("Client RSS (MB)", justify="right", style="yellow")
    table.add_column("Client CPU %", justify="right", style="red")

    for res in results:
        rss_bytes = res.get("rss_bytes")
        mem_str = f"{rss_bytes / (1024 * 1024):.2f}" if rss_bytes else "N/A"
        cpu = res.get("cpu_percent")
        cpu_str = f"{cpu:.1f}" if cpu is not None else "N/A"

        table.add_row(
            res["pathway"],
            f"{res['rows']:,}",
            f"{res['elapsed_ms']:,.2f}",
            f"{res.get('throughput_rows_per_sec', 0.0):,.2f}",
            mem_str,
            cpu_str,
        )

    console.print(table)


__all__ = ["ReportEmitter", "print_results"]
