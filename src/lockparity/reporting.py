"""
Reporting and output formatting for lockfile comparisons.

Provides color-coded console output using Rich library and a JSON export
for automation.
"""

import json
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .comparator import ComparisonEntry, ComparisonResult, Verdict

EXIT_MATCH = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2
EXIT_INTERRUPTED = 130


def exit_code_for(result: ComparisonResult) -> int:
    """Process exit status for a finished comparison."""
    return EXIT_MATCH if result.all_common_versions_match else EXIT_MISMATCH


def _versions(versions: List[str]) -> str:
    return ", ".join(versions) if versions else "-"


class ComparisonReporter:
    """Formats and displays lockfile comparison results."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_comparison(
        self,
        result: ComparisonResult,
        lockfile_a: str,
        lockfile_b: str,
        verbose: bool = False,
        show_same: bool = False,
    ) -> None:
        """
        Print comparison results in a user-friendly format.

        Args:
            result: The comparison to display
            lockfile_a: Path or URL of the first lockfile
            lockfile_b: Path or URL of the second lockfile
            verbose: Also print the dependency paths of differing packages
            show_same: Also list packages whose versions agree
        """
        self.console.print()
        self._print_header(lockfile_a, lockfile_b)
        self._print_summary(result)

        different = result.entries_with(Verdict.BOTH_DIFFERENT)
        if different:
            self._print_differences(different, verbose)

        self._print_one_sided(result.entries_with(Verdict.ONLY_A), "A", lockfile_a)
        self._print_one_sided(result.entries_with(Verdict.ONLY_B), "B", lockfile_b)

        if show_same:
            self._print_same(result.entries_with(Verdict.BOTH_SAME))

        self._print_footer(result)

    def _print_header(self, lockfile_a: str, lockfile_b: str) -> None:
        header_text = f"🔍 A: {lockfile_a}\n🔍 B: {lockfile_b}"
        self.console.print(
            Panel(
                header_text,
                title="[bold blue]Lockfile Comparison[/bold blue]",
                border_style="blue",
            )
        )

    def _print_summary(self, result: ComparisonResult) -> None:
        """Print package counts by verdict."""
        table = Table(title="📊 Summary", box=box.ROUNDED, title_style="bold cyan")
        table.add_column("Packages", style="bold")
        table.add_column("Count", justify="center")

        table.add_row("In lockfile A", str(result.packages_a))
        table.add_row("In lockfile B", str(result.packages_b))
        table.add_row("In common", str(result.common_count))
        table.add_row("✅ Same versions", f"[green]{result.count(Verdict.BOTH_SAME)}[/green]")

        different = result.count(Verdict.BOTH_DIFFERENT)
        if different > 0:
            table.add_row("❌ Different versions", f"[bold red]{different}[/bold red]")
        else:
            table.add_row("❌ Different versions", "0")

        table.add_row("Only in A", str(result.count(Verdict.ONLY_A)))
        table.add_row("Only in B", str(result.count(Verdict.ONLY_B)))

        if result.narrowed_a or result.narrowed_b:
            table.add_row(
                "Narrowed out (A / B)", f"{result.narrowed_a} / {result.narrowed_b}"
            )

        self.console.print(table)
        self.console.print()

    def _print_differences(self, entries: List[ComparisonEntry], verbose: bool) -> None:
        table = Table(
            title="❌ Version differences",
            box=box.ROUNDED,
            title_style="bold red",
        )
        table.add_column("Package", style="bold")
        table.add_column("Versions in A", style="yellow")
        table.add_column("Versions in B", style="yellow")
        if verbose:
            table.add_column("Path in A", style="dim")
            table.add_column("Path in B", style="dim")

        for entry in entries:
            row = [
                entry.name,
                _versions(entry.sorted_versions_a()),
                _versions(entry.sorted_versions_b()),
            ]
            if verbose:
                row.append("\n".join(entry.paths_a))
                row.append("\n".join(entry.paths_b))
            table.add_row(*row)

        self.console.print(table)
        self.console.print()

    def _print_one_sided(
        self, entries: List[ComparisonEntry], side: str, lockfile: str
    ) -> None:
        if not entries:
            return

        table = Table(
            title=f"Only in {side} ({lockfile})",
            box=box.SIMPLE,
            title_style="bold",
        )
        table.add_column("Package", style="bold")
        table.add_column("Versions")
        for entry in entries:
            versions = entry.sorted_versions_a() if side == "A" else entry.sorted_versions_b()
            table.add_row(entry.name, _versions(versions))

        self.console.print(table)

    def _print_same(self, entries: List[ComparisonEntry]) -> None:
        if not entries:
            return

        table = Table(title="✅ Same versions", box=box.SIMPLE, title_style="bold green")
        table.add_column("Package", style="bold")
        table.add_column("Versions", style="green")
        for entry in entries:
            table.add_row(entry.name, _versions(entry.sorted_versions_a()))

        self.console.print(table)

    def _print_footer(self, result: ComparisonResult) -> None:
        """Print the final verdict."""
        if result.all_common_versions_match:
            self.console.print(
                "\n[bold green]✅ MATCH - All common packages have the same versions.[/bold green]"
            )
        else:
            self.console.print(
                f"\n[bold red]❌ MISMATCH - {result.count(Verdict.BOTH_DIFFERENT)} "
                "common packages have different versions.[/bold red]"
            )


def build_json_results(
    result: ComparisonResult, lockfile_a: str, lockfile_b: str
) -> Dict[str, Any]:
    """Machine-readable form of a comparison."""
    return {
        "lockfile_a": lockfile_a,
        "lockfile_b": lockfile_b,
        "all_common_versions_match": result.all_common_versions_match,
        "strict_versions": result.strict_versions,
        "summary": result.summary(),
        "entries": [entry.to_dict() for entry in result.entries],
    }


def output_json_results(
    result: ComparisonResult,
    lockfile_a: str,
    lockfile_b: str,
    output_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> None:
    """Export results as JSON."""
    json_output = json.dumps(
        build_json_results(result, lockfile_a, lockfile_b), indent=2, ensure_ascii=False
    )

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(json_output)
        (console or Console(stderr=True)).print(
            f"✅ Results saved to {output_file}", style="green"
        )
    else:
        print(json_output)
