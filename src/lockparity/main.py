import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .cli_config import (
    LockParityConfig,
    apply_config_data,
    create_sample_config,
    get_config,
    load_config,
    load_config_file,
    validate_config_values,
)
from .comparator import Verdict
from .error_handling import report_error, setup_error_handling
from .exceptions import (
    ConfigurationError,
    GraphError,
    LockParityError,
    SelectorError,
)
from .parsers import get_supported_formats
from .pipeline import ComparisonOptions, SideSpec, parse_exclude_list, run_comparison
from .reporting import (
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    ComparisonReporter,
    exit_code_for,
    output_json_results,
)
from .structured_logging import configure_logging

__version__ = "1.0.0"

console = Console()
error_console = Console(stderr=True)


def _check_root_options(side: str, pkg_hash: Optional[str], pkg_name: Optional[str]):
    if pkg_hash and pkg_name:
        raise click.UsageError(
            f"--pkg-hash-{side} and --pkg-name-{side} are mutually exclusive"
        )


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    🔍 lockparity: compare the dependency trees of two lockfiles

    Checks that every package shared by two lockfiles resolves to the
    same versions on both sides.
    """
    if version:
        console.print(f"lockparity version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command()
@click.argument("lockfile_a")
@click.argument("lockfile_b")
@click.option("--pkg-hash-a", help="Root of tree A: package checksum or source revision")
@click.option("--pkg-hash-b", help="Root of tree B: package checksum or source revision")
@click.option("--pkg-name-a", help="Root of tree A: package name")
@click.option("--pkg-name-b", help="Root of tree B: package name")
@click.option(
    "--exclude-pkg-a",
    help="Comma-separated package names to drop from lockfile A before walking",
)
@click.option(
    "--exclude-pkg-b",
    help="Comma-separated package names to drop from lockfile B before walking",
)
@click.option(
    "--strict-versions",
    is_flag=True,
    help="Treat a package with several versions on either side as different",
)
@click.option(
    "--narrow-to-common",
    is_flag=True,
    help="Re-walk both trees without packages that only one side has",
)
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"]),
    help="Output format (default from config: console)",
)
@click.option(
    "--output-file", "-o", type=click.Path(), help="Save JSON results to file"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-critical output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show dependency paths, matching packages and progress events",
)
def compare(
    lockfile_a: str,
    lockfile_b: str,
    pkg_hash_a: Optional[str],
    pkg_hash_b: Optional[str],
    pkg_name_a: Optional[str],
    pkg_name_b: Optional[str],
    exclude_pkg_a: Optional[str],
    exclude_pkg_b: Optional[str],
    strict_versions: bool,
    narrow_to_common: bool,
    output_format: Optional[str],
    output_file: Optional[str],
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Compare the package versions of two lockfiles.

    LOCKFILE_A and LOCKFILE_B are paths, file:// URLs or http(s):// URLs.
    Exits 0 when every shared package has the same versions, 1 when some
    differ and 2 on errors.

    Examples:

      lockparity compare old/Cargo.lock new/Cargo.lock

      lockparity compare a/Cargo.lock b/Cargo.lock --pkg-name-a node --pkg-name-b node

      lockparity compare a/Cargo.lock b/Cargo.lock --exclude-pkg-a tokio,mio

      lockparity compare a/Cargo.lock https://example.com/Cargo.lock --output-format json
    """
    _check_root_options("a", pkg_hash_a, pkg_name_a)
    _check_root_options("b", pkg_hash_b, pkg_name_b)

    config = load_config()
    final_output_format = output_format or config.compare.output_format
    if output_file and final_output_format != "json":
        raise click.UsageError("Output file can only be used with JSON format")

    log_level = "INFO" if verbose else config.logging.log_level
    configure_logging(log_level)
    setup_error_handling(getattr(logging, log_level.upper(), logging.WARNING))

    options = ComparisonOptions(
        strict_versions=strict_versions or config.compare.strict_versions,
        narrow_to_common=narrow_to_common or config.compare.narrow_to_common,
    )

    try:
        spec_a = SideSpec(
            lockfile_a, pkg_hash_a, pkg_name_a, parse_exclude_list(exclude_pkg_a)
        )
        spec_b = SideSpec(
            lockfile_b, pkg_hash_b, pkg_name_b, parse_exclude_list(exclude_pkg_b)
        )

        if verbose and not quiet and final_output_format == "console":
            error_console.print(f"📁 Lockfile A: {lockfile_a} ({spec_a.selector})", style="blue")
            error_console.print(f"📁 Lockfile B: {lockfile_b} ({spec_b.selector})", style="blue")

        result = run_comparison(spec_a, spec_b, options, config).result

        if final_output_format == "json":
            output_json_results(result, lockfile_a, lockfile_b, output_file, error_console)
        elif not quiet:
            ComparisonReporter(console).print_comparison(
                result,
                lockfile_a,
                lockfile_b,
                verbose=verbose,
                show_same=verbose or config.compare.show_same,
            )
        elif not result.all_common_versions_match:
            error_console.print(
                f"❌ MISMATCH: {result.count(Verdict.BOTH_DIFFERENT)} packages differ "
                f"between {lockfile_a} and {lockfile_b}",
                style="red",
            )
    except KeyboardInterrupt:
        error_console.print("\n⚠️  Comparison interrupted by user", style="yellow")
        sys.exit(EXIT_INTERRUPTED)
    except LockParityError as e:
        # Fetch and parse failures are logged where they are raised
        if isinstance(e, (GraphError, SelectorError, ConfigurationError)):
            report_error(e, "main", "compare")
        error_console.print(f"❌ Error: {e}", style="red", markup=False)
        sys.exit(EXIT_ERROR)
    except OSError as e:
        error_console.print(f"❌ I/O error: {e}", style="red", markup=False)
        sys.exit(EXIT_ERROR)
    except Exception as e:
        error_console.print(
            f"❌ Unexpected error: {type(e).__name__}: {e}", style="red", markup=False
        )
        sys.exit(EXIT_ERROR)

    sys.exit(exit_code_for(result))


@cli.command()
def info():
    """Show information about supported lockfiles and usage examples."""
    formats = ", ".join(get_supported_formats())
    info_text = f"""
[bold blue]📋 Supported Lockfiles:[/bold blue] ({formats})

• [green]Cargo.lock[/green] - Rust lockfiles, versions 1 to 4
• [green]*.json[/green] - JSON package list: {{"packages": [{{"name", "version", "hash", "source", "dependencies"}}]}}

[bold blue]🌳 Selecting Trees:[/bold blue]

• [yellow]--pkg-hash-a/b[/yellow] - Root at the package with this checksum or git revision
• [yellow]--pkg-name-a/b[/yellow] - Root at the single package with this name
• [yellow]--exclude-pkg-a/b[/yellow] - Drop packages (and what only they pull in) before walking
• Without a root option the whole lockfile is compared

[bold blue]⚖️  Verdicts:[/bold blue]

• [green]both-same[/green] - Same versions on both sides
• [red]both-different[/red] - Versions differ (fails the comparison)
• [blue]only-a / only-b[/blue] - Present on one side only (reported, not a failure)

[bold blue]🚦 Exit Codes:[/bold blue]

• [green]0[/green] - All common packages match
• [red]1[/red] - Some common packages differ
• [red]2[/red] - Invalid input, unreadable lockfile or unresolvable graph

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]LOCKPARITY_STRICT_VERSIONS[/cyan] - Fail on packages with several versions
• [cyan]LOCKPARITY_NARROW_TO_COMMON[/cyan] - Always narrow to common packages
• [cyan]LOCKPARITY_CONNECT_TIMEOUT[/cyan] / [cyan]LOCKPARITY_READ_TIMEOUT[/cyan] - HTTP timeouts
• [cyan]LOCKPARITY_USER_AGENT[/cyan] - HTTP user agent
• [cyan]LOCKPARITY_MAX_FILE_SIZE_MB[/cyan] - Largest lockfile accepted
• [cyan]LOCKPARITY_OUTPUT_FORMAT[/cyan] - Default output format
• [cyan]LOCKPARITY_LOG_LEVEL[/cyan] - Structured log level

[bold blue]📄 Configuration Files:[/bold blue]

• [green].lockparity.json[/green] - Project-level config
• [green]~/.config/lockparity/config.json[/green] - User-level config
• [green]~/.lockparity.json[/green] - User home config

[bold blue]💡 Usage Examples:[/bold blue]

  # Compare two whole lockfiles
  lockparity compare before/Cargo.lock after/Cargo.lock

  # Compare the trees of one crate in two workspaces
  lockparity compare a/Cargo.lock b/Cargo.lock --pkg-name-a server --pkg-name-b server

  # JSON output for automation
  lockparity compare a/Cargo.lock b/Cargo.lock --output-format json

  # Generate sample config
  lockparity config init
"""
    console.print(
        Panel(
            info_text,
            title="[bold]lockparity Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".lockparity.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_sample_config())
    except OSError as e:
        error_console.print(f"❌ Failed to create config file: {e}", style="red")
        sys.exit(EXIT_ERROR)

    console.print(f"✅ Created configuration file at {config_path}", style="green")
    console.print("Edit this file to customize your settings", style="dim")


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    table = Table(title="🔧 Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Section", style="cyan")
    table.add_column("Setting")
    table.add_column("Value", style="green")

    for section, values in asdict(current_config).items():
        for key, value in values.items():
            table.add_row(section, key.replace("_", " ").title(), str(value))

    console.print(table)


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_data = load_config_file(Path(config_file))

    if not isinstance(config_data, dict):
        error_console.print(f"❌ Could not load config from {config_file}", style="red")
        sys.exit(EXIT_ERROR)

    candidate = LockParityConfig()
    apply_config_data(candidate, config_data)
    errors = validate_config_values(candidate)

    if errors:
        error_console.print("❌ Configuration validation failed:", style="red")
        for error in errors:
            error_console.print(f"  • {error}", style="red")
        sys.exit(EXIT_ERROR)

    console.print(f"✅ Configuration file {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
