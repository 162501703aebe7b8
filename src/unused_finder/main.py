"""ts-unused-finder CLI - find unused components, types and functions in TypeScript projects."""
from pathlib import Path
import time
from typing import List, Optional
import typer
from rich.markup import escape

from .analyzer.detector import UnusedElementDetector, discover_sources
from .config import (
    Config,
    ConfigurationError,
    __version__,
    adjust_config_for_monorepo,
    load_config,
    merge_configs,
)
from .reporter import print_report
from .utils.logger import configure_logging, resolve_log_level
from .utils.safe_console import SafeConsole


app = typer.Typer(
    name="ts-unused-finder",
    help="Find unused components, types, interfaces, functions, variables and enums in TypeScript/React code",
    add_completion=False,
)
console = SafeConsole()
err_console = SafeConsole(stderr=True)


def version_callback(value: bool):
    if value:
        typer.echo(f"ts-unused-finder {__version__}")
        raise typer.Exit()


def apply_type_flags(config: Config, types: bool, interfaces: bool, functions: bool,
                     variables: bool, enums: bool, all_types: bool) -> Config:
    """Apply the category flags to a config.

    Without any flag the config is left alone. With `--all` every category is
    on; otherwise components are always on and the rest follow the flags.
    """
    if not (all_types or types or interfaces or functions or variables or enums):
        return config

    detection = config.detection_types
    detection.components = True
    detection.types = all_types or types
    detection.interfaces = all_types or interfaces
    detection.functions = all_types or functions
    detection.variables = all_types or variables
    detection.enums = all_types or enums
    return config


def build_config(root: Path, config_path: Optional[Path], entry: List[str], **flags) -> Config:
    """Load, merge and adjust the configuration of one run.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    loaded = load_config(config_path, root=root)
    loaded = apply_type_flags(loaded, **flags)
    loaded.entry_points = list(loaded.entry_points) + list(entry)
    config = merge_configs(Config(), loaded)
    return adjust_config_for_monorepo(config, root)


@app.command()
def scan(
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root to analyze"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a tuc.config.json file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress all output except errors"),
    strict: bool = typer.Option(False, "--strict", "-s", help="Exit with code 1 if any unused element is found"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", help="Number of parallel workers (default: CPU count)"),
    types: bool = typer.Option(False, "--types", help="Detect unused type aliases"),
    interfaces: bool = typer.Option(False, "--interfaces", help="Detect unused interfaces"),
    functions: bool = typer.Option(False, "--functions", help="Detect unused functions"),
    variables: bool = typer.Option(False, "--variables", help="Detect unused variables"),
    enums: bool = typer.Option(False, "--enums", help="Detect unused enums"),
    all_types: bool = typer.Option(False, "--all", help="Detect all element types"),
    entry: Optional[List[str]] = typer.Option(None, "--entry", "-e", help="Entry-point file or glob (repeatable)"),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    version: bool = typer.Option(False, "--version", callback=version_callback, is_eager=True,
                                 help="Show version and exit"),
):
    """Scan a project and report unused declarations."""
    root = root.resolve()
    if not root.is_dir():
        err_console.print(f"[bold red]Error:[/bold red] Project root does not exist: {escape(str(root))}")
        raise typer.Exit(1)

    start_time = time.time()
    try:
        config = build_config(
            root, config_path, entry or [],
            types=types, interfaces=interfaces, functions=functions,
            variables=variables, enums=enums, all_types=all_types,
        )
        configure_logging(resolve_log_level(config.ci.log_level, verbose, quiet or json_output))
        detector = UnusedElementDetector(config, jobs)
        report = detector.detect(discover_sources(config, root))
    except ConfigurationError as exc:
        err_console.print(f"[bold red]❌ Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1)

    elapsed = time.time() - start_time

    if json_output:
        typer.echo(report.to_json())
    elif not quiet:
        print_report(report, console, verbose=verbose)
        console.print(f"\n[dim]Execution time: {elapsed:.2f}s[/dim]")
        if verbose:
            console.print(f"[dim]Workers: {detector.jobs}[/dim]")

    unused = report.unused_count
    chatty = not (quiet or json_output)
    if strict and unused:
        if chatty:
            err_console.print(f"\n[bold red]❌ Found {unused} unused element{'' if unused == 1 else 's'}[/bold red]")
        raise typer.Exit(1)

    ci = config.ci
    if ci.fail_on_exceed and unused > ci.max_unused_elements:
        if chatty:
            err_console.print(
                f"\n[bold yellow]⚠️  Unused elements exceed threshold: {unused} > {ci.max_unused_elements}[/bold yellow]"
            )
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
