"""Console rendering of detection reports."""
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from .analyzer.aggregator import Report
from .analyzer.extractor import CATEGORIES, ElementKind
from .utils.logger import sanitize_for_terminal


ELEMENT_ICONS = {
    ElementKind.COMPONENT: '🔴',
    ElementKind.TYPE: '🔷',
    ElementKind.INTERFACE: '🔶',
    ElementKind.FUNCTION: '🔵',
    ElementKind.VARIABLE: '🟡',
    ElementKind.ENUM: '🟣',
}
KIND_BY_CATEGORY = {category: kind for kind, category in CATEGORIES.items()}


def _icon(kind: ElementKind) -> str:
    return sanitize_for_terminal(ELEMENT_ICONS[kind])


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def print_report(report: Report, console: Console, verbose: bool = False) -> None:
    """Render a report: unused table, statistics, per-category breakdown.

    Args:
        report: Detection report
        console: Console to render to
        verbose: Also list every unused element with its location
    """
    console.print(Rule(sanitize_for_terminal("📊 Results")))

    if not report.unused:
        console.print("[bold green]✅ No unused elements found![/bold green]\n")
    else:
        count = report.unused_count
        console.print(f"[bold red]❌ Found {count} unused element{_plural(count)}:[/bold red]\n")

        table = Table(title="Unused Elements")
        table.add_column("", no_wrap=True)
        table.add_column("Name", style="bold red")
        table.add_column("Kind", style="dim")
        table.add_column("Location", style="cyan", no_wrap=False)
        for element in report.unused:
            table.add_row(
                _icon(element.kind),
                escape(element.name),
                element.kind.value,
                escape(f"{element.file}:{element.line}"),
            )
        console.print(table)

    console.print("\n[bold]Statistics:[/bold]")
    console.print(f"  • Files scanned: [bold]{report.files_scanned}[/bold]")
    console.print(f"  • Total elements: [bold]{report.total}[/bold]")
    console.print(f"  • Used elements: [bold green]{report.used}[/bold green]")
    console.print(f"  • Unused elements: [bold red]{report.unused_count}[/bold red]")
    console.print(f"  • Usage rate: [bold cyan]{round(report.usage_rate)}%[/bold cyan]")

    by_type = Table(title="By Type")
    by_type.add_column("", no_wrap=True)
    by_type.add_column("Category")
    by_type.add_column("Total", justify="right")
    by_type.add_column("Used", justify="right", style="green")
    by_type.add_column("Unused", justify="right", style="red")
    by_type.add_column("Rate", justify="right", style="cyan")
    for category, stats in report.by_category:
        if stats.total == 0:
            continue
        rate = round(stats.used / stats.total * 100)
        by_type.add_row(
            _icon(KIND_BY_CATEGORY[category]),
            category,
            str(stats.total),
            str(stats.used),
            str(stats.unused),
            f"{rate}%",
        )
    if by_type.row_count:
        console.print()
        console.print(by_type)

    if report.warnings:
        console.print(f"\n[bold yellow]⚠️  {len(report.warnings)} file{_plural(len(report.warnings))} skipped:[/bold yellow]")
        for warning in report.warnings:
            console.print(f"  • {escape(warning)}")

    if verbose and report.unused:
        console.print()
        console.print(Rule("Unused Elements Details"))
        for element in report.unused:
            console.print(f"\n[red]❌ {escape(element.name)}[/red] ({element.kind.value})")
            console.print(f"   Definition: [dim]{escape(element.file)}:{element.line}[/dim]")
