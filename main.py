#!/usr/bin/env python3
"""BuildMind CLI - Entry point for the multi-agent app builder.

Usage:
    # Generate an app from an idea
    python main.py run "Build a simple todo app" --project-id todo-app

    # Run the build-analyze-fix loop over existing sources
    python main.py build ./my-app/src --speed

    # Show which providers are configured
    python main.py --list-providers
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

try:
    import click
    from rich.console import Console
    from rich.panel import Panel
    from rich.progress import Progress, SpinnerColumn, TextColumn
    from rich.table import Table
except ImportError:
    print("Missing dependencies. Run: pip install click rich")
    sys.exit(1)

from cicd import BuildCache, BuildProfile, BuildSystem
from config import settings
from contracts import BuildResult, InterviewAnswers, LogEntry, LogLevel
from orchestrator import build_orchestrator
from providers import ModelGateway
from providers import list_providers as get_available_providers
from agents import QAAgent


console = Console()

SOURCE_SUFFIXES = {".ts", ".tsx", ".js", ".jsx", ".json", ".css", ".html", ".md", ".sql"}

_LEVEL_STYLES = {
    LogLevel.INFO: "dim",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
}


def print_log_entry(entry: LogEntry) -> None:
    style = _LEVEL_STYLES.get(entry.level, "")
    console.print(f"[{style}]{entry.timestamp:%H:%M:%S} [{entry.source}] {entry.message}[/{style}]")


def read_source_files(root: Path) -> Dict[str, str]:
    """Read source files under `root`, keyed by their POSIX path relative to it."""
    files = {}
    for file in sorted(root.rglob("*")):
        if file.is_file() and file.suffix in SOURCE_SUFFIXES and "node_modules" not in file.parts:
            files[file.relative_to(root).as_posix()] = file.read_text(encoding="utf-8", errors="replace")
    return files


def write_files(files: Dict[str, str], output_dir: Path) -> None:
    """Write files under `output_dir`; paths resolving outside it are skipped."""
    root = output_dir.resolve()
    for path, content in files.items():
        target = (root / path).resolve()
        if not target.is_relative_to(root) or target == root:
            console.print(f"[yellow]Skipping file outside the output directory: {path}[/yellow]")
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


def print_build_result(result: BuildResult) -> None:
    table = Table(title="Build result", show_header=False)
    table.add_row("Status", "[green]success[/green]" if result.success else "[red]failed[/red]")
    table.add_row("Attempts", str(result.attempts))
    table.add_row("Auto-fixed", "yes" if result.fixed else "no")
    if result.metrics:
        table.add_row("Files", str(result.metrics.total_files))
        table.add_row("Lines", str(result.metrics.total_lines))
        table.add_row("Complexity", str(result.metrics.complexity))
        table.add_row("Quality", result.metrics.code_quality.value)
        table.add_row("Security issues", str(result.metrics.security_issues))
    console.print(table)

    for error in result.errors:
        console.print(f"  [red]✗[/red] {error}")
    for warning in result.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")
    for note in result.optimizations or []:
        console.print(f"  [blue]•[/blue] {note}")


@click.group(invoke_without_command=True)
@click.option(
    "--list-providers",
    is_flag=True,
    help="List available providers and exit"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Verbose output"
)
@click.pass_context
def cli(ctx: click.Context, list_providers: bool, verbose: bool):
    """BuildMind: multi-agent app builder.

    Turns an app idea into a concept, design system, schema and generated
    code, then runs a build-analyze-fix loop over the result.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if list_providers:
        console.print("[bold]Available LLM Providers:[/bold]\n")
        for name, available in get_available_providers(settings).items():
            status = "[green]✓ Ready[/green]" if available else "[red]✗ No API key[/red]"
            console.print(f"  {name:12} {status}")
        console.print("\n[dim]Set API keys via environment variables:[/dim]")
        console.print("  ANTHROPIC_API_KEY, GOOGLE_API_KEY, OPENAI_API_KEY, DEEPSEEK_API_KEY")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("idea")
@click.option("--project-id", "-p", default=None, help="Project id; enables brain persistence")
@click.option("--reference-url", "-r", default=None, help="Reference website for the design")
@click.option("--style", default=None, help="Preferred design style")
@click.option("--audience", default=None, help="Target audience")
@click.option(
    "--output", "-o", "output_dir",
    default=None,
    help=f"Output directory (default: {settings.output_dir})"
)
def run(
    idea: str,
    project_id: Optional[str],
    reference_url: Optional[str],
    style: Optional[str],
    audience: Optional[str],
    output_dir: Optional[str],
):
    """Generate an app from IDEA."""
    console.print(Panel.fit(
        "[bold blue]BuildMind[/bold blue]\n"
        "[dim]Multi-agent app builder[/dim]",
        border_style="blue"
    ))

    answers = InterviewAnswers(design_style=style, target_audience=audience, reference_url=reference_url)
    orchestrator = build_orchestrator(settings)
    result = asyncio.run(orchestrator.orchestrate(
        idea,
        interview_answers=answers,
        project_id=project_id,
        on_log=print_log_entry,
    ))

    console.print("\n" + "=" * 60)
    if not result.success:
        stage = result.failed_stage.value if result.failed_stage else "unknown"
        console.print(f"[red]Failed during {stage}:[/red] {result.message}")
        if result.build_result:
            print_build_result(result.build_result)
        sys.exit(1)

    console.print(f"[green]{result.message}[/green]")
    if result.build_result:
        print_build_result(result.build_result)

    target = Path(output_dir) if output_dir else settings.get_output_path() / (project_id or settings.default_project_id)
    write_files(result.files, target)
    console.print(f"\n[bold]Output saved to:[/bold] {target}")
    console.print("\n" + "=" * 60)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--speed", is_flag=True, help="Use the speed profile (fewer retries)")
@click.option("--write-fixes", is_flag=True, help="Write auto-fixed files back to PATH")
def build(path: Path, speed: bool, write_fixes: bool):
    """Run the build-analyze-fix loop over the sources in PATH."""
    files = read_source_files(path)
    if not files:
        console.print(f"[red]Error: no source files found in {path}[/red]")
        sys.exit(1)

    gateway = ModelGateway(settings=settings)
    build_system = BuildSystem(gateway, QAAgent(gateway), cache=BuildCache.from_settings(settings), settings=settings)
    profile = BuildProfile.optimize_for_speed(settings) if speed else BuildProfile.optimize_for_quality(settings)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(f"Analyzing {len(files)} files...", total=None)
        result = asyncio.run(build_system.run_cicd_pipeline(files, profile=profile))
        progress.update(task, completed=True)

    print_build_result(result)

    if write_fixes and result.fixed_files:
        write_files(result.fixed_files, path)
        console.print(f"\n[bold]Fixed files written to:[/bold] {path}")

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    cli()
