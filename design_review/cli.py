"""Command-line interface for the Design Review Pipeline."""

import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from design_review.config import get_settings
from design_review.models import PipelineOptions, PipelineResult, StageName

# Configure structlog for CLI
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="design-review",
    help="Design Review Pipeline - research-validated design feedback from screenshots",
    add_completion=False,
)
console = Console()

STATUS_STYLES = {
    "success": "green",
    "error": "red",
    "timeout": "yellow",
    "skipped": "dim",
}


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")


@app.command()
def analyze(
    images: list[str] = typer.Argument(..., help="Image URLs, data URIs or local image paths"),
    prompt: str = typer.Option(..., "--prompt", "-p", help="What the review should focus on"),
    run_id: Optional[str] = typer.Option(None, "--run-id", help="Run UUID (generated if omitted)"),
    actor: str = typer.Option("cli", "--actor", help="Who requested the run"),
    skip_stage: Optional[list[StageName]] = typer.Option(None, "--skip-stage", help="Stage to skip (repeatable)"),
    force_stage: Optional[list[StageName]] = typer.Option(None, "--force-stage", help="Stage to force on (repeatable)"),
    config_name: Optional[str] = typer.Option(None, "--config-name", help="Stored pipeline configuration to use"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the full result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run the analysis pipeline on one or more screenshots."""
    from design_review.pipeline import build_orchestrator

    _configure_logging(verbose)
    settings = get_settings()
    run_id = run_id or str(uuid.uuid4())

    console.print(
        Panel.fit(
            "[bold blue]Design Review Pipeline[/bold blue]\n"
            f"Analyzing {len(images)} image(s)...",
            border_style="blue",
        )
    )
    console.print(f"\n[dim]Run:[/dim] {run_id}\n")

    orchestrator = build_orchestrator(settings)
    result = orchestrator.run(
        images=images,
        prompt=prompt,
        run_id=run_id,
        actor_id=actor,
        options=PipelineOptions(
            skip_stages=skip_stage or [],
            force_stages=force_stage or [],
        ),
        configuration=orchestrator.load_configuration(config_name) if config_name else None,
    )

    _display_result(result)

    if output is not None:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(result.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        console.print(f"\n[green]Result saved to:[/green] {output}")

    if not result.success:
        console.print(f"\n[red]Error:[/red] {result.error}")
        sys.exit(1)


@app.command("init-db")
def init_db_command(
    seed: bool = typer.Option(True, "--seed/--no-seed", help="Store the default configuration"),
) -> None:
    """Create database tables and optionally store the default configuration."""
    from design_review.pipeline import default_configuration
    from design_review.storage import SqlConfigurationStore, create_engine_and_session, init_db

    settings = get_settings()
    engine, session_factory = create_engine_and_session(settings.database_url)

    try:
        init_db(engine)
        console.print(f"[green]Tables ready:[/green] {settings.database_url}")
        if seed:
            configuration = default_configuration()
            SqlConfigurationStore(session_factory).save(configuration)
            console.print(f"[green]Stored configuration:[/green] {configuration.name}")
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@app.command("show-config")
def show_config(
    config_name: Optional[str] = typer.Option(None, "--config-name", help="Configuration name"),
) -> None:
    """Display the pipeline configuration a run would use."""
    from design_review.pipeline import load_configuration
    from design_review.storage import SqlConfigurationStore, create_engine_and_session

    settings = get_settings()
    _, session_factory = create_engine_and_session(settings.database_url)
    configuration = load_configuration(
        SqlConfigurationStore(session_factory),
        config_name or settings.pipeline_config_name,
    )

    console.print(
        Panel.fit(
            f"[bold blue]{configuration.name}[/bold blue] (version {configuration.version})",
            border_style="blue",
        )
    )

    table = Table(title="Stages")
    table.add_column("Stage")
    table.add_column("Enabled")
    table.add_column("Timeout (ms)", justify="right")
    table.add_column("Retries", justify="right")
    table.add_column("Weight", justify="right")
    for spec in configuration.stages:
        table.add_row(
            spec.name.value,
            "yes" if spec.enabled else "no",
            str(spec.timeout_ms),
            str(spec.retry_count),
            f"{configuration.weights.get(spec.name.value, 0.0):.2f}",
        )
    console.print(table)

    thresholds = Table(show_header=False, box=None)
    thresholds.add_column("Threshold", style="dim")
    thresholds.add_column("Value")
    for key, value in configuration.thresholds.items():
        thresholds.add_row(key, str(value))
    console.print(thresholds)


def _display_result(result: PipelineResult) -> None:
    """Display the stage timeline and the top annotations."""
    table = Table(title="Stages")
    table.add_column("Stage")
    table.add_column("Status")
    table.add_column("Duration (ms)", justify="right")
    table.add_column("Error", style="dim")

    for stage in result.stages:
        style = STATUS_STYLES.get(stage.status.value, "")
        table.add_row(
            stage.stage_name.value,
            f"[{style}]{stage.status.value}[/{style}]" if style else stage.status.value,
            f"{stage.duration_ms:.1f}",
            escape(stage.error or ""),
        )
    console.print(table)

    annotations = result.final_result.annotations[:10]
    if annotations:
        console.print("\n[bold]Top Annotations[/bold]")
        for i, annotation in enumerate(annotations, 1):
            validated = " [green](validated)[/green]" if annotation.perplexity_validated else ""
            console.print(
                f"  {i}. {escape(f'[{annotation.severity.value}]')} {escape(annotation.title or annotation.id)} "
                f"- confidence {annotation.confidence:.2f}{validated}"
            )

    scores = result.final_result.quality_scores
    if scores:
        console.print(
            f"\n[dim]Completion {scores.get('pipeline_completion', 0.0):.0%}, "
            f"overall quality {scores.get('overall_quality', 0.0):.2f}, "
            f"processed in {result.final_result.processing_time_ms / 1000:.1f}s[/dim]"
        )

    if result.warnings:
        console.print(f"\n[yellow]Warnings:[/yellow] {len(result.warnings)}")
        for warning in result.warnings:
            console.print(f"  [dim]{escape(warning)}[/dim]")


if __name__ == "__main__":
    app()
