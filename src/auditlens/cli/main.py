"""auditlens - compliance scores and analytics from exported scan data."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from pathlib import Path
from typing import Any, Callable

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..errors import AuditLensError

console = Console()

OUTPUT_FORMATS = click.Choice(["table", "json"])


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def reports_errors(func: Callable) -> Callable:
    """Turn configuration errors into a one-line message and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except AuditLensError as e:
            console.print(f"  [red]ERROR[/red] {e}")
            click.get_current_context().exit(1)

    return wrapper


def _load_records(path: str, key: str) -> list:
    """A JSON list, or a list stored under ``key`` in a JSON object."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8-sig"))
    except (OSError, ValueError) as e:
        raise click.BadParameter(f"could not read {path}: {e}", param_hint="--input")
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        raise click.BadParameter(f"expected a list of {key} in {path}", param_hint="--input")
    return data


def _split(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


class AppContext:
    """Configuration and template registry shared by every command."""

    def __init__(self, project: str | None, templates_dir: str | None):
        self.project = Path(project) if project else None
        self.templates_dir = Path(templates_dir) if templates_dir else None
        self._config: dict | None = None
        self._registry = None

    @property
    def config(self) -> dict:
        if self._config is None:
            from ..core.config import get_effective_config

            self._config = get_effective_config(self.project)
        return self._config

    @property
    def registry(self):
        if self._registry is None:
            from ..compliance.providers import RemoteTemplateProvider, providers_from_dir
            from ..compliance.registry import default_registry

            extra = []
            template_settings = self.config.get("templates") or {}
            configured_dir = template_settings.get("dir")
            if configured_dir and self.project is not None:
                extra.extend(providers_from_dir(self.project / configured_dir))
            if self.templates_dir is not None:
                extra.extend(providers_from_dir(self.templates_dir))
            extra.extend(RemoteTemplateProvider(url) for url in template_settings.get("remote") or [])

            registry = default_registry()
            self._registry = registry.with_providers(*extra) if extra else registry
        return self._registry


@click.group()
@click.pass_context
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), help="Project path with .auditlens/config.yaml")
@click.option("--templates-dir", type=click.Path(exists=True, file_okay=False), help="Extra compliance template YAML files")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(ctx: click.Context, project: str | None, templates_dir: str | None, verbose: bool) -> None:
    """auditlens - compliance scoring and analytics for accessibility scans."""
    _configure_logging(verbose)
    ctx.obj = AppContext(project, templates_dir)


@cli.command()
@click.pass_obj
@reports_errors
def templates(app: AppContext) -> None:
    """List registered compliance templates."""
    table = Table(title="Compliance templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Standard")
    table.add_column("Version")
    table.add_column("Sections", justify="right")
    for template in app.registry.templates():
        table.add_row(
            template.id, template.name, template.standard, template.version, str(len(template.sections))
        )
    console.print(table)


@cli.command()
@click.pass_obj
@click.option("--input", "-i", "input_path", type=click.Path(exists=True, dir_okay=False), required=True, help="JSON file of scan records")
@click.option("--template", "-t", "template_id", default="wcag21_aa", show_default=True, help="Template ID")
@click.option("--output-format", "-f", type=OUTPUT_FORMATS, default="table")
@reports_errors
def score(app: AppContext, input_path: str, template_id: str, output_format: str) -> None:
    """Score scans against one compliance template."""
    from ..compliance.scorer import score as score_scans
    from ..core.normalizer import filter_synthetic

    scans = filter_synthetic(_load_records(input_path, "scans"))
    result = score_scans(scans, template_id, registry=app.registry, config=app.config)

    if output_format == "json":
        click.echo(result.model_dump_json(indent=2))
        return

    console.print(f"\n  [bold cyan]{result.template_name}[/bold cyan] ({result.standard} {result.version})")
    console.print(f"  Scans:  {result.sample_size}")
    console.print(f"  Score:  [bold]{result.overall_score}[/bold]  {result.compliance_level}\n")

    table = Table()
    table.add_column("Section")
    table.add_column("Score", justify="right")
    table.add_column("Passed", justify="right")
    table.add_column("Critical", justify="right")
    table.add_column("Weight", justify="right")
    for section in result.section_results:
        table.add_row(
            section.title,
            str(section.score),
            f"{section.passed_criteria}/{section.total_criteria}",
            str(section.critical_issue_count),
            f"{section.weight:g}",
        )
    console.print(table)
    for recommendation in result.recommendations:
        console.print(f"  - {recommendation}")


def _print_analytics(payload) -> None:
    if not payload.has_data:
        console.print("  [yellow]No scan data[/yellow] (all records empty or synthetic)")

    console.print(f"  Range: {payload.time_range}  Scans: {payload.sample_size}\n")
    groups = payload.analytics

    if "overview" in groups:
        overview = groups["overview"]
        console.print(
            f"  [bold]Overview[/bold]  scans {overview.total_scans}, "
            f"average score {overview.average_score}, issues {overview.total_issues}"
        )
    if "trends" in groups:
        report = groups["trends"]
        table = Table(title=f"Trends ({report.bucket_width.value})")
        table.add_column("Bucket")
        table.add_column("Score", justify="right")
        table.add_column("Issues", justify="right")
        table.add_column("Scans", justify="right")
        for bucket in report.buckets:
            score_text = "-" if bucket.average_score is None else str(bucket.average_score)
            table.add_row(bucket.bucket_key, score_text, str(bucket.total_issues), str(bucket.sample_count))
        console.print(table)
    if "issues" in groups:
        table = Table(title="Top issues")
        table.add_column("#", justify="right")
        table.add_column("Rule", style="cyan")
        table.add_column("Count", justify="right")
        table.add_column("Fix")
        for entry in groups["issues"].top_issues:
            table.add_row(str(entry.rank), entry.rule_id, str(entry.occurrence_count), entry.remediation_hint)
        console.print(table)
    if "performance" in groups:
        perf = groups["performance"]
        console.print(
            f"  [bold]Performance[/bold]  correlation {perf.correlation} over {perf.sample_size} scans"
            + (f" ({perf.message})" if perf.message else "")
        )
    if "compliance" in groups:
        for result in groups["compliance"].results.values():
            console.print(
                f"  [bold]{result.template_id}[/bold]  {result.overall_score}  {result.compliance_level}"
            )
    if "risk" in groups:
        risk = groups["risk"]
        console.print(
            f"  [bold]Risk[/bold]  {risk.risk_level.value}, trend {risk.risk_trend_delta:+.1f}, "
            f"high-risk scans {risk.high_risk_count}"
        )
    if "benchmarks" in groups and groups["benchmarks"].comparison is not None:
        comparison = groups["benchmarks"].comparison
        console.print(
            f"  [bold]Benchmark[/bold]  {comparison.industry}: {comparison.percentile}, "
            f"{comparison.overall_ranking}"
        )


@cli.command()
@click.pass_obj
@click.option("--input", "-i", "input_path", type=click.Path(exists=True, dir_okay=False), required=True, help="JSON file of scan records")
@click.option("--metrics", "-m", default="overview", show_default=True, help="Comma-separated metric groups")
@click.option("--time-range", type=click.Choice(["7d", "30d", "90d", "1y"]), default="30d", show_default=True)
@click.option("--industry", type=str, help="Benchmark industry for a detailed comparison")
@click.option("--templates", "template_ids", type=str, help="Comma-separated template IDs for compliance")
@click.option("--output-format", "-f", type=OUTPUT_FORMATS, default="table")
@reports_errors
def analytics(
    app: AppContext,
    input_path: str,
    metrics: str,
    time_range: str,
    industry: str | None,
    template_ids: str | None,
    output_format: str,
) -> None:
    """Build the analytics payload for a set of scans."""
    from ..core.analytics import gather_analytics

    records = _load_records(input_path, "scans")
    try:
        payload = asyncio.run(
            gather_analytics(
                records,
                metrics=_split(metrics) or ["overview"],
                time_range=time_range,
                industry=industry,
                template_ids=_split(template_ids),
                registry=app.registry,
                config=app.config,
            )
        )
    except ValueError as e:
        if isinstance(e, AuditLensError):
            raise
        raise click.BadParameter(str(e), param_hint="--metrics")

    if output_format == "json":
        click.echo(payload.model_dump_json(indent=2))
        return
    _print_analytics(payload)


@cli.command()
@click.pass_obj
@click.option("--input", "-i", "input_path", type=click.Path(exists=True, dir_okay=False), required=True, help="JSON file of scan records")
@click.option("--output-format", "-f", type=OUTPUT_FORMATS, default="table")
@reports_errors
def insights(app: AppContext, input_path: str, output_format: str) -> None:
    """Trend direction, patterns and next-week projection."""
    from ..core.normalizer import filter_synthetic
    from ..core.trends import analyze_trend

    result = analyze_trend(filter_synthetic(_load_records(input_path, "scans")), app.config)

    if output_format == "json":
        click.echo(result.model_dump_json(indent=2))
        return

    console.print(f"  Trend: [bold]{result.overall_trend}[/bold] ({result.trend_percentage:+g}%)")
    console.print(
        f"  Next week: {result.predicted_next_week_score:g} "
        f"(confidence {result.prediction_confidence}%)"
    )
    for pattern in result.patterns:
        console.print(f"  [dim]{pattern.kind}[/dim] {pattern.description}")
    for recommendation in result.recommendations:
        console.print(f"  - {recommendation}")


@cli.command()
@click.pass_obj
@click.option("--input", "-i", "input_path", type=click.Path(exists=True, dir_okay=False), required=True, help="JSON file of account health records")
@click.option("--output-format", "-f", type=OUTPUT_FORMATS, default="table")
@reports_errors
def portfolio(app: AppContext, input_path: str, output_format: str) -> None:
    """Rank accounts by churn/health risk."""
    from ..core.risk import assess_portfolio_risk
    from ..models.analytics import AccountHealthFlags

    try:
        accounts = [AccountHealthFlags.model_validate(r) for r in _load_records(input_path, "accounts")]
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--input")

    report = assess_portfolio_risk(accounts, app.config)

    if output_format == "json":
        click.echo(report.model_dump_json(indent=2))
        return

    console.print(
        f"  At risk: [bold]{report.total_at_risk}[/bold]  inactive 30d: {report.inactive_30_days}  "
        f"trials ending: {report.trials_ending}  payment issues: {report.payment_issues}  "
        f"high error rates: {report.high_error_rates}"
    )
    table = Table()
    table.add_column("Account", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Risk")
    table.add_column("Factors")
    for account in report.at_risk:
        table.add_row(
            account.account_id, str(account.risk_score), account.risk_label or "", ", ".join(account.risk_factors)
        )
    console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
