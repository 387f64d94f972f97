"""
Cost guard CLI.

Estimates the monthly cost impact of a Terraform plan and asks for
confirmation before it is applied.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from costguard.core.config import config
from costguard.services.cost_report import (
    ConfirmationError,
    confirm_apply,
    evaluate_threshold,
    format_cost_summary,
)
from costguard.services.plan_estimator import PlanEstimator
from costguard.services.plan_parser import PlanParseError, parse_plan_file


# Exit codes
EXIT_PROCEED = 0
EXIT_DECLINED = 1
EXIT_PARSE_ERROR = 2
EXIT_CONFIG_ERROR = 3

# Summary lines that carry the cost verdict
VERDICT_PREFIXES = (
    "  Estimated Monthly Cost Increase",
    "  Estimated Monthly Cost Savings",
    "  No significant cost change",
)

app = typer.Typer(
    name="costguard",
    help="Estimate the monthly cost impact of Terraform plans",
    no_args_is_help=True,
    add_completion=False,
)

logger = logging.getLogger(__name__)


class _EchoStream:
    """Text stream over typer.echo, which strips styling when stdout is not a terminal."""

    def write(self, text: str) -> None:
        typer.echo(text, nl=False)

    def flush(self) -> None:
        sys.stdout.flush()


def _cost_color(monthly_cost_change: float) -> str:
    if monthly_cost_change > 0:
        return typer.colors.YELLOW
    if monthly_cost_change < 0:
        return typer.colors.GREEN
    return typer.colors.BLUE


def _style_summary(summary: str, color: str) -> str:
    """Highlight the cost verdict line of a plain summary."""
    lines = []
    for line in summary.split("\n"):
        if line.startswith(VERDICT_PREFIXES):
            line = "  " + typer.style(line.strip(), fg=color, bold=True)
        lines.append(line)
    return "\n".join(lines)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
):
    """
    Terraform Cost Guard

    Feed it the output of `terraform show -json <planfile>`.
    """
    try:
        config.validate()
    except ValueError as error:
        typer.echo(f"Configuration error: {error}", err=True)
        raise typer.Exit(EXIT_CONFIG_ERROR)

    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s" if not verbose else "%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command()
def estimate(
    plan_file: Path = typer.Argument(..., help="Plan JSON file (terraform show -json)"),
    threshold: Optional[float] = typer.Option(
        None,
        "--threshold",
        "-t",
        min=0,
        help="Proceed without asking when the monthly increase is at most this many USD",
    ),
    details: bool = typer.Option(False, "--details", "-d", help="Show per-resource breakdown"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Estimate the cost of a plan and confirm it."""
    try:
        plan = parse_plan_file(plan_file)
    except PlanParseError as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(EXIT_PARSE_ERROR)

    result = PlanEstimator().estimate(plan)
    color = _cost_color(result.total_monthly_change)
    typer.echo(_style_summary(format_cost_summary(result, show_details=details), color))

    if yes:
        raise typer.Exit(EXIT_PROCEED)

    if threshold is None:
        threshold = config.COST_THRESHOLD_USD

    decision = evaluate_threshold(result.total_monthly_change, threshold)
    if not decision.requires_confirmation:
        typer.secho(decision.message, fg=typer.colors.GREEN, bold=True)
        raise typer.Exit(EXIT_PROCEED)

    try:
        proceed = confirm_apply(
            result.total_monthly_change,
            input_stream=sys.stdin,
            output_stream=_EchoStream(),
            style=lambda message: typer.style(message, fg=color, bold=True),
        )
    except ConfirmationError as error:
        typer.echo(f"\nError: {error}", err=True)
        raise typer.Exit(EXIT_DECLINED)

    if not proceed:
        typer.echo("Aborted.")
        raise typer.Exit(EXIT_DECLINED)
    raise typer.Exit(EXIT_PROCEED)


@app.command()
def catalog():
    """Show the static price table."""
    estimator = PlanEstimator()
    for family, entry in estimator.catalog.to_dict().items():
        typer.echo(f"{family} (fallback: {entry['fallback']})")
        for class_id, rate in entry["rates"].items():
            typer.echo(f"  {class_id:<20} {rate:g}")


@app.command()
def version():
    """Show version information."""
    typer.echo(f"costguard {config.APP_VERSION}")


if __name__ == "__main__":
    app()
