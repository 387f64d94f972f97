"""
Cost report rendering and apply confirmation.
Turns an EstimationResult into a text summary and a proceed/confirm decision.
"""
from typing import Callable, Optional, TextIO, NamedTuple, List

from costguard.domain.cost_models import EstimationResult


SUMMARY_WIDTH = 60


class ConfirmationError(Exception):
    """Raised when a confirmation answer cannot be read."""
    pass


class ThresholdDecision(NamedTuple):
    """Whether the user must confirm, and the message explaining why."""
    requires_confirmation: bool
    message: str


def format_cost_change(amount: float) -> str:
    """Signed dollar amount, e.g. '+$12.50' or '-$3.00'."""
    if amount < 0:
        return f"-${-amount:.2f}"
    return f"+${amount:.2f}"


def format_cost_summary(result: EstimationResult, show_details: bool = False) -> str:
    """
    Render a plain-text cost summary.

    Args:
        result: Estimation result
        show_details: Include one line per estimated resource

    Returns:
        Multi-line summary text
    """
    lines: List[str] = [
        "=" * SUMMARY_WIDTH,
        "COST ESTIMATE SUMMARY".center(SUMMARY_WIDTH).rstrip(),
        "=" * SUMMARY_WIDTH,
        "",
        f"  Resources to be created:   {result.created_resources}",
        f"  Resources to be destroyed: {result.destroyed_resources}",
        f"  Resources to be updated:   {result.updated_resources}",
    ]

    if show_details and result.estimates:
        lines.extend(["", "-" * SUMMARY_WIDTH, ""])
        for estimate in result.estimates:
            lines.append(
                f"  {estimate.resource_address} [{estimate.action}] "
                f"{format_cost_change(estimate.monthly_cost)}/month - {estimate.details}"
            )

    lines.extend(["", "-" * SUMMARY_WIDTH, ""])

    total = result.total_monthly_change
    if total > 0:
        lines.append(f"  Estimated Monthly Cost Increase: +${total:.2f}")
    elif total < 0:
        lines.append(f"  Estimated Monthly Cost Savings: -${-total:.2f}")
    else:
        lines.append("  No significant cost change")

    if result.unsupported_types:
        lines.extend([
            "",
            "  Note: The following resource types are not yet supported",
            "  for cost estimation (estimated as $0):",
        ])
        lines.extend(f"    - {resource_type}" for resource_type in result.unsupported_types)

    lines.extend(["", "=" * SUMMARY_WIDTH])
    return "\n".join(lines)


def confirmation_message(monthly_cost_change: float) -> str:
    """Prompt text asking whether to proceed with a given cost change."""
    if monthly_cost_change > 0:
        return (
            f"Hey, these changes will cost an additional "
            f"${monthly_cost_change:.2f}/month. Proceed? [y/N] "
        )
    if monthly_cost_change < 0:
        return f"These changes will save ${-monthly_cost_change:.2f}/month. Proceed? [y/N] "
    return "No significant cost change detected. Proceed? [y/N] "


def evaluate_threshold(monthly_cost_change: float, threshold: Optional[float]) -> ThresholdDecision:
    """
    Decide whether a cost change needs explicit confirmation.

    Args:
        monthly_cost_change: Signed monthly delta
        threshold: Maximum increase (USD/month) accepted without asking;
            None always asks

    Returns:
        ThresholdDecision
    """
    if threshold is not None and monthly_cost_change <= threshold:
        return ThresholdDecision(
            requires_confirmation=False,
            message=(
                f"Cost change (${monthly_cost_change:.2f}/month) is within "
                f"threshold (${threshold:.2f}). Proceeding..."
            ),
        )
    return ThresholdDecision(
        requires_confirmation=True,
        message=confirmation_message(monthly_cost_change),
    )


def confirm_apply(
    monthly_cost_change: float,
    input_stream: TextIO,
    output_stream: TextIO,
    style: Optional[Callable[[str], str]] = None
) -> bool:
    """
    Ask the user to confirm the plan.

    Args:
        monthly_cost_change: Signed monthly delta
        input_stream: Stream the answer is read from
        output_stream: Stream the question is written to
        style: Optional decoration applied to the question (e.g. colour)

    Returns:
        True if the user answered y/yes

    Raises:
        ConfirmationError: If no answer could be read
    """
    message = confirmation_message(monthly_cost_change)
    if style is not None:
        message = style(message)
    output_stream.write("\n" + message)
    output_stream.flush()

    try:
        response = input_stream.readline()
    except (OSError, ValueError) as error:
        raise ConfirmationError(f"failed to read response: {error}") from error
    if not response:
        raise ConfirmationError("failed to read response: end of input")

    response = response.strip().lower()
    return response in ("y", "yes")


def confirm_with_threshold(
    monthly_cost_change: float,
    threshold: Optional[float],
    input_stream: TextIO,
    output_stream: TextIO
) -> bool:
    """Confirm only when the cost change exceeds the threshold."""
    decision = evaluate_threshold(monthly_cost_change, threshold)
    if not decision.requires_confirmation:
        output_stream.write(decision.message + "\n")
        return True
    return confirm_apply(monthly_cost_change, input_stream, output_stream)
