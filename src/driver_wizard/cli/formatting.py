"""Rich formatting utilities for CLI output.

This module provides reusable Rich components for consistent visual
formatting across CLI commands and the TUI: status panels, the step list,
the progress bar, the output log and the result summaries.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from driver_wizard.constants import STEP_DISPLAY_LIMIT
from driver_wizard.pipeline.ledger import Step
from driver_wizard.pipeline.progress import LogBuffer, progress_percent
from driver_wizard.pipeline.run_state import FailureDetail, RunState
from driver_wizard.pipeline.types import PipelineKind, StepStatus
from driver_wizard.wizard.detection import HardwareSummary
from driver_wizard.wizard.navigation import CancellationNotice, CompletionSummary
from driver_wizard.wizard.options import Selection, UninstallPlan

console = Console()

# Marker and style per step status
STATUS_MARKERS: dict[StepStatus, tuple[str, str]] = {
    StepStatus.PENDING: ("○", "dim"),
    StepStatus.RUNNING: ("●", "bold cyan"),
    StepStatus.COMPLETE: ("✓", "green"),
    StepStatus.FAILED: ("✗", "red"),
    StepStatus.SKIPPED: ("-", "dim"),
}


def format_error(message: str, context: str | None = None) -> Panel:
    """Create formatted error panel.

    Args:
        message: Error message
        context: Optional context hint for resolution

    Returns:
        Panel with error formatting
    """
    content = f"[bold red]{message}[/bold red]"
    if context:
        content += f"\n\n[dim]{context}[/dim]"

    return Panel(
        content,
        title="[bold red]Error[/bold red]",
        border_style="red",
        width=78,
        expand=False,
    )


def format_warning(message: str, context: str | None = None) -> Panel:
    """Create formatted warning panel.

    Args:
        message: Warning message
        context: Optional additional information

    Returns:
        Panel with warning formatting
    """
    content = f"[bold yellow]{message}[/bold yellow]"
    if context:
        content += f"\n\n[dim]{context}[/dim]"

    return Panel(
        content,
        title="[bold yellow]Warning[/bold yellow]",
        border_style="yellow",
        width=78,
        expand=False,
    )


def format_success(message: str, details: str | None = None) -> Panel:
    """Create formatted success panel.

    Args:
        message: Success message
        details: Optional details about the result

    Returns:
        Panel with success formatting
    """
    content = f"[bold green]✓ {message}[/bold green]"
    if details:
        content += f"\n\n[dim]{details}[/dim]"

    return Panel(
        content,
        title="[bold green]Success[/bold green]",
        border_style="green",
        width=78,
        expand=False,
    )


# ============================================================================
# Progress rendering
# ============================================================================


def render_steps(
    steps: Sequence[Step],
    spinner: str | None = None,
    limit: int = STEP_DISPLAY_LIMIT,
) -> Text:
    """Render the step list with status markers.

    At most `limit` steps are listed; when more remain, an ellipsis line
    replaces them. Completed steps show their duration.

    Args:
        steps: Steps in pipeline order
        spinner: Frame shown instead of the running marker, if given
        limit: Maximum number of visible steps

    Returns:
        Text with one line per visible step
    """
    text = Text()
    for i, step in enumerate(steps):
        marker, style = STATUS_MARKERS[step.status]
        if step.status is StepStatus.RUNNING and spinner:
            marker = spinner

        if i > 0:
            text.append("\n")
        text.append(f"  {marker} ", style=style)
        text.append(step.description, style=style)

        if step.status is StepStatus.COMPLETE and step.ended_at is not None:
            text.append(f" ({step.duration.total_seconds():.1f}s)", style="dim")

        if i >= limit - 1 and i < len(steps) - 1:
            text.append("\n  ...")
            break
    return text


def render_progress_bar(fraction: float, width: int = 40) -> Text:
    """Render a text progress bar with its percentage label.

    Args:
        fraction: Completion between 0.0 and 1.0
        width: Number of bar cells

    Returns:
        Two-line Text: label, then bar
    """
    fraction = min(max(fraction, 0.0), 1.0)
    filled = int(width * fraction)
    text = Text(f"Overall Progress: {progress_percent(fraction)}%\n")
    text.append("█" * filled, style="green")
    text.append("░" * (width - filled), style="dim")
    return text


def render_log(log: LogBuffer, title: str = "Output") -> Panel:
    """Render the recent output lines in a panel."""
    if len(log) > 0:
        body = Text("\n".join(log.lines))
    else:
        body = Text("No output yet", style="dim")
    return Panel(body, title=title, border_style="blue", expand=True)


def render_run(run: RunState, spinner: str | None = None) -> Group:
    """Render the whole progress view of a run."""
    current = run.current_step
    heading = Text()
    if current is not None and not run.is_terminal:
        heading.append(f"{spinner or '●'} {current.description}", style="bold cyan")
    elif run.failed:
        heading.append("Run failed", style="bold red")
    elif run.cancelled:
        heading.append("Run cancelled", style="bold yellow")
    elif run.completed:
        heading.append("All steps finished", style="bold green")

    return Group(
        heading,
        render_progress_bar(run.progress),
        render_steps(run.steps, spinner),
        render_log(run.log),
    )


# ============================================================================
# Screen payloads
# ============================================================================


def render_hardware(summary: HardwareSummary) -> Table:
    """Create table describing detected hardware."""
    table = Table(title="Detected Hardware", border_style="blue", show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("GPU", summary.get_primary_gpu_or_default())
    if len(summary.gpus) > 1:
        table.add_row("Additional GPUs", ", ".join(summary.gpus[1:]))
    table.add_row("Architecture", summary.architecture or "unknown")
    table.add_row("Installed driver", summary.get_driver_version_or_default())
    table.add_row("Nouveau loaded", "yes" if summary.nouveau_loaded else "no")
    table.add_row("Kernel", summary.get_kernel_version_or_default())
    table.add_row("Distribution", summary.distribution or "unknown")
    return table


def render_selection(selection: Selection) -> Panel:
    """Summarize an install choice for the confirmation screen."""
    lines = [
        f"[bold]Driver:[/bold] {selection.driver.label}",
        "",
        "[bold]Components:[/bold]",
    ]
    for component in selection.selected_components:
        lines.append(f"  • {component.name}")
    return Panel("\n".join(lines), title="Ready to Install", border_style="cyan")


def render_uninstall_plan(plan: UninstallPlan) -> Panel:
    """Summarize what an uninstall is going to remove."""
    lines = [f"[bold]Installed driver:[/bold] {plan.installed_driver}"]
    if plan.packages:
        lines.append("")
        lines.append("[bold]Packages to remove:[/bold]")
        lines.extend(f"  • {package}" for package in plan.packages)
    if plan.configs:
        lines.append("")
        lines.append("[bold]Configuration files to remove:[/bold]")
        lines.extend(f"  • {config}" for config in plan.configs)
    if plan.restore_nouveau:
        lines.append("")
        lines.append("The open-source nouveau driver will be restored.")
    for warning in plan.warnings:
        lines.append(f"[yellow]! {warning}[/yellow]")
    return Panel("\n".join(lines), title="Uninstall NVIDIA Drivers", border_style="red")


def render_completion(summary: CompletionSummary) -> Panel:
    """Success panel for the complete screens."""
    details: list[str] = []
    if summary.kind is PipelineKind.INSTALL:
        message = "Installation complete"
        if summary.selection is not None:
            details.append(f"Installed driver {summary.selection.driver.label}")
            details.extend(
                f"  • {c.name}" for c in summary.selection.selected_components
            )
    else:
        message = "Uninstall complete"
        result = summary.result
        if result.removed_packages:
            details.append(f"Removed packages: {', '.join(result.removed_packages)}")
        if result.cleaned_configs:
            details.append(f"Removed configs: {', '.join(result.cleaned_configs)}")
        if result.nouveau_restored:
            details.append("Nouveau driver restored")

    if summary.needs_reboot:
        details.append("A reboot is required to finish.")
    return format_success(message, "\n".join(details) if details else None)


def render_failure(detail: FailureDetail) -> Panel:
    """Error panel with troubleshooting tips for the error screens."""
    context_lines: list[str] = []
    if detail.failed_step:
        context_lines.append(f"Failed step: {detail.failed_step}")
        context_lines.append("")
    context_lines.append("Troubleshooting:")
    context_lines.extend(f"  • {tip}" for tip in detail.tips)
    return format_error(detail.message, "\n".join(context_lines))


def render_cancellation(notice: CancellationNotice) -> Panel:
    """Warning panel for the cancelled screens."""
    action = "Installation" if notice.kind is PipelineKind.INSTALL else "Uninstall"
    context = (
        f"{notice.steps_done} of {notice.total_steps} steps had finished. "
        "Finished steps were not rolled back."
    )
    if notice.last_step:
        context += f"\nLast step: {notice.last_step}"
    return format_warning(f"{action} cancelled", context)


def create_steps_table(steps: Sequence[Step], title: str = "Pipeline Steps") -> Table:
    """Create table listing pipeline steps in order."""
    table = Table(title=title, border_style="blue", show_header=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Description")

    for i, step in enumerate(steps, start=1):
        table.add_row(str(i), step.name, step.description)
    return table
