"""CLI utilities for driver-wizard.

This module provides Rich-based formatting utilities for the CLI and the
TUI, including status panels, the step list and result summaries.
"""

from driver_wizard.cli.formatting import (
    create_steps_table,
    format_error,
    format_success,
    format_warning,
    render_log,
    render_progress_bar,
    render_run,
    render_steps,
)

__all__ = [
    "create_steps_table",
    "format_error",
    "format_success",
    "format_warning",
    "render_log",
    "render_progress_bar",
    "render_run",
    "render_steps",
]
