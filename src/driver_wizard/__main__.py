"""Command-line interface for driver-wizard."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.markup import escape

from driver_wizard.cli.formatting import create_steps_table, format_error
from driver_wizard.config import WizardSettings, load_config
from driver_wizard.errors import ConfigError, DetectionError
from driver_wizard.pipeline.builders import build_install_steps, build_uninstall_steps
from driver_wizard.wizard.options import build_component_options
from driver_wizard.wizard.session import WizardSession
from driver_wizard.wizard.types import RESULT_SCREENS, Screen

console = Console()

FAILED_SCREENS = (Screen.ERROR, Screen.UNINSTALL_ERROR)


@click.group()
@click.version_option(package_name="driver-wizard")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    help="Path to driver-wizard.yml (searched upwards from cwd by default)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Print every event the wizard routes",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """Install and remove NVIDIA drivers with a guided wizard.

    Every run is shown as a list of named steps with live progress and
    output. The package manager backend is simulated.

    Quick Start:

      1. Full-screen wizard:
         $ driver-wizard tui

      2. Install with prompts:
         $ driver-wizard install

      3. Non-interactive install of a specific branch:
         $ driver-wizard install --driver 535 --component cuda --yes

      4. Remove the installed driver:
         $ driver-wizard uninstall

    For more information on a specific command:
      $ driver-wizard COMMAND --help
    """
    try:
        settings = load_config(config_path)
    except ConfigError as e:
        console.print(format_error(str(e), "Fix the file or pass --config"))
        raise click.ClickException("Invalid configuration")

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose


def _build_session(ctx: click.Context, fail_at: str | None = None) -> WizardSession:
    settings: WizardSettings = ctx.obj["settings"]
    if fail_at is not None:
        settings = settings.model_copy(update={"simulate_failure": fail_at})

    on_event: Callable[[str], None] | None = None
    if ctx.obj["verbose"]:
        on_event = _print_event

    return WizardSession(settings=settings, on_event=on_event)


def _print_event(line: str) -> None:
    console.print(f"[dim]event {escape(line)}[/dim]", highlight=False)


def _finish(screen: Screen | None) -> None:
    """Map the final screen to the exit status."""
    if screen is None:
        console.print("[yellow]Wizard cancelled[/yellow]")
        return
    if screen in FAILED_SCREENS:
        raise click.ClickException("The run failed")
    if screen not in RESULT_SCREENS:
        raise click.ClickException(f"Wizard stopped on unexpected screen {screen}")


@cli.command()
@click.pass_context
def tui(ctx: click.Context) -> None:
    """Launch the full-screen wizard.

    Keys: Enter continues, Esc goes back (or cancels a running step list),
    u starts the uninstall flow, r retries, q quits.
    """
    from driver_wizard.wizard import launch_tui_wizard

    settings: WizardSettings = ctx.obj["settings"]
    try:
        build_component_options(settings.components)
    except ValueError as e:
        console.print(format_error(str(e), "Fix the components list in the config"))
        raise click.ClickException("Invalid configuration")

    screen = launch_tui_wizard(settings)
    if screen in FAILED_SCREENS:
        raise click.ClickException("The run failed")


@cli.command()
@click.option(
    "--driver",
    "driver_version",
    help="Driver branch version to install (e.g. 550); prompts if omitted",
)
@click.option(
    "--component",
    "component_ids",
    multiple=True,
    help="Component ID to install (repeatable); prompts if omitted",
)
@click.option(
    "--fail-at",
    help="Make the simulated engine fail at this step name",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip the confirmation prompt",
)
@click.pass_context
def install(
    ctx: click.Context,
    driver_version: str | None,
    component_ids: tuple[str, ...],
    fail_at: str | None,
    yes: bool,
) -> None:
    """Install a driver with prompts and live progress.

    Exits with status 1 when the installation fails.

    Examples:
      driver-wizard install
      driver-wizard install --driver 550 --component cuda --component settings -y
      driver-wizard install --fail-at update -y
    """
    from driver_wizard.wizard.prompt_wizard import run_install_wizard

    session = _build_session(ctx, fail_at)
    try:
        screen = run_install_wizard(
            session,
            driver_version=driver_version,
            component_ids=list(component_ids) if component_ids else None,
            assume_yes=yes,
        )
    except DetectionError as e:
        console.print(
            format_error(str(e), "Check that the GPU is visible to the system")
        )
        raise click.ClickException("Hardware detection failed")
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise click.ClickException(str(e))

    _finish(screen)


@cli.command()
@click.option(
    "--fail-at",
    help="Make the simulated engine fail at this step name",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip the confirmation prompt",
)
@click.pass_context
def uninstall(ctx: click.Context, fail_at: str | None, yes: bool) -> None:
    """Remove the installed driver and restore nouveau.

    Exits with status 1 when the uninstall fails.
    """
    from driver_wizard.wizard.prompt_wizard import run_uninstall_wizard

    session = _build_session(ctx, fail_at)
    try:
        screen = run_uninstall_wizard(session, assume_yes=yes)
    except DetectionError as e:
        console.print(format_error(str(e)))
        raise click.ClickException("Hardware detection failed")
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise click.ClickException(str(e))

    _finish(screen)


@cli.command()
@click.option(
    "--component",
    "component_ids",
    multiple=True,
    help="Component ID to include (repeatable); defaults when omitted",
)
@click.option(
    "--uninstall",
    "show_uninstall",
    is_flag=True,
    help="Show the uninstall pipeline instead",
)
@click.pass_context
def steps(
    ctx: click.Context, component_ids: tuple[str, ...], show_uninstall: bool
) -> None:
    """Print the steps a run would execute."""
    settings: WizardSettings = ctx.obj["settings"]

    if show_uninstall:
        pipeline = build_uninstall_steps(settings.uninstall_step_mappings)
        console.print(create_steps_table(pipeline, title="Uninstall Steps"))
        return

    preset = list(component_ids) if component_ids else settings.components
    try:
        pipeline = build_install_steps(build_component_options(preset))
    except ValueError as e:
        raise click.ClickException(str(e))
    console.print(create_steps_table(pipeline, title="Install Steps"))


if __name__ == "__main__":
    cli()
