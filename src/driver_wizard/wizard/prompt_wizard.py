"""Prompt-based wizards for installing and uninstalling drivers.

These wizards ask their questions with questionary, one after another,
and move the session through the same screens the TUI shows. The run
itself is replayed by the simulated engine under a Rich live display.
"""

from __future__ import annotations

from typing import Sequence, cast

import questionary
from rich.console import Console
from rich.live import Live

from driver_wizard.cli.formatting import (
    format_warning,
    render_cancellation,
    render_completion,
    render_failure,
    render_hardware,
    render_run,
    render_selection,
    render_uninstall_plan,
)
from driver_wizard.errors import DetectionError
from driver_wizard.pipeline.engine import ScriptedEngine
from driver_wizard.pipeline.events import PipelineEvent, Tick
from driver_wizard.pipeline.run_state import FailureDetail
from driver_wizard.wizard.base import BaseWizard
from driver_wizard.wizard.detection import HardwareSummary
from driver_wizard.wizard.navigation import (
    BeginUninstall,
    CancellationNotice,
    CancelRequested,
    CompletionSummary,
    Continue,
    ExitRequested,
)
from driver_wizard.wizard.options import (
    ComponentOption,
    DriverOption,
    Selection,
    build_component_options,
    build_driver_options,
    default_uninstall_plan,
    find_driver,
)
from driver_wizard.wizard.session import WizardSession
from driver_wizard.wizard.types import Screen, WizardConfig, WizardMode

console = Console()

CANCELLED_MESSAGE = "Wizard cancelled"


class InstallWizard(BaseWizard):
    """Interactive wizard for choosing and installing a driver.

    Walks the session from the welcome screen to the progressing screen:
    hardware detection, driver branch, components and confirmation.
    Values given up front (CLI options or settings) skip their prompt.
    """

    def __init__(
        self,
        session: WizardSession | None = None,
        driver_version: str | None = None,
        component_ids: Sequence[str] | None = None,
        assume_yes: bool = False,
    ) -> None:
        """Initialize install wizard.

        Args:
            session: Session to drive.
            driver_version: Driver branch to use without asking.
            component_ids: Components to install without asking.
            assume_yes: Skip the final confirmation.
        """
        super().__init__(session=session, mode=WizardMode.PROMPT)
        self.driver_version = driver_version
        self.component_ids = component_ids
        self.assume_yes = assume_yes
        self.selection: Selection | None = None

    def run(self) -> WizardConfig:
        """Run the wizard up to the start of the install.

        Returns:
            Dictionary with the chosen driver version and component IDs.

        Raises:
            ValueError: If wizard is cancelled by user (Ctrl-C or quit).
            DetectionError: If hardware detection fails.
        """
        console.print("\n[bold cyan]NVIDIA Driver Installation[/bold cyan]")
        console.print("[dim]Press Ctrl-C to cancel at any time[/dim]\n")

        try:
            self.expect_screen(Screen.WELCOME)
            self.session.dispatch(Continue())
            hardware = self._detect()

            driver = self._prompt_driver(hardware)
            components = self._prompt_components()
            selection = Selection(
                driver=driver, components=tuple(components), hardware=hardware
            )

            is_valid, error_msg = selection.validate()
            if not is_valid:
                raise ValueError(error_msg)

            self.session.dispatch(Continue(selection))
            self.expect_screen(Screen.CONFIRMING)
            console.print(render_selection(selection))

            if not self._confirm("Proceed with installation?"):
                console.print("\n[yellow]Wizard cancelled[/yellow]")
                raise ValueError(CANCELLED_MESSAGE)

            self.session.dispatch(Continue())
            self.expect_screen(Screen.PROGRESSING)
            self.selection = selection

        except KeyboardInterrupt:
            console.print("\n[yellow]Wizard cancelled by user[/yellow]")
            raise ValueError(CANCELLED_MESSAGE)

        self.config = {
            "driver": selection.driver.version,
            "components": [c.id for c in selection.selected_components],
        }
        return self.config

    def validate_config(self, config: WizardConfig) -> tuple[bool, str]:
        """Validate wizard configuration.

        Args:
            config: Configuration dictionary to validate.

        Returns:
            Tuple of (is_valid, error_message).
            error_message is empty string if valid.
        """
        versions = [o.version for o in build_driver_options()]
        if config.get("driver") not in versions:
            return (False, f"Unknown driver version: {config.get('driver')}")

        required = [o.id for o in build_component_options() if o.required]
        missing = [c for c in required if c not in config.get("components", [])]
        if missing:
            return (False, f"Required components missing: {', '.join(missing)}")

        return (True, "")

    def _detect(self) -> HardwareSummary:
        """Run detection and show the result.

        Raises:
            DetectionError: If the detector reported a failure.
        """
        with console.status("Detecting hardware..."):
            self.session.detect()

        payload = self.session.payload
        if isinstance(payload, FailureDetail):
            raise DetectionError(payload.message)

        hardware = cast(HardwareSummary, payload)
        console.print(render_hardware(hardware))
        if not hardware.has_nvidia_gpu():
            console.print(format_warning("No NVIDIA GPU detected"))
        return hardware

    def _prompt_driver(self, hardware: HardwareSummary) -> DriverOption:
        """Prompt for the driver branch.

        Raises:
            ValueError: If user cancels prompt or a preset version is unknown.
        """
        options = build_driver_options(hardware)
        preset = self.driver_version or self.session.settings.default_driver
        if preset:
            return find_driver(options, preset)

        recommended = find_driver(options, None)
        result = questionary.select(
            "Select driver version:",
            choices=[
                questionary.Choice(title=o.label, value=o.version) for o in options
            ],
            default=recommended.version,
        ).ask()

        if result is None:
            raise ValueError(CANCELLED_MESSAGE)

        return find_driver(options, result)

    def _prompt_components(self) -> list[ComponentOption]:
        """Prompt for the components to install.

        Required components are selected whatever the answer.

        Raises:
            ValueError: If user cancels prompt.
        """
        preset = self.component_ids
        if preset is None:
            preset = self.session.settings.components
        if preset is not None:
            return build_component_options(preset)

        defaults = build_component_options()
        result = questionary.checkbox(
            "Select components to install:",
            choices=[
                questionary.Choice(
                    title=f"{c.name} - {c.description}",
                    value=c.id,
                    checked=c.selected,
                )
                for c in defaults
            ],
            instruction="(Space to select, Enter to continue)",
        ).ask()

        if result is None:
            raise ValueError(CANCELLED_MESSAGE)

        return build_component_options(cast(list[str], result))

    def _confirm(self, message: str) -> bool:
        if self.assume_yes:
            return True

        result = questionary.confirm(message, default=True).ask()
        if result is None:
            raise ValueError(CANCELLED_MESSAGE)
        return bool(result)


class UninstallWizard(BaseWizard):
    """Interactive wizard for removing the installed driver."""

    def __init__(
        self, session: WizardSession | None = None, assume_yes: bool = False
    ) -> None:
        super().__init__(session=session, mode=WizardMode.PROMPT)
        self.assume_yes = assume_yes

    def run(self) -> WizardConfig:
        """Run the wizard up to the start of the uninstall.

        Raises:
            ValueError: If wizard is cancelled by user.
            DetectionError: If hardware detection fails.
        """
        console.print("\n[bold red]NVIDIA Driver Removal[/bold red]")
        console.print("[dim]Press Ctrl-C to cancel at any time[/dim]\n")

        try:
            self.expect_screen(Screen.WELCOME)
            hardware = self.session.detector.detect()
            plan = default_uninstall_plan(hardware)
            if not hardware.has_driver_installed():
                console.print(
                    format_warning(
                        "No installed NVIDIA driver detected",
                        "The uninstall will still clean up leftover packages "
                        "and configuration.",
                    )
                )

            self.session.dispatch(BeginUninstall(plan))
            console.print(render_uninstall_plan(plan))

            if not self.assume_yes:
                result = questionary.confirm(
                    "Remove the NVIDIA driver?", default=False
                ).ask()
                if not result:
                    console.print("\n[yellow]Wizard cancelled[/yellow]")
                    raise ValueError(CANCELLED_MESSAGE)

            self.session.dispatch(Continue())
            self.expect_screen(Screen.UNINSTALL_PROGRESSING)

        except KeyboardInterrupt:
            console.print("\n[yellow]Wizard cancelled by user[/yellow]")
            raise ValueError(CANCELLED_MESSAGE)

        self.config = {
            "installed_driver": plan.installed_driver,
            "packages": list(plan.packages),
        }
        return self.config

    def validate_config(self, config: WizardConfig) -> tuple[bool, str]:
        if not config.get("installed_driver"):
            return (False, "No driver version to uninstall")
        return (True, "")


def execute_run(session: WizardSession, delay: float | None = None) -> Screen:
    """Replay the simulated engine for the active run and show the outcome.

    Ctrl-C during the run is turned into a cancellation request.

    Args:
        session: Session sitting on a progressing screen.
        delay: Seconds between engine events, defaults to the settings.

    Returns:
        The result screen the session ended on.

    Raises:
        RuntimeError: If the session has no active run.
    """
    run = session.run
    if run is None:
        raise RuntimeError("No active run to execute")

    engine = ScriptedEngine(session.script_for_run())
    if delay is None:
        delay = session.settings.step_delay

    with Live(render_run(run, session.spinner), console=console) as live:

        def emit(event: PipelineEvent) -> None:
            session.dispatch(event)
            session.dispatch(Tick())
            if session.run is not None:
                live.update(render_run(session.run, session.spinner))

        try:
            engine.run(emit, delay)
        except KeyboardInterrupt:
            engine.cancel()
            session.dispatch(CancelRequested())

    if session.screen.is_progressing:
        session.dispatch(ExitRequested())

    show_result(session)
    return session.screen


def show_result(session: WizardSession) -> None:
    """Print the panel matching the payload of the current result screen."""
    payload = session.payload
    if isinstance(payload, CompletionSummary):
        console.print(render_completion(payload))
    elif isinstance(payload, FailureDetail):
        console.print(render_failure(payload))
    elif isinstance(payload, CancellationNotice):
        console.print(render_cancellation(payload))


def run_install_wizard(
    session: WizardSession,
    driver_version: str | None = None,
    component_ids: Sequence[str] | None = None,
    assume_yes: bool = False,
) -> Screen | None:
    """Run the install wizard and the install itself.

    Args:
        session: Session to drive.
        driver_version: Driver branch to use without asking.
        component_ids: Components to install without asking.
        assume_yes: Skip the final confirmation.

    Returns:
        Result screen of the run, or None if the wizard was cancelled.

    Raises:
        ValueError: If a preset is invalid.
        DetectionError: If hardware detection fails.
    """
    wizard = InstallWizard(
        session=session,
        driver_version=driver_version,
        component_ids=component_ids,
        assume_yes=assume_yes,
    )

    try:
        config = wizard.run()
    except ValueError as e:
        if str(e) != CANCELLED_MESSAGE:
            raise
        return None

    is_valid, error_msg = wizard.validate_config(config)
    if not is_valid:
        console.print(f"[bold red]Configuration error:[/bold red] {error_msg}")
        raise ValueError(f"Invalid configuration: {error_msg}")

    return execute_run(session)


def run_uninstall_wizard(
    session: WizardSession, assume_yes: bool = False
) -> Screen | None:
    """Run the uninstall wizard and the uninstall itself.

    Returns:
        Result screen of the run, or None if the wizard was cancelled.
    """
    wizard = UninstallWizard(session=session, assume_yes=assume_yes)

    try:
        wizard.run()
    except ValueError as e:
        if str(e) != CANCELLED_MESSAGE:
            raise
        return None

    return execute_run(session)
