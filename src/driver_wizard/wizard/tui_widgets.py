"""Custom Textual widgets for wizard TUI."""

from __future__ import annotations

from typing import Any, Sequence

from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import Checkbox, RadioButton, RadioSet, Static

from driver_wizard.cli.formatting import render_run
from driver_wizard.pipeline.run_state import RunState
from driver_wizard.wizard.detection import HardwareSummary
from driver_wizard.wizard.options import (
    ComponentOption,
    DriverOption,
    Selection,
    find_driver,
)


class SectionPanel(Container):
    """Container for a group of widgets with section title.

    Attributes:
        title: Section heading text
        description: Optional section description
    """

    DEFAULT_CSS = """
    SectionPanel {
        border: solid $primary;
        margin: 1 0;
        padding: 1;
        height: auto;
        layout: vertical;
    }

    SectionPanel .section-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
        height: auto;
    }

    SectionPanel .section-description {
        color: $text-muted;
        text-style: italic;
        margin-bottom: 1;
        height: auto;
    }
    """

    def __init__(
        self,
        title: str,
        description: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize SectionPanel.

        Args:
            title: Section heading
            description: Optional section description
            **kwargs: Additional Container arguments
        """
        super().__init__(**kwargs)
        self.title = title
        self.description = description

    def compose(self) -> ComposeResult:
        """Compose section with title and children."""
        yield Static(self.title, classes="section-title")
        if self.description:
            yield Static(self.description, classes="section-description")


class SelectionForm(Container):
    """Driver branch radio set plus one checkbox per component.

    Required components are shown checked and cannot be toggled.
    """

    DEFAULT_CSS = """
    SelectionForm {
        height: auto;
        layout: vertical;
    }

    SelectionForm RadioSet {
        margin-bottom: 1;
    }
    """

    def __init__(
        self,
        drivers: Sequence[DriverOption],
        components: Sequence[ComponentOption],
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.drivers = list(drivers)
        self.components = list(components)

    def compose(self) -> ComposeResult:
        yield Static("Driver version:", classes="section-title")
        yield RadioSet(
            *[
                RadioButton(
                    o.label, value=o.recommended, id=f"driver-{o.version}"
                )
                for o in self.drivers
            ],
            id="driver-set",
        )
        yield Static("Components:", classes="section-title")
        for c in self.components:
            yield Checkbox(
                f"{c.name} - {c.description}",
                value=c.selected,
                disabled=c.required,
                id=f"component-{c.id}",
            )

    def selected_driver(self) -> DriverOption:
        """Driver of the pressed radio button, or the recommended one."""
        pressed = self.query_one("#driver-set", expect_type=RadioSet).pressed_button
        version = None
        if pressed is not None and pressed.id is not None:
            version = pressed.id.removeprefix("driver-")
        return find_driver(self.drivers, version)

    def selected_components(self) -> tuple[ComponentOption, ...]:
        """Component options with the checkbox states applied."""
        result = []
        for c in self.components:
            box = self.query_one(f"#component-{c.id}", expect_type=Checkbox)
            result.append(
                ComponentOption(
                    id=c.id,
                    name=c.name,
                    description=c.description,
                    selected=c.required or box.value,
                    required=c.required,
                )
            )
        return tuple(result)

    def get_selection(self, hardware: HardwareSummary | None = None) -> Selection:
        return Selection(
            driver=self.selected_driver(),
            components=self.selected_components(),
            hardware=hardware,
        )


class ProgressPanel(Static):
    """Live view of a run: current step, progress bar, steps and output."""

    DEFAULT_CSS = """
    ProgressPanel {
        height: auto;
        padding: 1;
    }
    """

    def show_run(self, run: RunState, spinner: str | None = None) -> None:
        """Re-render from the given run state."""
        self.update(render_run(run, spinner))
