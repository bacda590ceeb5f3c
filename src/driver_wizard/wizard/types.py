"""Type definitions for wizard system."""

from enum import Enum
from typing import Any

from driver_wizard.pipeline.types import PipelineKind


class WizardMode(Enum):
    """Wizard interaction modes."""

    PROMPT = "prompt"  # Sequential questionary prompts
    TUI = "tui"  # Full-screen Textual TUI


class Screen(Enum):
    """Every screen the wizard can show."""

    WELCOME = "welcome"
    DETECTING = "detecting"
    SELECTING = "selecting"
    CONFIRMING = "confirming"
    PROGRESSING = "progressing"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"

    UNINSTALL_CONFIRMING = "uninstall_confirming"
    UNINSTALL_PROGRESSING = "uninstall_progressing"
    UNINSTALL_COMPLETE = "uninstall_complete"
    UNINSTALL_ERROR = "uninstall_error"
    UNINSTALL_CANCELLED = "uninstall_cancelled"

    @property
    def title(self) -> str:
        return SCREEN_TITLES[self]

    @property
    def is_progressing(self) -> bool:
        return self in (Screen.PROGRESSING, Screen.UNINSTALL_PROGRESSING)

    @property
    def is_result(self) -> bool:
        """Whether this screen shows the outcome of a run."""
        return self in RESULT_SCREENS


SCREEN_TITLES: dict[Screen, str] = {
    Screen.WELCOME: "Welcome",
    Screen.DETECTING: "Detecting Hardware",
    Screen.SELECTING: "Driver Selection",
    Screen.CONFIRMING: "Confirm Installation",
    Screen.PROGRESSING: "Installing...",
    Screen.COMPLETE: "Installation Complete",
    Screen.ERROR: "Installation Failed",
    Screen.CANCELLED: "Installation Cancelled",
    Screen.UNINSTALL_CONFIRMING: "Uninstall NVIDIA Drivers",
    Screen.UNINSTALL_PROGRESSING: "Uninstalling...",
    Screen.UNINSTALL_COMPLETE: "Uninstall Complete",
    Screen.UNINSTALL_ERROR: "Uninstall Failed",
    Screen.UNINSTALL_CANCELLED: "Uninstall Cancelled",
}

RESULT_SCREENS = frozenset(
    {
        Screen.COMPLETE,
        Screen.ERROR,
        Screen.CANCELLED,
        Screen.UNINSTALL_COMPLETE,
        Screen.UNINSTALL_ERROR,
        Screen.UNINSTALL_CANCELLED,
    }
)

# Result screens per pipeline flavor: (progressing, complete, error, cancelled)
FLOW_SCREENS: dict[PipelineKind, tuple[Screen, Screen, Screen, Screen]] = {
    PipelineKind.INSTALL: (
        Screen.PROGRESSING,
        Screen.COMPLETE,
        Screen.ERROR,
        Screen.CANCELLED,
    ),
    PipelineKind.UNINSTALL: (
        Screen.UNINSTALL_PROGRESSING,
        Screen.UNINSTALL_COMPLETE,
        Screen.UNINSTALL_ERROR,
        Screen.UNINSTALL_CANCELLED,
    ),
}


# Type alias for wizard configuration
WizardConfig = dict[str, Any]
