"""Interactive wizard system for driver-wizard.

This module provides the screen navigator, the session that routes engine
and navigation events, and the prompt-based and TUI-based front ends.
"""

from typing import Optional

from driver_wizard.config import WizardSettings
from driver_wizard.wizard.base import BaseWizard
from driver_wizard.wizard.detection import (
    DetectionCache,
    HardwareDetector,
    HardwareSummary,
)
from driver_wizard.wizard.navigation import NavigateTo, ScreenNavigator, navigate
from driver_wizard.wizard.session import WizardSession
from driver_wizard.wizard.types import Screen

__all__ = [
    "BaseWizard",
    "DetectionCache",
    "HardwareDetector",
    "HardwareSummary",
    "NavigateTo",
    "Screen",
    "ScreenNavigator",
    "WizardSession",
    "launch_tui_wizard",
    "navigate",
]


def launch_tui_wizard(settings: Optional[WizardSettings] = None) -> Screen:
    """Launch the TUI wizard.

    Args:
        settings: Wizard settings, defaults when omitted

    Returns:
        The screen the operator left the wizard from
    """
    from driver_wizard.wizard.tui import launch_tui_wizard as _launch

    return _launch(settings)
