"""Base wizard class for all interactive wizards."""

from __future__ import annotations

from abc import ABC, abstractmethod

from driver_wizard.wizard.session import WizardSession
from driver_wizard.wizard.types import Screen, WizardConfig, WizardMode


class BaseWizard(ABC):
    """Base class for all wizard implementations.

    Provides common functionality:
    - Access to the session that owns navigation and run state
    - Configuration validation
    - Summary generation
    """

    def __init__(
        self,
        session: WizardSession | None = None,
        mode: WizardMode = WizardMode.PROMPT,
    ) -> None:
        """Initialize the wizard.

        Args:
            session: Session to drive; a default session is created if omitted.
            mode: Wizard interaction mode (prompt or TUI).
        """
        self.session = session or WizardSession()
        self.mode = mode
        self.config: WizardConfig = {}

    @abstractmethod
    def run(self) -> WizardConfig:
        """Run the wizard and collect configuration.

        Returns:
            Dictionary of configuration values collected from user.

        Raises:
            ValueError: If wizard is cancelled or invalid input provided.
        """
        pass

    @abstractmethod
    def validate_config(self, config: WizardConfig) -> tuple[bool, str]:
        """Validate wizard configuration.

        Args:
            config: Configuration dictionary to validate.

        Returns:
            Tuple of (is_valid, error_message).
            error_message is empty string if valid.
        """
        pass

    def get_summary(self) -> str:
        """Get summary of wizard configuration.

        Returns:
            Human-readable summary of configuration.
        """
        if not self.config:
            return "[dim]No configuration collected yet[/dim]"

        lines = ["[bold]Wizard Configuration:[/bold]"]
        for key, value in self.config.items():
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)

    def expect_screen(self, screen: Screen) -> None:
        """Fail loudly if the session is not where the wizard expects it.

        Raises:
            RuntimeError: If the session shows a different screen.
        """
        if self.session.screen is not screen:
            raise RuntimeError(
                f"Expected screen {screen.value}, "
                f"session is on {self.session.screen.value}"
            )
