"""Exceptions and error presentation helpers for driver-wizard."""

from __future__ import annotations

# Shown wherever a failure carries no error detail.
UNKNOWN_ERROR = "Unknown error"


class WizardError(Exception):
    """Base class for all driver-wizard errors."""

    pass


class StepFailedError(WizardError):
    """A pipeline step reported a failure."""

    def __init__(self, message: str, step_name: str | None = None) -> None:
        super().__init__(message)
        self.step_name = step_name


class DetectionError(WizardError):
    """Hardware detection could not produce a summary."""

    pass


class ConfigError(WizardError):
    """Configuration file is missing, unreadable or invalid."""

    pass


def describe_error(error: BaseException | None) -> str:
    """Return a displayable message for an error.

    Args:
        error: Captured error, possibly None.

    Returns:
        The error text, or UNKNOWN_ERROR when there is nothing to show.
    """
    if error is None:
        return UNKNOWN_ERROR
    text = str(error).strip()
    return text if text else UNKNOWN_ERROR


def build_troubleshooting_tips(failed_step: str) -> list[str]:
    """Suggest next actions based on the description of the failed step.

    Args:
        failed_step: Human-readable description of the step that failed.

    Returns:
        List of tips, never empty.
    """
    step = failed_step.lower()

    if "blacklist" in step:
        return [
            "Check if Nouveau driver can be unloaded",
            "Try rebooting and running again",
        ]
    if "updat" in step:
        return [
            "Check network connectivity",
            "Verify repository access",
            "Try refreshing the package lists manually",
        ]
    if "unload" in step:
        return [
            "Close applications using the GPU",
            "Stop the display manager and try again",
        ]
    if "remove" in step:
        return [
            "Check for packages that depend on the driver",
            "Verify the package database is not locked",
        ]
    if "initramfs" in step or "restore" in step:
        return [
            "Check free space on /boot",
            "Regenerate the initramfs manually before rebooting",
        ]
    if step.startswith("install") or "install_" in step:
        return [
            "Check disk space",
            "Verify package availability",
            "Check for package conflicts",
        ]
    if "configur" in step:
        return [
            "Check system permissions",
            "Verify configuration files are writable",
        ]
    if "verif" in step:
        return [
            "Check driver loaded correctly",
            "Run 'dmesg | grep nvidia' for kernel messages",
            "Check if nvidia-smi returns expected output",
        ]
    return [
        "Check system logs for more details",
        "Run with --verbose for more details",
    ]
