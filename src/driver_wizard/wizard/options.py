"""Driver and component choices offered by the wizard."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from driver_wizard.wizard.detection import HardwareSummary


@dataclass(frozen=True)
class DriverOption:
    """One installable driver branch.

    Attributes:
        version: Branch version, e.g. "550".
        branch: Release channel, e.g. "Latest", "Production", "LTS".
        description: One-line explanation for the operator.
        recommended: Whether this is the suggested default.
    """

    version: str
    branch: str
    description: str = ""
    recommended: bool = False

    @property
    def label(self) -> str:
        suffix = " (recommended)" if self.recommended else ""
        return f"{self.version} - {self.branch}{suffix}"


@dataclass(frozen=True)
class ComponentOption:
    """An optional or required piece of the driver stack."""

    id: str
    name: str
    description: str = ""
    selected: bool = False
    required: bool = False

    def toggled(self) -> ComponentOption:
        """Flip selection. Required components stay selected."""
        if self.required:
            return replace(self, selected=True)
        return replace(self, selected=not self.selected)


@dataclass(frozen=True)
class Selection:
    """Driver and components chosen on the selection screen.

    Attributes:
        driver: Chosen driver branch.
        components: All component options with their selection state.
        hardware: Hardware summary the choice was made for.
    """

    driver: DriverOption
    components: tuple[ComponentOption, ...]
    hardware: HardwareSummary | None = None

    @property
    def selected_components(self) -> tuple[ComponentOption, ...]:
        return tuple(c for c in self.components if c.selected)

    def validate(self) -> tuple[bool, str]:
        """Check that every required component is selected.

        Returns:
            Tuple of (is_valid, error_message).
            error_message is empty string if valid.
        """
        missing = [c.name for c in self.components if c.required and not c.selected]
        if missing:
            return (False, f"Required components not selected: {', '.join(missing)}")
        return (True, "")


@dataclass(frozen=True)
class UninstallPlan:
    """What an uninstall run is going to remove."""

    installed_driver: str = ""
    packages: tuple[str, ...] = ()
    configs: tuple[str, ...] = ()
    restore_nouveau: bool = True
    warnings: tuple[str, ...] = ()


def build_driver_options(hardware: HardwareSummary | None = None) -> list[DriverOption]:
    """Build the driver branches offered for the detected hardware.

    Legacy hardware gets the legacy branch marked as recommended instead
    of the latest one.
    """
    legacy = hardware is not None and hardware.is_legacy_architecture()
    return [
        DriverOption(
            version="550",
            branch="Latest",
            description="Latest features and performance improvements",
            recommended=not legacy,
        ),
        DriverOption(
            version="545",
            branch="Production",
            description="Stable production release",
        ),
        DriverOption(
            version="535",
            branch="LTS",
            description="Long-term support, maximum stability",
        ),
        DriverOption(
            version="470",
            branch="Legacy",
            description="For older GPUs (Kepler, Maxwell)",
            recommended=legacy,
        ),
    ]


def build_component_options(
    preselected: Iterable[str] | None = None,
) -> list[ComponentOption]:
    """Build the component list.

    Args:
        preselected: Component IDs to select instead of the defaults.
            Required components are always selected.

    Raises:
        ValueError: If a preselected ID is not in the catalogue.
    """
    options = [
        ComponentOption(
            id="driver",
            name="NVIDIA Driver",
            description="Core NVIDIA graphics driver",
            selected=True,
            required=True,
        ),
        ComponentOption(
            id="cuda",
            name="CUDA Toolkit",
            description="GPU computing platform for developers",
        ),
        ComponentOption(
            id="cudnn",
            name="cuDNN",
            description="Deep learning primitives library",
        ),
        ComponentOption(
            id="settings",
            name="NVIDIA Settings",
            description="GUI configuration tool",
            selected=True,
        ),
    ]
    if preselected is None:
        return options

    wanted = set(preselected)
    unknown = sorted(wanted - {o.id for o in options})
    if unknown:
        available = ", ".join(o.id for o in options)
        raise ValueError(
            f"Unknown component '{', '.join(unknown)}'. Available: {available}"
        )
    return [replace(o, selected=o.required or o.id in wanted) for o in options]


def find_driver(options: Sequence[DriverOption], version: str | None) -> DriverOption:
    """Pick a driver by version, falling back to the recommended one.

    Raises:
        ValueError: If a version is given and no option matches it.
    """
    if version:
        for option in options:
            if option.version == version:
                return option
        available = ", ".join(o.version for o in options)
        raise ValueError(
            f"Unknown driver version '{version}'. Available: {available}"
        )

    for option in options:
        if option.recommended:
            return option
    return options[0]


def default_uninstall_plan(hardware: HardwareSummary | None = None) -> UninstallPlan:
    """Plan an uninstall of the currently installed driver."""
    version = "unknown"
    if hardware is not None:
        version = hardware.get_driver_version_or_default()
    warnings: list[str] = []
    if hardware is not None and hardware.has_nvidia_gpu():
        warnings.append("The display may fall back to a basic driver until reboot")
    return UninstallPlan(
        installed_driver=version,
        packages=(f"nvidia-driver-{version.split('.')[0]}", "nvidia-settings"),
        configs=("/etc/modprobe.d/blacklist-nouveau.conf",),
        restore_nouveau=True,
        warnings=tuple(warnings),
    )
