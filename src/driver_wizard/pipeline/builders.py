"""Step definitions for the install and uninstall pipelines."""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Sequence

from driver_wizard.constants import (
    DEFAULT_LOG_LINES,
    DEFAULT_UNINSTALL_STEPS,
    INSTALL_COMPONENT_PREFIX,
    INSTALL_LEADING_STEPS,
    INSTALL_TRAILING_STEPS,
    RESTORE_NOUVEAU_STEP,
)
from driver_wizard.pipeline.ledger import Step
from driver_wizard.pipeline.run_state import RunState
from driver_wizard.pipeline.types import PipelineKind


class ComponentLike(Protocol):
    """Anything that describes an installable component."""

    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def selected(self) -> bool: ...


def build_install_steps(components: Iterable[ComponentLike]) -> list[Step]:
    """Build the install pipeline.

    The fixed leading steps are followed by one install step per selected
    component, in the order given, then the fixed trailing steps.

    Args:
        components: Component options; unselected ones get no step.

    Returns:
        Ordered list of pending steps.
    """
    steps = [Step(name=name, description=desc) for name, desc in INSTALL_LEADING_STEPS]

    for component in components:
        if component.selected:
            steps.append(
                Step(
                    name=f"{INSTALL_COMPONENT_PREFIX}{component.id}",
                    description=f"Installing {component.name}",
                )
            )

    steps.extend(
        Step(name=name, description=desc) for name, desc in INSTALL_TRAILING_STEPS
    )
    return steps


def build_uninstall_steps(
    overrides: Sequence[Mapping[str, str]] | None = None,
    restore_nouveau: bool = True,
) -> list[Step]:
    """Build the uninstall pipeline.

    Args:
        overrides: Optional replacement step list as name/description
            mappings. An empty or missing list selects the default steps.
        restore_nouveau: Whether the nouveau restore step runs. When False
            the step is left out of default and overridden lists alike.

    Returns:
        Ordered list of pending steps.
    """
    if overrides:
        steps = [
            Step(name=item["name"], description=item.get("description", item["name"]))
            for item in overrides
        ]
    else:
        steps = [
            Step(name=name, description=desc) for name, desc in DEFAULT_UNINSTALL_STEPS
        ]
    if not restore_nouveau:
        steps = [step for step in steps if step.name != RESTORE_NOUVEAU_STEP]
    return steps


def new_install_run(
    components: Iterable[ComponentLike], max_log_lines: int = DEFAULT_LOG_LINES
) -> RunState:
    """Create a fresh run state for an install."""
    return RunState.create(
        PipelineKind.INSTALL, build_install_steps(components), max_log_lines
    )


def new_uninstall_run(
    overrides: Sequence[Mapping[str, str]] | None = None,
    max_log_lines: int = DEFAULT_LOG_LINES,
    restore_nouveau: bool = True,
) -> RunState:
    """Create a fresh run state for an uninstall."""
    steps = build_uninstall_steps(overrides, restore_nouveau)
    return RunState.create(PipelineKind.UNINSTALL, steps, max_log_lines)
