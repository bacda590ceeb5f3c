"""Step execution tracking for install and uninstall runs.

This package holds the pure state of a pipeline run: the step ledger, the
bounded output log, progress calculation and the event-application
function that advances a run as the engine reports lifecycle events.
"""

from driver_wizard.pipeline.builders import (
    build_install_steps,
    build_uninstall_steps,
    new_install_run,
    new_uninstall_run,
)
from driver_wizard.pipeline.events import (
    Cancelled,
    LogAppended,
    PipelineCompleted,
    PipelineEvent,
    PipelineResult,
    StepCompleted,
    StepFailed,
    StepStarted,
    Tick,
)
from driver_wizard.pipeline.ledger import Step, StepLedger
from driver_wizard.pipeline.progress import LogBuffer, compute_progress
from driver_wizard.pipeline.run_state import (
    FailureDetail,
    RunState,
    apply_event,
    apply_events,
)
from driver_wizard.pipeline.types import PipelineKind, StepStatus, TerminalState

__all__ = [
    "Cancelled",
    "FailureDetail",
    "LogAppended",
    "LogBuffer",
    "PipelineCompleted",
    "PipelineEvent",
    "PipelineKind",
    "PipelineResult",
    "RunState",
    "Step",
    "StepCompleted",
    "StepFailed",
    "StepLedger",
    "StepStarted",
    "StepStatus",
    "TerminalState",
    "Tick",
    "apply_event",
    "apply_events",
    "build_install_steps",
    "build_uninstall_steps",
    "compute_progress",
    "new_install_run",
    "new_uninstall_run",
]
