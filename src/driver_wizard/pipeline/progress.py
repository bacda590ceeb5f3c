"""Progress calculation and the bounded output log."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator

from driver_wizard.constants import DEFAULT_LOG_LINES
from driver_wizard.pipeline.ledger import StepLedger


def compute_progress(ledger: StepLedger, completed: bool = False) -> float:
    """Compute the completion fraction of a pipeline.

    Progress only advances when a step finishes; a running step contributes
    nothing. A pipeline the engine declared complete is always at 1.0, even
    if some steps never reported.

    Args:
        ledger: Current step ledger.
        completed: Whether the engine delivered its final result.

    Returns:
        Fraction between 0.0 and 1.0.
    """
    if completed:
        return 1.0
    total = len(ledger)
    if total == 0:
        return 0.0
    return ledger.done_count / total


def progress_percent(fraction: float) -> int:
    """Convert a progress fraction to a whole percentage for display."""
    return int(max(0.0, min(fraction, 1.0)) * 100)


@dataclass(frozen=True)
class LogBuffer:
    """Insertion-ordered log lines with FIFO eviction.

    Attributes:
        lines: Retained lines, oldest first.
        max_lines: Capacity. Always positive.
    """

    lines: tuple[str, ...] = ()
    max_lines: int = DEFAULT_LOG_LINES

    def __post_init__(self) -> None:
        if self.max_lines <= 0:
            raise ValueError(f"max_lines must be positive, got {self.max_lines}")
        if len(self.lines) > self.max_lines:
            object.__setattr__(self, "lines", self.lines[-self.max_lines :])

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines)

    def append(self, line: str) -> LogBuffer:
        """Append a line, evicting the oldest lines beyond capacity."""
        lines = self.lines + (line,)
        if len(lines) > self.max_lines:
            lines = lines[len(lines) - self.max_lines :]
        return replace(self, lines=lines)

    def set_max(self, max_lines: int) -> LogBuffer:
        """Change capacity.

        Non-positive values are ignored and the previous capacity is kept.
        Shrinking drops the oldest lines so the buffer stays within capacity.
        """
        if max_lines <= 0:
            return self
        return LogBuffer(lines=self.lines, max_lines=max_lines)

    def clear(self) -> LogBuffer:
        """Drop all lines, keeping the capacity."""
        return replace(self, lines=())
