"""Unit tests for the step ledger."""

from datetime import datetime, timedelta

import pytest

from driver_wizard.pipeline.ledger import Step, StepLedger
from driver_wizard.pipeline.types import StepStatus

T0 = datetime(2024, 5, 1, 12, 0, 0)
T1 = T0 + timedelta(seconds=2)
T2 = T0 + timedelta(seconds=5)


def _ledger(count: int = 5) -> StepLedger:
    return StepLedger.from_steps(
        Step(name=f"step{i}", description=f"Step {i}") for i in range(count)
    )


@pytest.mark.unit
class TestStep:
    """Tests for the Step value."""

    def test_defaults(self) -> None:
        """A new step is pending with no timing or error."""
        step = Step(name="prepare", description="Preparing system")

        assert step.status is StepStatus.PENDING
        assert step.started_at is None
        assert step.ended_at is None
        assert step.error is None
        assert not step.is_running
        assert not step.is_done

    def test_duration_zero_without_both_times(self) -> None:
        """Duration is zero until both start and end are known."""
        assert Step("a", "A").duration == timedelta(0)
        assert Step("a", "A", started_at=T0).duration == timedelta(0)
        assert Step("a", "A", ended_at=T1).duration == timedelta(0)

    def test_duration(self) -> None:
        step = Step("a", "A", started_at=T0, ended_at=T2)
        assert step.duration == timedelta(seconds=5)


@pytest.mark.unit
class TestStepLedgerConstruction:
    """Tests for building ledgers."""

    def test_from_steps_keeps_order(self) -> None:
        ledger = _ledger(3)

        assert len(ledger) == 3
        assert [s.name for s in ledger] == ["step0", "step1", "step2"]
        assert ledger[1].description == "Step 1"

    def test_duplicate_names_rejected(self) -> None:
        """Step names must be unique within a pipeline."""
        with pytest.raises(ValueError, match="Duplicate step name: a"):
            StepLedger.from_steps([Step("a", "A"), Step("a", "Again")])

    def test_index_of(self) -> None:
        ledger = _ledger(3)

        assert ledger.index_of("step2") == 2
        assert ledger.index_of("missing") is None

    def test_description_at_out_of_range(self) -> None:
        """Out-of-range positions describe as empty string."""
        ledger = _ledger(2)

        assert ledger.description_at(0) == "Step 0"
        assert ledger.description_at(2) == ""
        assert ledger.description_at(-1) == ""


@pytest.mark.unit
class TestStepLedgerLifecycle:
    """Tests for lifecycle transitions."""

    def test_start_marks_running(self) -> None:
        ledger = _ledger().start(0, T0)

        assert ledger[0].status is StepStatus.RUNNING
        assert ledger[0].started_at == T0
        assert ledger[1].status is StepStatus.PENDING

    def test_start_returns_new_ledger(self) -> None:
        """Transitions never mutate the receiver."""
        original = _ledger()
        started = original.start(0, T0)

        assert original[0].status is StepStatus.PENDING
        assert started is not original

    def test_complete_success(self) -> None:
        ledger = _ledger().start(0, T0).complete(0, now=T1)

        assert ledger[0].status is StepStatus.COMPLETE
        assert ledger[0].ended_at == T1
        assert ledger[0].error is None
        assert ledger[0].duration == timedelta(seconds=2)
        assert not ledger.has_failure

    def test_complete_with_error(self) -> None:
        err = RuntimeError("disk full")
        ledger = _ledger().start(1, T0).complete(1, err, T1)

        assert ledger[1].status is StepStatus.FAILED
        assert ledger[1].error is err
        assert ledger.first_error is err
        assert ledger.has_failure

    def test_first_error_is_kept(self) -> None:
        """Later failures do not replace the first captured error."""
        first = RuntimeError("first")
        second = RuntimeError("second")
        ledger = _ledger().complete(0, first, T0).complete(1, second, T1)

        assert ledger.first_error is first
        assert ledger[1].error is second

    def test_complete_out_of_range_is_noop(self) -> None:
        """Completing index 99 of 5 steps mutates nothing."""
        ledger = _ledger()
        result = ledger.complete(99)

        assert len(result) == 5
        assert result.steps == ledger.steps
        assert not result.has_failure

    def test_complete_out_of_range_with_error_records_failure(self) -> None:
        """An error for an unknown index is still recorded ledger-wide."""
        err = RuntimeError("skewed")
        ledger = _ledger().complete(42, err, T0)

        assert ledger.first_error is err
        assert ledger.has_failure
        assert all(s.status is StepStatus.PENDING for s in ledger)

    def test_negative_index_ignored(self) -> None:
        ledger = _ledger()

        assert ledger.start(-1).steps == ledger.steps
        assert ledger.complete(-1).steps == ledger.steps

    def test_start_ignored_for_done_step(self) -> None:
        """A finished step never goes back to RUNNING."""
        ledger = _ledger().start(0, T0).complete(0, now=T1)
        restarted = ledger.start(0, T2)

        assert restarted[0].status is StepStatus.COMPLETE
        assert restarted[0].started_at == T0

    def test_recomplete_overwrites(self) -> None:
        """Completing a finished step again overwrites end time and error."""
        err = RuntimeError("late failure")
        ledger = _ledger().start(0, T0).complete(0, now=T1)
        ledger = ledger.complete(0, err, T2)

        assert ledger[0].status is StepStatus.FAILED
        assert ledger[0].ended_at == T2
        assert ledger[0].error is err

    def test_fail_without_detail(self) -> None:
        """A failure without error detail still flags the ledger."""
        ledger = _ledger().start(2, T0).fail(2, now=T1)

        assert ledger[2].status is StepStatus.FAILED
        assert ledger[2].error is None
        assert ledger.has_failure
        assert ledger.first_error is None

    def test_fail_with_error_delegates_to_complete(self) -> None:
        err = RuntimeError("boom")
        ledger = _ledger().fail(0, err, T0)

        assert ledger[0].status is StepStatus.FAILED
        assert ledger.first_error is err

    def test_mark_skipped(self) -> None:
        ledger = _ledger().mark_skipped(3)

        assert ledger[3].status is StepStatus.SKIPPED
        assert ledger[3].is_done

    def test_mark_skipped_keeps_finished_status(self) -> None:
        ledger = _ledger().complete(0, now=T0).mark_skipped(0)

        assert ledger[0].status is StepStatus.COMPLETE

    def test_done_count_and_all_done(self) -> None:
        ledger = _ledger(3).complete(0, now=T0).mark_skipped(1).start(2, T0)

        assert ledger.done_count == 2
        assert not ledger.all_done

        ledger = ledger.complete(2, RuntimeError("x"), T1)
        assert ledger.done_count == 3
        assert ledger.all_done

    @pytest.mark.parametrize(
        "operations",
        [
            [("complete", 0), ("start", 0)],
            [("complete", 1), ("start", 1), ("mark_skipped", 1)],
            [("mark_skipped", 2), ("start", 2), ("complete", 2)],
            [("fail", 3), ("start", 3), ("mark_skipped", 3)],
        ],
    )
    def test_terminal_status_never_regresses(
        self, operations: list[tuple[str, int]]
    ) -> None:
        """Once terminal, a step never reads PENDING or RUNNING again."""
        ledger = _ledger()
        reached_terminal: set[int] = set()

        for name, index in operations:
            if name == "start":
                ledger = ledger.start(index, T0)
            elif name == "complete":
                ledger = ledger.complete(index, now=T1)
            elif name == "fail":
                ledger = ledger.fail(index, now=T1)
            else:
                ledger = ledger.mark_skipped(index)

            for i in reached_terminal:
                assert ledger[i].status not in (
                    StepStatus.PENDING,
                    StepStatus.RUNNING,
                )
            if ledger[index].is_done:
                reached_terminal.add(index)
