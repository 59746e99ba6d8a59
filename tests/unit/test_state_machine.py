import pytest

from replayninja.replication.state_machine import (
    STEP_TRANSITIONS,
    TERMINAL_PHASES,
    IllegalTransitionError,
    StepExecution,
    StepPhase,
)
from replayninja.schemas.results import StepStatus
from tests.fixtures.models.session_factories import ElementDescriptorFactory, RecordedEventFactory


class TestStepExecution:
    """Test suite for the per-step state machine."""

    @pytest.fixture
    def step(self) -> StepExecution:
        return StepExecution(index=0, event=RecordedEventFactory.click())

    # ? VALID CASE
    def test_plain_path_ends_passed(self, step: StepExecution) -> None:
        for phase in (
            StepPhase.SENTINEL,
            StepPhase.FRAMES,
            StepPhase.RESOLVING,
            StepPhase.DISPATCHING,
        ):
            step.advance(phase)
        step.finish()

        assert step.phase == StepPhase.PASSED
        assert step.step_status() == StepStatus.PASSED
        assert step.is_terminal

    def test_healed_path_ends_healed(self, step: StepExecution) -> None:
        for phase in (
            StepPhase.SENTINEL,
            StepPhase.FRAMES,
            StepPhase.RESOLVING,
            StepPhase.HEALING,
            StepPhase.RESOLVING_HEALED,
            StepPhase.DISPATCHING,
        ):
            step.advance(phase)
        step.healed_descriptor = ElementDescriptorFactory.custom_build(id=None, css="#new")
        step.finish()

        assert step.step_status() == StepStatus.HEALED

    def test_targetless_step_skips_resolution(self, step: StepExecution) -> None:
        step.advance(StepPhase.SENTINEL)
        step.advance(StepPhase.FRAMES)

        assert step.can_advance(StepPhase.DISPATCHING)

    def test_fail_is_idempotent_on_terminal_steps(self, step: StepExecution) -> None:
        step.fail()
        step.fail()

        assert step.history == [StepPhase.PENDING, StepPhase.FAILED]
        assert step.step_status() == StepStatus.FAILED

    # ! INVALID CASE
    @pytest.mark.parametrize(
        "phase",
        [StepPhase.FRAMES, StepPhase.RESOLVING, StepPhase.DISPATCHING, StepPhase.PASSED],
    )
    def test_pending_cannot_skip_the_sentinel(self, step: StepExecution, phase: StepPhase) -> None:
        with pytest.raises(IllegalTransitionError):
            step.advance(phase)

    def test_terminal_phases_have_no_successors(self) -> None:
        for phase in TERMINAL_PHASES:
            assert STEP_TRANSITIONS[phase] == frozenset(), f"{phase.value} must be terminal"

    def test_every_phase_has_declared_transitions(self) -> None:
        assert set(STEP_TRANSITIONS) == set(StepPhase)
