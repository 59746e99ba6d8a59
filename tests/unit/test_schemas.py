from typing import Any, Dict, Optional

import pytest
from pydantic import ValidationError

from replayninja.schemas.results import RunResult, RunStatus, StepResult, StepStatus
from replayninja.schemas.session import (
    ActionKind,
    AlertDecision,
    CheckpointType,
    ElementDescriptor,
    FrameDescriptor,
    LocatorStrategy,
    MatchMode,
    RecordedEvent,
    RecordedSession,
)

# Import Polyfactory factories for test data generation
from tests.fixtures.models.session_factories import (
    ElementDescriptorFactory,
    RecordedEventFactory,
    RecordedSessionFactory,
)


class TestActionKind:
    """Test suite for `ActionKind`.

    Recordings come from several recorder generations, so the action kind must
    accept the legacy upper-case event type names as well as the current ones.
    """

    # ? VALID CASE
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("click", ActionKind.CLICK),
            ("CLICK", ActionKind.CLICK),
            ("INPUT", ActionKind.TEXT_INPUT),
            ("type", ActionKind.TEXT_INPUT),
            ("SELECT", ActionKind.SELECT_OPTION),
            ("ALERT", ActionKind.ALERT_ACTION),
            ("switch-window", ActionKind.WINDOW_SWITCH),
            ("RIGHT_CLICK", ActionKind.CONTEXT_MENU),
            ("double-click", ActionKind.DOUBLE_CLICK),
            ("HOVER", ActionKind.HOVER),
            ("mouse_over", ActionKind.HOVER),
            ("Checkpoint", ActionKind.CHECKPOINT),
        ],
    )
    def test_legacy_names_are_accepted(self, raw: str, expected: ActionKind) -> None:
        """Test that legacy and current spellings map onto the same kind."""
        assert ActionKind(raw) == expected, f"'{raw}' should map to {expected.value}"

    # ! INVALID CASE
    def test_unknown_kind_is_rejected(self) -> None:
        """Test that the enum itself rejects unknown names; events map them to `UNSUPPORTED`."""
        with pytest.raises(ValueError):
            ActionKind("drag_drop")

        assert not ActionKind.UNSUPPORTED.replayable

    @pytest.mark.parametrize(
        "kind,requires,accepts",
        [
            (ActionKind.CLICK, True, True),
            (ActionKind.TEXT_INPUT, True, True),
            (ActionKind.KEY_PRESS, False, True),
            (ActionKind.SCROLL, False, True),
            (ActionKind.NAVIGATE, False, False),
            (ActionKind.ALERT_ACTION, False, False),
            (ActionKind.WINDOW_SWITCH, False, False),
            (ActionKind.HOVER, True, True),
            (ActionKind.WAIT, False, True),
            (ActionKind.CHECKPOINT, False, True),
            (ActionKind.FRAME_SWITCH, False, False),
            (ActionKind.UNSUPPORTED, False, False),
        ],
    )
    def test_target_requirements(self, kind: ActionKind, requires: bool, accepts: bool) -> None:
        assert kind.requires_target == requires, f"{kind.value}.requires_target should be {requires}"
        assert kind.accepts_target == accepts, f"{kind.value}.accepts_target should be {accepts}"


class TestElementDescriptor:
    """Test suite for `ElementDescriptor`.

    The descriptor is the unit the resolver and the healing services work on;
    these tests pin down which fields count as locators and in which order.
    """

    # ? VALID CASE
    def test_populated_strategies_follow_fixed_order(self) -> None:
        """Test that populated fields come back as id → name → css → xpath."""
        descriptor = ElementDescriptorFactory.custom_build(
            id="submit-btn",
            name="submit",
            css="form button.primary",
            xpath="//button[text()='Submit']",
        )

        strategies = [strategy for strategy, _ in descriptor.populated_strategies()]

        assert strategies == [
            LocatorStrategy.ID,
            LocatorStrategy.NAME,
            LocatorStrategy.CSS,
            LocatorStrategy.XPATH,
        ], "Strategies must be in fixed resolution order"

    def test_blank_fields_are_not_locators(self) -> None:
        descriptor = ElementDescriptorFactory.custom_build(id="   ", css="#submit")

        assert descriptor.populated_strategies() == [(LocatorStrategy.CSS, "#submit")]

    # ! INVALID CASE
    def test_descriptor_without_locator_is_rejected(self) -> None:
        """Test that hints alone (tag, text) do not make a valid descriptor."""
        with pytest.raises(ValidationError):
            ElementDescriptor(tag_name="button", text="Submit")

    @pytest.mark.parametrize(
        "input_type,attributes,expected",
        [
            ("password", {}, True),
            ("PASSWORD", {}, True),
            (None, {"type": "password"}, True),
            ("text", {}, False),
            (None, {}, False),
        ],
    )
    def test_password_detection(
        self, input_type: Optional[str], attributes: Dict[str, Any], expected: bool
    ) -> None:
        descriptor = ElementDescriptorFactory.custom_build(
            input_type=input_type, attributes=attributes
        )

        assert descriptor.is_password_field() == expected

    def test_camel_case_type_alias(self) -> None:
        descriptor = ElementDescriptor.model_validate({"id": "pwd", "type": "password"})

        assert descriptor.input_type == "password"

    def test_summary_lists_tag_and_locators(self) -> None:
        descriptor = ElementDescriptorFactory.custom_build(id="submit-btn", css="#submit-btn")

        assert descriptor.summary() == "<button> id='submit-btn' css='#submit-btn'"


class TestFrameDescriptor:
    """Test suite for `FrameDescriptor` string and index shorthands."""

    # ? VALID CASE
    @pytest.mark.parametrize(
        "raw,field,value",
        [
            (0, "index", 0),
            ("2", "index", 2),
            ("payment_frame", "name", "payment_frame"),
            ("iframe[title='Checkout']", "css", "iframe[title='Checkout']"),
        ],
    )
    def test_shorthand_forms(self, raw: Any, field: str, value: Any) -> None:
        frame = FrameDescriptor.model_validate(raw)

        assert getattr(frame, field) == value, f"{raw!r} should set {field}={value!r}"

    # ! INVALID CASE
    def test_empty_frame_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FrameDescriptor.model_validate({})

    def test_negative_index_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FrameDescriptor(index=-1)


class TestRecordedEvent:
    """Test suite for `RecordedEvent` document parsing."""

    # ? VALID CASE
    def test_recorder_document_is_parsed(self) -> None:
        """Test a step as written by a recorder: camelCase keys and flat page metadata."""
        event = RecordedEvent.model_validate(
            {
                "eventType": "INPUT",
                "element": {"id": "email", "tagName": "input"},
                "inputData": {"keys": "user@example.com"},
                "frameChain": ["0", "login_frame"],
                "url": "https://example.com/form",
                "pageTitle": "Form",
            }
        )

        assert event.action == ActionKind.TEXT_INPUT
        assert event.target is not None and event.target.tag_name == "input"
        assert event.payload.text == "user@example.com"
        assert [frame.summary() for frame in event.frame_chain] == ["index=0", "name='login_frame'"]
        assert event.page.url == "https://example.com/form"
        assert event.page.title == "Form"

    def test_null_frame_chain_and_payload(self) -> None:
        event = RecordedEvent.model_validate(
            {"eventType": "navigate", "frameChain": None, "inputData": None}
        )

        assert event.frame_chain == ()
        assert event.payload.url is None

    def test_alert_decision_is_case_insensitive(self) -> None:
        event = RecordedEvent.model_validate(
            {"eventType": "ALERT", "inputData": {"alertAction": "ACCEPT"}}
        )

        assert event.payload.alert_action == AlertDecision.ACCEPT

    def test_events_are_immutable(self) -> None:
        event = RecordedEventFactory.custom_build()

        with pytest.raises(ValidationError):
            event.sequence_index = 5  # type: ignore[misc]

    def test_describe_navigate_uses_url(self) -> None:
        event = RecordedEventFactory.navigate("https://example.com/form")

        assert event.describe() == "navigate https://example.com/form"

    def test_unknown_event_type_becomes_unsupported_step(self) -> None:
        """Test that an unknown recorded kind parses and keeps its recorded name."""
        event = RecordedEvent.model_validate(
            {"eventType": "DRAG_DROP", "element": {"id": "card"}}
        )

        assert event.action == ActionKind.UNSUPPORTED
        assert event.recorded_action == "DRAG_DROP"
        assert event.target is not None and event.target.id == "card"
        assert event.describe() == "DRAG_DROP (unsupported)"

    def test_known_event_type_has_no_recorded_action(self) -> None:
        event = RecordedEvent.model_validate({"eventType": "HOVER", "element": {"id": "menu"}})

        assert event.action == ActionKind.HOVER
        assert event.recorded_action is None

    def test_checkpoint_data_is_read_from_input_data(self) -> None:
        event = RecordedEvent.model_validate(
            {
                "eventType": "CHECKPOINT",
                "element": {"css": "h1"},
                "inputData": {
                    "checkpointData": {
                        "checkpointType": "TEXT",
                        "expectedValue": "Welcome",
                        "matchMode": "CONTAINS",
                        "checkpointName": "greeting",
                    }
                },
            }
        )

        checkpoint = event.payload.checkpoint
        assert checkpoint is not None
        assert checkpoint.checkpoint_type == CheckpointType.TEXT
        assert checkpoint.match_mode == MatchMode.CONTAINS
        assert checkpoint.screenshot_threshold == 0.02
        assert not checkpoint.case_sensitive
        assert event.describe() == "checkpoint greeting css='h1'"

    def test_top_level_checkpoint_data_is_lifted(self) -> None:
        event = RecordedEvent.model_validate(
            {
                "eventType": "checkpoint",
                "checkpointData": {"checkpointType": "url", "expectedValue": "/thanks", "matchMode": None},
            }
        )

        checkpoint = event.payload.checkpoint
        assert checkpoint is not None
        assert checkpoint.checkpoint_type == CheckpointType.URL
        assert checkpoint.match_mode == MatchMode.EQUALS
        assert checkpoint.label() == "url"

    def test_object_name_is_kept(self) -> None:
        event = RecordedEvent.model_validate({"eventType": "CLICK", "objectName": "LoginPage.submit"})

        assert event.object_name == "LoginPage.submit"
        assert event.target is None

    # ! INVALID CASE
    @pytest.mark.parametrize(
        "checkpoint",
        [
            {"checkpointType": "pixel_perfect"},
            {"checkpointType": "text", "matchMode": "fuzzy"},
            {"checkpointType": "screenshot", "screenshotThreshold": 1.5},
        ],
        ids=["unknown-type", "unknown-mode", "threshold-above-one"],
    )
    def test_invalid_checkpoint_data_is_rejected(self, checkpoint: Dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            RecordedEvent.model_validate(
                {"eventType": "checkpoint", "inputData": {"checkpointData": checkpoint}}
            )


class TestRecordedSession:
    """Test suite for `RecordedSession` ordering rules."""

    # ? VALID CASE
    def test_missing_sequence_indices_take_document_position(self) -> None:
        session = RecordedSession.model_validate(
            {
                "schemaVersion": "1.0",
                "sessionId": "s1",
                "events": [
                    {"eventType": "navigate", "inputData": {"url": "https://example.com"}},
                    {"eventType": "click", "element": {"id": "go"}},
                ],
            }
        )

        assert [event.sequence_index for event in session.events] == [0, 1]
        assert len(session) == 2

    # ! INVALID CASE
    def test_non_increasing_sequence_is_rejected(self) -> None:
        """Test that the execution order cannot be ambiguous."""
        first = RecordedEventFactory.custom_build(sequence_index=3)
        second = RecordedEventFactory.custom_build(sequence_index=3)

        with pytest.raises(ValidationError):
            RecordedSessionFactory.custom_build(events=(first, second))


class TestRunResult:
    """Test suite for the aggregated `RunResult` counters."""

    @pytest.fixture
    def mixed_result(self) -> RunResult:
        statuses = [StepStatus.PASSED, StepStatus.HEALED, StepStatus.FAILED, StepStatus.SKIPPED]
        steps = [
            StepResult(index=i, sequence_index=i, action=ActionKind.CLICK, status=status)
            for i, status in enumerate(statuses)
        ]
        return RunResult(
            run_id="run_1",
            session_id="s1",
            status=RunStatus.FAILED,
            steps=steps,
            first_failure_index=2,
            started_at="2026-01-01T00:00:00Z",
            finished_at="2026-01-01T00:00:05Z",
        )

    # ? VALID CASE
    def test_counters(self, mixed_result: RunResult) -> None:
        assert mixed_result.passed_count == 1
        assert mixed_result.healed_count == 1
        assert mixed_result.failed_count == 1
        assert mixed_result.skipped_count == 1

    def test_status_sequence_and_success(self, mixed_result: RunResult) -> None:
        assert mixed_result.status_sequence() == [
            StepStatus.PASSED,
            StepStatus.HEALED,
            StepStatus.FAILED,
            StepStatus.SKIPPED,
        ]
        assert [step.succeeded for step in mixed_result.steps] == [True, True, False, False]
