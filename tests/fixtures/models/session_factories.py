"""
Polyfactory factories for generating test data for recording models.

This module provides factories for creating test instances of the recorded
session models replayed by the engine. Every `custom_build` fills all optional
fields explicitly so generated steps are deterministic; pass keyword arguments
to override any of them.
"""

from typing import Any, Dict, List, Optional

from polyfactory.factories.pydantic_factory import ModelFactory

from replayninja.schemas.session import (
    ActionKind,
    CheckpointData,
    ElementDescriptor,
    InputPayload,
    PageMetadata,
    RecordedEvent,
    RecordedSession,
)


class ElementDescriptorFactory(ModelFactory[ElementDescriptor]):
    """ModelFactory for generating ElementDescriptor test instances.

    The default descriptor is a submit button found by id.
    """

    __model__ = ElementDescriptor

    @classmethod
    def custom_build(cls, **kwargs: Any) -> ElementDescriptor:
        """Build an ElementDescriptor instance with default values."""
        defaults: Dict[str, Any] = {
            "id": "submit-btn",
            "name": None,
            "css": None,
            "xpath": None,
            "tag_name": "button",
            "text": "Submit",
            "attributes": {},
            "input_type": None,
        }
        defaults.update(kwargs)
        return super().build(factory_use_construct=False, **defaults)


class InputPayloadFactory(ModelFactory[InputPayload]):
    """ModelFactory for generating empty-by-default InputPayload test instances."""

    __model__ = InputPayload

    @classmethod
    def custom_build(cls, **kwargs: Any) -> InputPayload:
        """Build an InputPayload instance with every field unset."""
        defaults: Dict[str, Any] = {
            "text": None,
            "key": None,
            "modifiers": [],
            "url": None,
            "selected_option": None,
            "alert_action": None,
            "alert_text": None,
            "scroll_x": None,
            "scroll_y": None,
            "checkpoint": None,
        }
        defaults.update(kwargs)
        return super().build(factory_use_construct=False, **defaults)


class RecordedEventFactory(ModelFactory[RecordedEvent]):
    """ModelFactory for generating RecordedEvent test instances.

    The default event clicks the default `ElementDescriptorFactory` button in
    the top document.
    """

    __model__ = RecordedEvent

    @classmethod
    def custom_build(cls, **kwargs: Any) -> RecordedEvent:
        """Build a RecordedEvent instance with default values."""
        defaults: Dict[str, Any] = {
            "sequence_index": 0,
            "action": ActionKind.CLICK,
            "target": ElementDescriptorFactory.custom_build(),
            "frame_chain": (),
            "payload": InputPayloadFactory.custom_build(),
            "page": PageMetadata(url="https://example.com/form", title="Form"),
            "coordinates": None,
            "window_handle": None,
            "timestamp": None,
            "comment": None,
            "object_name": None,
            "recorded_action": None,
        }
        defaults.update(kwargs)
        return super().build(factory_use_construct=False, **defaults)

    @classmethod
    def navigate(cls, url: str, **kwargs: Any) -> RecordedEvent:
        return cls.custom_build(
            action=ActionKind.NAVIGATE,
            target=None,
            payload=InputPayloadFactory.custom_build(url=url),
            **kwargs,
        )

    @classmethod
    def text_input(cls, element_id: str, text: str, **kwargs: Any) -> RecordedEvent:
        return cls.custom_build(
            action=ActionKind.TEXT_INPUT,
            target=ElementDescriptorFactory.custom_build(
                id=element_id, tag_name="input", text=None
            ),
            payload=InputPayloadFactory.custom_build(text=text),
            **kwargs,
        )

    @classmethod
    def click(cls, target: Optional[ElementDescriptor] = None, **kwargs: Any) -> RecordedEvent:
        return cls.custom_build(
            action=ActionKind.CLICK,
            target=target or ElementDescriptorFactory.custom_build(),
            **kwargs,
        )

    @classmethod
    def checkpoint(
        cls, data: CheckpointData, target: Optional[ElementDescriptor] = None, **kwargs: Any
    ) -> RecordedEvent:
        return cls.custom_build(
            action=ActionKind.CHECKPOINT,
            target=target,
            payload=InputPayloadFactory.custom_build(checkpoint=data),
            **kwargs,
        )


class RecordedSessionFactory(ModelFactory[RecordedSession]):
    """ModelFactory for generating RecordedSession test instances."""

    __model__ = RecordedSession

    @classmethod
    def custom_build(cls, **kwargs: Any) -> RecordedSession:
        """Build a RecordedSession instance with default values and no events."""
        defaults: Dict[str, Any] = {
            "schema_version": "1.0",
            "session_id": "test_session",
            "start_timestamp": None,
            "end_timestamp": None,
            "browser_name": "chromium",
            "browser_version": None,
            "os_name": None,
            "recorded_by": "tests",
            "events": (),
        }
        defaults.update(kwargs)
        return super().build(factory_use_construct=False, **defaults)

    @classmethod
    def with_events(cls, events: List[RecordedEvent], **kwargs: Any) -> RecordedSession:
        """Build a session from events, renumbering their sequence indices in order."""
        numbered = tuple(
            event.model_copy(update={"sequence_index": position})
            for position, event in enumerate(events)
        )
        return cls.custom_build(events=numbered, **kwargs)


def form_session() -> RecordedSession:
    """Navigate to the example form, type an email address and submit."""
    return RecordedSessionFactory.with_events(
        [
            RecordedEventFactory.navigate("https://example.com/form"),
            RecordedEventFactory.text_input("email", "user@example.com"),
            RecordedEventFactory.click(),
        ],
        session_id="form_flow",
    )
