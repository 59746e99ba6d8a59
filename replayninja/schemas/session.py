"""
Recorded session data model for the ReplayNinja replay engine.

A recorded session is the immutable, ordered log of user interactions captured by
a recorder. The engine only reads it: every model in this module is frozen, and
the order of `RecordedSession.events` is the execution order.

JSON documents use camelCase keys (`eventType`, `frameChain`, `inputData`, ...);
Python code uses the snake_case attribute names. Both are accepted on input.

## Key Components

1. **ActionKind** - Closed set of action kinds (unknown recorded kinds become `UNSUPPORTED`)
2. **ElementDescriptor** - Candidate locator fields (plus diagnostic hints) for one element
3. **FrameDescriptor** - One hop of a frame chain
4. **InputPayload** - Per-action input (text, keys, option, URL, alert decision, checkpoint)
5. **RecordedEvent** - One replayable step
6. **RecordedSession** - Versioned, ordered sequence of events with recording metadata
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

CURRENT_SCHEMA_VERSION: str = "1.0"
SUPPORTED_SCHEMA_VERSIONS: Tuple[str, ...] = ("1.0",)

_BARE_FRAME_NAME = re.compile(r"^[A-Za-z_][\w\-]*$")


class _RecordingModel(BaseModel):
    """Shared configuration for all recording models."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ActionKind(str, Enum):
    """Closed set of action kinds a recorded step can carry.

    Recordings written by older recorders use upper-case event type names
    (`CLICK`, `INPUT`, `SELECT`, `ALERT`, ...); those are accepted as aliases.
    Any other name still parses: the event becomes an `UNSUPPORTED` step, which
    fails when it is replayed instead of rejecting the whole recording.
    """

    CLICK = "click"
    DOUBLE_CLICK = "double_click"
    CONTEXT_MENU = "context_menu"
    KEY_PRESS = "key_press"
    TEXT_INPUT = "text_input"
    SELECT_OPTION = "select_option"
    SCROLL = "scroll"
    NAVIGATE = "navigate"
    ALERT_ACTION = "alert_action"
    WINDOW_SWITCH = "window_switch"
    HOVER = "hover"
    WAIT = "wait"
    CHECKPOINT = "checkpoint"
    FRAME_SWITCH = "frame_switch"
    #: stands in for a recorded kind the engine cannot replay (see `RecordedEvent.recorded_action`)
    UNSUPPORTED = "unsupported"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ActionKind"]:
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower().replace("-", "_")
        legacy_names = {
            "input": cls.TEXT_INPUT,
            "type": cls.TEXT_INPUT,
            "select": cls.SELECT_OPTION,
            "alert": cls.ALERT_ACTION,
            "switch_window": cls.WINDOW_SWITCH,
            "right_click": cls.CONTEXT_MENU,
            "mouse_over": cls.HOVER,
        }
        if normalized in legacy_names:
            return legacy_names[normalized]
        for member in cls:
            if member.value == normalized:
                return member
        return None

    @property
    def requires_target(self) -> bool:
        """Whether the step cannot run without a resolved element."""
        return self in _TARGET_REQUIRED

    @property
    def accepts_target(self) -> bool:
        """Whether a recorded target element is used when present."""
        return self in _TARGET_REQUIRED or self in _TARGET_OPTIONAL

    @property
    def replayable(self) -> bool:
        return self is not ActionKind.UNSUPPORTED


_TARGET_REQUIRED = frozenset(
    {
        ActionKind.CLICK,
        ActionKind.DOUBLE_CLICK,
        ActionKind.CONTEXT_MENU,
        ActionKind.TEXT_INPUT,
        ActionKind.SELECT_OPTION,
        ActionKind.HOVER,
    }
)
_TARGET_OPTIONAL = frozenset(
    {ActionKind.KEY_PRESS, ActionKind.SCROLL, ActionKind.WAIT, ActionKind.CHECKPOINT}
)


class AlertDecision(str, Enum):
    """What to do with a browser dialog during an alert step."""

    ACCEPT = "accept"
    DISMISS = "dismiss"
    SEND_KEYS = "send_keys"

    @classmethod
    def _missing_(cls, value: object) -> Optional["AlertDecision"]:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


#! Descriptors


class LocatorStrategy(str, Enum):
    """Element location strategies, declared in fixed resolution order.

    Each strategy reads exactly one locator field of an `ElementDescriptor`.
    """

    ID = "id"
    NAME = "name"
    CSS = "css"
    XPATH = "xpath"

    @property
    def descriptor_field(self) -> str:
        return self.value

    @classmethod
    def ordered(cls) -> Tuple["LocatorStrategy", ...]:
        return (cls.ID, cls.NAME, cls.CSS, cls.XPATH)


class ElementDescriptor(_RecordingModel):
    """Candidate identifying attributes for one element.

    Only `id`, `name`, `css` and `xpath` are locator fields; the resolver decides
    the order in which they are tried. `tag_name`, `text`, `attributes` and
    `input_type` are hints kept for healing and diagnostics.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    css: Optional[str] = None
    xpath: Optional[str] = None

    tag_name: Optional[str] = None
    text: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
    input_type: Optional[str] = Field(default=None, alias="type")

    @model_validator(mode="after")
    def _require_locator_field(self) -> "ElementDescriptor":
        if not self.has_locator():
            raise ValueError("element descriptor must populate at least one of id, name, css, xpath")
        return self

    def has_locator(self) -> bool:
        return bool(self.populated_strategies())

    def locator_value(self, strategy: LocatorStrategy) -> Optional[str]:
        value = getattr(self, strategy.descriptor_field)
        if value is None or not value.strip():
            return None
        return value

    def populated_strategies(self) -> List[Tuple[LocatorStrategy, str]]:
        """Populated locator fields as (strategy, value) pairs in resolution order."""
        pairs: List[Tuple[LocatorStrategy, str]] = []
        for strategy in LocatorStrategy.ordered():
            value = self.locator_value(strategy)
            if value is not None:
                pairs.append((strategy, value))
        return pairs

    def is_password_field(self) -> bool:
        field_type = self.input_type or self.attributes.get("type")
        return (field_type or "").lower() == "password"

    def summary(self) -> str:
        """Short human-readable description used in logs and error messages."""
        parts = [
            f"{label}={value!r}"
            for label, value in (
                ("id", self.id),
                ("name", self.name),
                ("css", self.css),
                ("xpath", self.xpath),
            )
            if value and value.strip()
        ]
        if self.tag_name:
            parts.insert(0, f"<{self.tag_name}>")
        return " ".join(parts) if parts else "<empty descriptor>"


class FrameDescriptor(_RecordingModel):
    """One hop of a frame chain.

    A hop is addressed either by its position among the child frames of the
    current document, or by locator fields of the frame element. A plain string
    is accepted on input: digits become an index, a bare word is looked up by
    frame name or id, anything else is treated as a CSS selector.
    """

    index: Optional[int] = Field(default=None, ge=0)
    id: Optional[str] = None
    name: Optional[str] = None
    css: Optional[str] = None
    xpath: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _parse_plain_string(cls, data: Any) -> Any:
        if isinstance(data, int):
            return {"index": data}
        if isinstance(data, str):
            value = data.strip()
            if value.isdigit():
                return {"index": int(value)}
            if _BARE_FRAME_NAME.match(value):
                return {"name": value}
            return {"css": value}
        return data

    @model_validator(mode="after")
    def _require_address(self) -> "FrameDescriptor":
        if self.index is None and not any((self.id, self.name, self.css, self.xpath)):
            raise ValueError("frame descriptor needs an index or a locator field")
        return self

    def summary(self) -> str:
        if self.index is not None:
            return f"index={self.index}"
        for label, value in (("id", self.id), ("name", self.name), ("css", self.css), ("xpath", self.xpath)):
            if value:
                return f"{label}={value!r}"
        return "<empty frame>"


#! Step payloads


class SelectedOption(_RecordingModel):
    """Option chosen in a dropdown; selection tries text, then value, then index."""

    text: Optional[str] = None
    value: Optional[str] = None
    index: Optional[int] = Field(default=None, ge=0)

    def is_empty(self) -> bool:
        return not self.text and not self.value and self.index is None


class CheckpointType(str, Enum):
    """What a checkpoint step verifies."""

    TEXT = "text"
    ELEMENT_EXISTS = "element_exists"
    URL = "url"
    TITLE = "title"
    ATTRIBUTE = "attribute"
    SCREENSHOT = "screenshot"

    @classmethod
    def _missing_(cls, value: object) -> Optional["CheckpointType"]:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


class MatchMode(str, Enum):
    """How a checkpoint compares the observed value with the expected one."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    REGEX = "regex"

    @classmethod
    def _missing_(cls, value: object) -> Optional["MatchMode"]:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None


class CheckpointData(_RecordingModel):
    """Expectation verified by a checkpoint step.

    Text, attribute and element-exists checkpoints read the step's target
    element; URL, title and screenshot checkpoints read the page. Without an
    `expected_value`, a value checkpoint passes trivially. Screenshot checkpoints
    compare a fresh screenshot with `baseline_image_path` pixel by pixel and fail
    when more than `screenshot_threshold` of the pixels differ.
    """

    checkpoint_type: CheckpointType
    expected_value: Optional[str] = None
    match_mode: MatchMode = MatchMode.EQUALS
    attribute_name: Optional[str] = None
    baseline_image_path: Optional[str] = None
    screenshot_threshold: float = Field(default=0.02, ge=0.0, le=1.0)
    case_sensitive: bool = False
    checkpoint_name: Optional[str] = None

    @field_validator("match_mode", mode="before")
    @classmethod
    def _none_is_equals(cls, value: Any) -> Any:
        return MatchMode.EQUALS if value is None else value

    def label(self) -> str:
        return self.checkpoint_name or self.checkpoint_type.value


class InputPayload(_RecordingModel):
    """Free-form input of a step, interpreted per action kind."""

    text: Optional[str] = Field(default=None, alias="keys")
    key: Optional[str] = Field(default=None, alias="keyCode")
    modifiers: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    selected_option: Optional[SelectedOption] = None
    alert_action: Optional[AlertDecision] = None
    alert_text: Optional[str] = None
    scroll_x: Optional[int] = None
    scroll_y: Optional[int] = None
    checkpoint: Optional[CheckpointData] = Field(default=None, alias="checkpointData")


class Coordinates(_RecordingModel):
    """Viewport coordinates captured with the event."""

    x: int = 0
    y: int = 0


class PageMetadata(_RecordingModel):
    """Page URL and title at record time, kept for diagnostics only."""

    url: Optional[str] = None
    title: Optional[str] = None


#! Events and sessions


class RecordedEvent(_RecordingModel):
    """One replayable step of a recorded session.

    `object_name` names an entry of an `ObjectRepository`; its locators are used
    when the event has no inline `target`. An event whose recorded kind is unknown
    carries `ActionKind.UNSUPPORTED` and keeps the recorded name in
    `recorded_action`.
    """

    sequence_index: int = Field(default=0, ge=0)
    action: ActionKind = Field(alias="eventType")
    target: Optional[ElementDescriptor] = Field(default=None, alias="element")
    frame_chain: Tuple[FrameDescriptor, ...] = Field(default_factory=tuple)
    payload: InputPayload = Field(default_factory=InputPayload, alias="inputData")
    page: PageMetadata = Field(default_factory=PageMetadata)
    coordinates: Optional[Coordinates] = None
    window_handle: Optional[str] = None
    timestamp: Optional[datetime] = None
    comment: Optional[str] = None
    object_name: Optional[str] = None
    recorded_action: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _keep_unknown_action(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        key = "eventType" if "eventType" in data else "action"
        raw = data.get(key)
        if not isinstance(raw, str):
            return data
        try:
            ActionKind(raw)
        except ValueError:
            data = {**data, key: ActionKind.UNSUPPORTED.value, "recordedAction": raw.strip()}
        return data

    @model_validator(mode="before")
    @classmethod
    def _lift_checkpoint_data(cls, data: Any) -> Any:
        # some recorders store checkpointData on the event instead of in inputData
        if not isinstance(data, dict) or "checkpointData" not in data:
            return data
        key = "payload" if "payload" in data else "inputData"
        payload = data.get(key) or {}
        if not isinstance(payload, dict) or "checkpointData" in payload or "checkpoint" in payload:
            return data
        lifted = {name: value for name, value in data.items() if name != "checkpointData"}
        lifted[key] = {**payload, "checkpointData": data["checkpointData"]}
        return lifted

    @model_validator(mode="before")
    @classmethod
    def _lift_page_metadata(cls, data: Any) -> Any:
        # recorders store url/pageTitle flat on the event
        if isinstance(data, dict) and "page" not in data:
            url = data.get("url")
            title = data.get("pageTitle", data.get("page_title"))
            if url is not None or title is not None:
                data = {**data, "page": {"url": url, "title": title}}
        return data

    @field_validator("frame_chain", mode="before")
    @classmethod
    def _none_is_top_document(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("payload", mode="before")
    @classmethod
    def _none_is_empty_payload(cls, value: Any) -> Any:
        return {} if value is None else value

    def describe(self) -> str:
        if self.action == ActionKind.UNSUPPORTED:
            return f"{self.recorded_action or 'unknown'} (unsupported)"
        if self.action == ActionKind.CHECKPOINT and self.payload.checkpoint is not None:
            label = f"{self.action.value} {self.payload.checkpoint.label()}"
            return f"{label} {self.target.summary()}" if self.target is not None else label
        if self.target is not None:
            return f"{self.action.value} {self.target.summary()}"
        if self.action == ActionKind.NAVIGATE:
            return f"{self.action.value} {self.payload.url or self.page.url or ''}".rstrip()
        return self.action.value


class RecordedSession(_RecordingModel):
    """Ordered, immutable sequence of recorded events plus recording metadata."""

    schema_version: str = CURRENT_SCHEMA_VERSION
    session_id: str
    start_timestamp: Optional[datetime] = None
    end_timestamp: Optional[datetime] = None
    browser_name: Optional[str] = None
    browser_version: Optional[str] = None
    os_name: Optional[str] = None
    recorded_by: Optional[str] = None
    events: Tuple[RecordedEvent, ...] = Field(default_factory=tuple)

    @model_validator(mode="before")
    @classmethod
    def _assign_sequence_indices(cls, data: Any) -> Any:
        # events without an explicit index take their position in the document
        if isinstance(data, dict) and isinstance(data.get("events"), (list, tuple)):
            events = []
            for position, event in enumerate(data["events"]):
                if isinstance(event, dict) and not (
                    "sequenceIndex" in event or "sequence_index" in event
                ):
                    event = {**event, "sequenceIndex": position}
                events.append(event)
            data = {**data, "events": events}
        return data

    @field_validator("events")
    @classmethod
    def _strictly_increasing(cls, events: Tuple[RecordedEvent, ...]) -> Tuple[RecordedEvent, ...]:
        for previous, current in zip(events, events[1:]):
            if current.sequence_index <= previous.sequence_index:
                raise ValueError(
                    f"event sequence indices must be strictly increasing "
                    f"({previous.sequence_index} -> {current.sequence_index})"
                )
        return events

    def __len__(self) -> int:
        return len(self.events)
