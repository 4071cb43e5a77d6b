"""Shared data models for the PhonePilot command pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Bounds(BaseModel):
    """Integer pixel rectangle in screen coordinates."""

    model_config = ConfigDict(frozen=True)

    left: int
    top: int
    right: int
    bottom: int

    @property
    def center_x(self) -> int:
        return (self.left + self.right) // 2

    @property
    def center_y(self) -> int:
        return (self.top + self.bottom) // 2

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


class UIElement(BaseModel):
    """One node of the on-screen element tree, as captured by the host."""

    model_config = ConfigDict(frozen=True)

    id: str
    class_name: str = ""
    text: str | None = None
    content_description: str | None = None
    bounds: Bounds
    clickable: bool = False
    editable: bool = False
    scrollable: bool = False
    focusable: bool = False
    resource_id: str | None = None
    children: tuple[UIElement, ...] = ()


UIElement.model_rebuild()


class ScreenState(BaseModel):
    """Immutable capture of the screen: package, activity and element tree."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    activity_name: str | None = None
    elements: tuple[UIElement, ...] = ()
    timestamp: datetime = Field(default_factory=_utcnow)


class ScrollDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class GlobalAction(str, Enum):
    """System-wide navigation actions offered by the host."""

    BACK = "back"
    HOME = "home"
    RECENTS = "recents"


# Planner actions: a closed set of variants discriminated by ``kind``.


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class Click(_Action):
    kind: Literal["click"] = "click"
    element_id: str | None = None
    x: int | None = None
    y: int | None = None


class LongClick(_Action):
    kind: Literal["long_click"] = "long_click"
    element_id: str | None = None
    x: int | None = None
    y: int | None = None


class TypeText(_Action):
    kind: Literal["type_text"] = "type_text"
    text: str
    element_id: str | None = None


class Scroll(_Action):
    kind: Literal["scroll"] = "scroll"
    direction: ScrollDirection = ScrollDirection.DOWN


class OpenApp(_Action):
    kind: Literal["open_app"] = "open_app"
    package_name: str


class GoBack(_Action):
    kind: Literal["back"] = "back"


class GoHome(_Action):
    kind: Literal["home"] = "home"


class OpenRecents(_Action):
    kind: Literal["recents"] = "recents"


class Wait(_Action):
    kind: Literal["wait"] = "wait"
    milliseconds: int = Field(default=1000, ge=0)


class Speak(_Action):
    kind: Literal["speak"] = "speak"
    message: str


class TaskComplete(_Action):
    kind: Literal["complete"] = "complete"


class Error(_Action):
    kind: Literal["error"] = "error"
    message: str = "Unknown error"


AIAction = Annotated[
    Union[
        Click,
        LongClick,
        TypeText,
        Scroll,
        OpenApp,
        GoBack,
        GoHome,
        OpenRecents,
        Wait,
        Speak,
        TaskComplete,
        Error,
    ],
    Field(discriminator="kind"),
]


class ActionResult(BaseModel):
    """Outcome of dispatching one action."""

    model_config = ConfigDict(frozen=True)

    action: AIAction
    success: bool
    message: str | None = None
    # Class name of the execution error that failed this action, if any
    error_type: str | None = None


class CommandHistory(BaseModel):
    """One completed command, as persisted in history."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_command: str
    actions: list[str] = Field(default_factory=list)
    success: bool
    timestamp: datetime = Field(default_factory=_utcnow)


class EventKind(str, Enum):
    STATUS = "status"
    LOG = "log"
    RESULT = "result"


class PipelineEvent(BaseModel):
    """Progress or log line published by the orchestrator while a command runs."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    message: str
    result: ActionResult | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class CommandOutcome(BaseModel):
    """Final record of one command: what ran, what failed, and why."""

    command: str
    success: bool
    thinking: str | None = None
    results: list[ActionResult] = Field(default_factory=list)
    summaries: list[str] = Field(default_factory=list)
    history_id: str | None = None


def _target(element_id: str | None, x: int | None, y: int | None) -> str:
    if element_id is not None:
        return element_id
    return f"({x}, {y})"


def describe_action(action: AIAction) -> str:
    """Human-readable one-line summary of an action (used in logs and history)."""
    if isinstance(action, Click):
        return f"Click {_target(action.element_id, action.x, action.y)}"
    if isinstance(action, LongClick):
        return f"Long press {_target(action.element_id, action.x, action.y)}"
    if isinstance(action, TypeText):
        return f'Type text: "{action.text}"'
    if isinstance(action, Scroll):
        return f"Scroll {action.direction.value}"
    if isinstance(action, OpenApp):
        return f"Open {action.package_name}"
    if isinstance(action, GoBack):
        return "Back"
    if isinstance(action, GoHome):
        return "Home"
    if isinstance(action, OpenRecents):
        return "Recents"
    if isinstance(action, Wait):
        return f"Wait {action.milliseconds}ms"
    if isinstance(action, Speak):
        return "Speak"
    if isinstance(action, TaskComplete):
        return "Complete"
    if isinstance(action, Error):
        return f"Error: {action.message}"
    raise TypeError(f"Unknown action: {action!r}")
