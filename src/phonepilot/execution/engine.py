"""Execution engine: runs a decoded action list against the host, fail-fast."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from enum import Enum

from phonepilot.channel import Broadcast
from phonepilot.errors import (
    ElementNotFound,
    EngineStateError,
    ExecutionError,
    HostDispatchFailed,
    NoEditableFieldFound,
    NoTargetSpecified,
)
from phonepilot.host.base import ActionHost
from phonepilot.models import (
    ActionResult,
    AIAction,
    Click,
    Error,
    EventKind,
    GlobalAction,
    GoBack,
    GoHome,
    LongClick,
    OpenApp,
    OpenRecents,
    PipelineEvent,
    Scroll,
    ScrollDirection,
    Speak,
    TaskComplete,
    TypeText,
    UIElement,
    Wait,
    describe_action,
)
from phonepilot.snapshot.tree import iter_elements

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_SECONDS = 0.5

# Actions after which the screen is not expected to change
_NO_SETTLE = (Speak, TaskComplete, Error, Wait)

# Swipe start/end as fractions of the screen, per scroll direction
_SWIPES: dict[ScrollDirection, tuple[float, float, float, float]] = {
    ScrollDirection.UP: (0.5, 0.7, 0.5, 0.3),
    ScrollDirection.DOWN: (0.5, 0.3, 0.5, 0.7),
    ScrollDirection.LEFT: (0.8, 0.5, 0.2, 0.5),
    ScrollDirection.RIGHT: (0.2, 0.5, 0.8, 0.5),
}

_GLOBAL_ACTIONS = {
    GoBack: (GlobalAction.BACK, "Failed to go back"),
    GoHome: (GlobalAction.HOME, "Failed to go home"),
    OpenRecents: (GlobalAction.RECENTS, "Failed to open recents"),
}


class EngineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ExecutionEngine:
    """
    Executes one command's actions in order and stops at the first failure.

    One instance per command: ``run`` may be called once. Every dispatched
    action yields exactly one ActionResult; actions after a failure are
    never attempted. After each action that may have changed the screen
    the engine pauses for the settle interval so the host's asynchronous
    UI-change handling can catch up. That pause is the only
    synchronization with the host.

    ``cancel_token`` is checked before each action and interrupts pauses.
    ``results``, when given, receives each ActionResult as it is produced;
    ``events`` receives the human-readable execution log.
    """

    def __init__(
        self,
        host: ActionHost,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        speech_enabled: bool = True,
        cancel_token: threading.Event | None = None,
        results: Broadcast[ActionResult] | None = None,
        events: Broadcast[PipelineEvent] | None = None,
    ) -> None:
        self._host = host
        self._settle_seconds = settle_seconds
        self._speech_enabled = speech_enabled
        self._cancel = cancel_token if cancel_token is not None else threading.Event()
        self._results = results
        self._events = events
        self.state = EngineState.IDLE

    def _log(self, message: str, result: ActionResult | None = None) -> None:
        if self._events is not None:
            kind = EventKind.RESULT if result is not None else EventKind.LOG
            self._events.publish(PipelineEvent(kind=kind, message=message, result=result))

    def run(self, actions: Sequence[AIAction]) -> tuple[bool, list[ActionResult]]:
        """Execute actions sequentially. Returns (overall success, ordered results)."""
        if self.state is not EngineState.IDLE:
            raise EngineStateError(f"ExecutionEngine already used (state={self.state.value})")
        self.state = EngineState.RUNNING

        outcomes: list[ActionResult] = []
        success = True
        for position, action in enumerate(actions):
            if self._cancel.is_set():
                logger.info("Execution cancelled", extra={"position": position})
                outcomes.append(
                    ActionResult(action=action, success=False, message="Cancelled", error_type="Cancelled")
                )
                success = False
                break

            summary = describe_action(action)
            self._log(f"Executing: {summary}")
            result = self.dispatch(action)
            outcomes.append(result)
            if self._results is not None:
                self._results.publish(result)
            self._log(f"{summary}: {'✓' if result.success else '✗'}", result=result)

            if not result.success:
                self._log(f"Error: {result.message}")
                logger.warning(
                    "Action failed; stopping sequence",
                    extra={
                        "position": position,
                        "action": summary,
                        "error": result.message,
                        "skipped": len(actions) - position - 1,
                    },
                )
                success = False
                break

            if isinstance(action, Speak):
                self._log(f"Saying: {action.message}")
            elif isinstance(action, TaskComplete):
                self._log("✓ Task completed")
            elif not isinstance(action, _NO_SETTLE):
                self._pause(self._settle_seconds)

        self.state = EngineState.SUCCEEDED if success else EngineState.FAILED
        logger.info(
            "Execution finished",
            extra={"success": success, "executed": len(outcomes), "planned": len(actions)},
        )
        return success, outcomes

    def dispatch(self, action: AIAction) -> ActionResult:
        """Perform one action on the host and describe what happened."""
        try:
            message = self._perform(action)
        except ExecutionError as e:
            return ActionResult(action=action, success=False, message=str(e), error_type=type(e).__name__)
        except Exception as e:  # noqa: BLE001
            logger.warning("Host primitive raised: %s", e, exc_info=True)
            return ActionResult(
                action=action,
                success=False,
                message=str(e) or type(e).__name__,
                error_type=HostDispatchFailed.__name__,
            )
        # The planner gave up: a failure regardless of what the host did
        if isinstance(action, Error):
            return ActionResult(action=action, success=False, message=action.message)
        return ActionResult(action=action, success=True, message=message)

    def _perform(self, action: AIAction) -> str | None:
        host = self._host
        if isinstance(action, Click):
            x, y = self._resolve_point(action.element_id, action.x, action.y)
            _check(host.click(x, y), "Click gesture was not dispatched")
            return None
        if isinstance(action, LongClick):
            x, y = self._resolve_point(action.element_id, action.x, action.y)
            _check(host.long_click(x, y), "Long-press gesture was not dispatched")
            return None
        if isinstance(action, TypeText):
            if action.element_id is not None:
                element = self._resolve_element(action.element_id)
            else:
                element = self._find_editable()
            _check(host.set_text(element, action.text), "Failed to set text")
            return None
        if isinstance(action, Scroll):
            width, height = host.screen_size()
            sx, sy, ex, ey = _SWIPES[action.direction]
            _check(
                host.swipe(int(width * sx), int(height * sy), int(width * ex), int(height * ey)),
                "Swipe gesture was not dispatched",
            )
            return None
        if isinstance(action, OpenApp):
            _check(host.launch_app(action.package_name), f"App not found: {action.package_name}")
            return None
        if type(action) in _GLOBAL_ACTIONS:
            kind, failure = _GLOBAL_ACTIONS[type(action)]
            _check(host.global_action(kind), failure)
            return None
        if isinstance(action, Wait):
            self._pause(action.milliseconds / 1000)
            return None
        if isinstance(action, Speak):
            if self._speech_enabled:
                try:
                    host.speak(action.message)
                except Exception as e:  # noqa: BLE001
                    logger.warning("Speech synthesis failed: %s", e, exc_info=True)
            return action.message
        if isinstance(action, TaskComplete):
            return "Task completed"
        if isinstance(action, Error):
            return action.message
        raise TypeError(f"Unsupported action: {action!r}")

    def _resolve_element(self, element_id: str) -> UIElement:
        """Snapshot index first, then a fresh capture of the live tree."""
        element = self._host.element_index().get(element_id)
        if element is not None:
            return element
        fresh = self._host.capture_tree()
        if fresh is not None:
            for candidate in iter_elements(fresh.elements):
                if candidate.id == element_id or candidate.resource_id == element_id:
                    return candidate
        raise ElementNotFound(element_id)

    def _resolve_point(self, element_id: str | None, x: int | None, y: int | None) -> tuple[int, int]:
        if element_id is not None:
            bounds = self._resolve_element(element_id).bounds
            return bounds.center_x, bounds.center_y
        if x is not None and y is not None:
            return x, y
        raise NoTargetSpecified()

    def _find_editable(self) -> UIElement:
        state = self._host.capture_tree() or self._host.current_snapshot()
        if state is not None:
            for element in iter_elements(state.elements):
                if element.editable and element.focusable:
                    return element
        raise NoEditableFieldFound()

    def _pause(self, seconds: float) -> None:
        if seconds > 0:
            self._cancel.wait(seconds)


def _check(ok: bool, failure: str) -> None:
    if not ok:
        raise HostDispatchFailed(failure)
