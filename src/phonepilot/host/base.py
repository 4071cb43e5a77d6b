"""Action host contract: what the pipeline needs from the device side."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from phonepilot.channel import Broadcast
from phonepilot.models import GlobalAction, ScreenState, UIElement
from phonepilot.snapshot.index import ElementIndex

logger = logging.getLogger(__name__)


class ActionHost(ABC):
    """
    Device-side capability provider.

    Subclasses supply the raw primitives (tree capture, gestures, app
    launch, global navigation, speech). The base class owns snapshot
    publication: each new ScreenState is broadcast on ``snapshots`` and
    paired with a freshly built ElementIndex in a single assignment, so
    readers always see a matching (state, index) pair.

    Primitives return True on success; they may also raise, which the
    execution engine treats as a dispatch failure.
    """

    def __init__(self) -> None:
        self.snapshots: Broadcast[ScreenState] = Broadcast()
        self._current: tuple[ScreenState | None, ElementIndex] = (None, ElementIndex.empty())

    # Snapshot publication

    def publish(self, state: ScreenState) -> None:
        """Publish a new snapshot and its element index."""
        self._current = (state, ElementIndex.build(state))
        self.snapshots.publish(state)

    def on_ui_changed(self) -> ScreenState | None:
        """Re-capture the live tree and publish it (called on host UI-change notifications)."""
        state = self.capture_tree()
        if state is None:
            logger.debug("UI change ignored: no active window")
            return None
        self.publish(state)
        return state

    def current_snapshot(self) -> ScreenState | None:
        """Latest published snapshot; not guaranteed to be the freshest screen."""
        return self._current[0]

    def element_index(self) -> ElementIndex:
        return self._current[1]

    # Primitives

    @abstractmethod
    def capture_tree(self) -> ScreenState | None:
        """Walk the live UI tree now; None when no window is active."""

    @abstractmethod
    def screen_size(self) -> tuple[int, int]:
        """Return (width, height) in pixels."""

    @abstractmethod
    def click(self, x: int, y: int) -> bool: ...

    @abstractmethod
    def long_click(self, x: int, y: int) -> bool: ...

    @abstractmethod
    def swipe(self, start_x: int, start_y: int, end_x: int, end_y: int) -> bool: ...

    @abstractmethod
    def set_text(self, element: UIElement, text: str) -> bool:
        """Focus the element and replace its text."""

    @abstractmethod
    def launch_app(self, package_name: str) -> bool: ...

    @abstractmethod
    def global_action(self, action: GlobalAction) -> bool: ...

    @abstractmethod
    def speak(self, message: str) -> None:
        """Synthesize speech for the user."""
