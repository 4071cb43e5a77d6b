"""In-memory action host for development, the CLI and tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from phonepilot.host.base import ActionHost
from phonepilot.models import GlobalAction, ScreenState, UIElement
from phonepilot.snapshot.tree import build_elements

logger = logging.getLogger(__name__)

DEFAULT_SCREEN_SIZE = (1080, 2400)


class SimulatedHost(ActionHost):
    """
    Host that never touches a device.

    The screen is a raw node tree (the same shape a real host reports).
    Every primitive call is appended to ``performed`` as a tuple, e.g.
    ``("click", 540, 1200)``, and succeeds unless listed in ``failing``.
    ``launch_app`` succeeds only for ``installed_packages`` when that set
    is given.
    """

    def __init__(
        self,
        raw_root: Mapping[str, Any] | None = None,
        package_name: str = "com.android.launcher",
        activity_name: str | None = None,
        screen_size: tuple[int, int] = DEFAULT_SCREEN_SIZE,
        installed_packages: set[str] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        super().__init__()
        self._raw_root = raw_root
        self.package_name = package_name
        self.activity_name = activity_name
        self._screen_size = screen_size
        self.installed_packages = installed_packages
        self.failing = failing or set()
        self.performed: list[tuple[Any, ...]] = []
        self.spoken: list[str] = []
        self.on_ui_changed()

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> SimulatedHost:
        """
        Load a screen from JSON: either a bare root node, or
        ``{"package_name": ..., "activity_name": ..., "root": {...}}``.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(data, dict) and "root" in data:
            kwargs.setdefault("package_name", data.get("package_name") or "unknown")
            kwargs.setdefault("activity_name", data.get("activity_name"))
            return cls(raw_root=data["root"], **kwargs)
        return cls(raw_root=data, **kwargs)

    def set_screen(
        self,
        raw_root: Mapping[str, Any] | None,
        package_name: str | None = None,
        activity_name: str | None = None,
    ) -> None:
        """Replace the simulated screen and publish it, as a UI change would."""
        self._raw_root = raw_root
        if package_name is not None:
            self.package_name = package_name
        self.activity_name = activity_name
        self.on_ui_changed()

    def _record(self, name: str, *args: Any) -> bool:
        self.performed.append((name, *args))
        ok = name not in self.failing
        logger.info("Simulated %s%s -> %s", name, args, "ok" if ok else "failed")
        return ok

    def capture_tree(self) -> ScreenState | None:
        if self._raw_root is None:
            return None
        return ScreenState(
            package_name=self.package_name,
            activity_name=self.activity_name,
            elements=build_elements(self._raw_root),
        )

    def screen_size(self) -> tuple[int, int]:
        return self._screen_size

    def click(self, x: int, y: int) -> bool:
        return self._record("click", x, y)

    def long_click(self, x: int, y: int) -> bool:
        return self._record("long_click", x, y)

    def swipe(self, start_x: int, start_y: int, end_x: int, end_y: int) -> bool:
        return self._record("swipe", start_x, start_y, end_x, end_y)

    def set_text(self, element: UIElement, text: str) -> bool:
        return self._record("set_text", element.id, text)

    def launch_app(self, package_name: str) -> bool:
        if self.installed_packages is not None and package_name not in self.installed_packages:
            self.performed.append(("launch_app", package_name))
            logger.info("Simulated launch_app: %s not installed", package_name)
            return False
        return self._record("launch_app", package_name)

    def global_action(self, action: GlobalAction) -> bool:
        return self._record("global_action", action.value)

    def speak(self, message: str) -> None:
        self.spoken.append(message)
        logger.info("Simulated speech: %s", message)
