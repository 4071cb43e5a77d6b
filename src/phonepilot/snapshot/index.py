"""Per-snapshot element lookup table."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from phonepilot.models import ScreenState, UIElement
from phonepilot.snapshot.tree import iter_elements


class ElementIndex:
    """
    Read-only ``id -> UIElement`` table for one ScreenState.

    Built once when a snapshot is published and swapped wholesale on the
    next one; it is never mutated while readers hold it. When two elements
    share an id the later one in tree order wins.
    """

    def __init__(self, elements: Mapping[str, UIElement], state: ScreenState | None = None) -> None:
        self._elements = MappingProxyType(dict(elements))
        self.state = state

    @classmethod
    def build(cls, state: ScreenState) -> ElementIndex:
        return cls({e.id: e for e in iter_elements(state.elements)}, state=state)

    @classmethod
    def empty(cls) -> ElementIndex:
        return cls({})

    def get(self, element_id: str) -> UIElement | None:
        return self._elements.get(element_id)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    @property
    def elements(self) -> Mapping[str, UIElement]:
        return self._elements
