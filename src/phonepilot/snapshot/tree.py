"""Build UIElement trees from raw host nodes, with a hard depth cap."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from phonepilot.models import Bounds, UIElement

logger = logging.getLogger(__name__)

# Host-reported structure can be cyclic or absurdly deep; never walk past this.
MAX_TREE_DEPTH = 15


def _parse_bounds(raw: Any) -> Bounds:
    if isinstance(raw, Mapping):
        return Bounds(
            left=int(raw.get("left", 0)),
            top=int(raw.get("top", 0)),
            right=int(raw.get("right", 0)),
            bottom=int(raw.get("bottom", 0)),
        )
    if isinstance(raw, Sequence) and not isinstance(raw, str) and len(raw) == 4:
        left, top, right, bottom = (int(v) for v in raw)
        return Bounds(left=left, top=top, right=right, bottom=bottom)
    return Bounds(left=0, top=0, right=0, bottom=0)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _parse_node(raw: Mapping[str, Any], path: str, depth: int) -> list[UIElement]:
    if depth > MAX_TREE_DEPTH:
        return []

    bounds = _parse_bounds(raw.get("bounds"))
    raw_children = raw.get("children") or []

    children: list[UIElement] = []
    for i, child in enumerate(raw_children):
        if isinstance(child, Mapping):
            children.extend(_parse_node(child, f"{path}_{i}", depth + 1))

    # Zero-size nodes are not shown, but their visible descendants are kept
    if bounds.width <= 0 or bounds.height <= 0:
        return children

    resource_id = _optional_str(raw.get("resource_id"))
    return [
        UIElement(
            id=resource_id or f"elem_{path}",
            class_name=str(raw.get("class_name") or ""),
            text=_optional_str(raw.get("text")),
            content_description=_optional_str(raw.get("content_description")),
            bounds=bounds,
            clickable=bool(raw.get("clickable", False)),
            editable=bool(raw.get("editable", False)),
            scrollable=bool(raw.get("scrollable", False)),
            focusable=bool(raw.get("focusable", False)),
            resource_id=resource_id,
            children=tuple(children),
        )
    ]


def build_elements(raw_root: Mapping[str, Any]) -> list[UIElement]:
    """
    Convert a raw node mapping (as reported by the host) into UIElements.

    Nodes below MAX_TREE_DEPTH are dropped. Element ids are the resource id
    when the node has one, otherwise a path id like ``elem_0_2_1`` that is
    stable for the same tree shape.
    """
    return _parse_node(raw_root, "0", 0)


def iter_elements(elements: Iterable[UIElement]) -> Iterator[UIElement]:
    """Yield every element depth-first (pre-order), never deeper than MAX_TREE_DEPTH."""
    stack: list[tuple[UIElement, int]] = [(e, 0) for e in reversed(list(elements))]
    while stack:
        element, depth = stack.pop()
        yield element
        if depth >= MAX_TREE_DEPTH:
            if element.children:
                logger.debug("Tree walk stopped at depth cap", extra={"element_id": element.id})
            continue
        for child in reversed(element.children):
            stack.append((child, depth + 1))
