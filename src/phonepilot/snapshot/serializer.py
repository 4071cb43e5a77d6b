"""Render a ScreenState as the compact text block the planner reads."""

from phonepilot.models import ScreenState, UIElement
from phonepilot.snapshot.tree import MAX_TREE_DEPTH

TEXT_PREVIEW_CHARS = 50


def _flags(element: UIElement) -> str:
    flags = []
    if element.clickable:
        flags.append("clickable")
    if element.editable:
        flags.append("editable")
    if element.scrollable:
        flags.append("scrollable")
    return ",".join(flags)


def _format_element(lines: list[str], element: UIElement, index: int, depth: int) -> None:
    # Child indices are parent*100 + position; wide nodes (>=100 children) collide.
    if depth >= MAX_TREE_DEPTH:
        return
    parts = [f"{'  ' * depth}[{index}] {element.class_name.rsplit('.', 1)[-1]}"]
    if element.resource_id is not None:
        parts.append(f'id="{element.resource_id}"')
    if element.text and element.text.strip():
        parts.append(f'text="{element.text[:TEXT_PREVIEW_CHARS]}"')
    if element.content_description and element.content_description.strip():
        parts.append(f'desc="{element.content_description[:TEXT_PREVIEW_CHARS]}"')
    flags = _flags(element)
    if flags:
        parts.append(f"[{flags}]")
    b = element.bounds
    parts.append(f"bounds={b.left},{b.top}-{b.right},{b.bottom}")
    lines.append(" ".join(parts))

    for child_index, child in enumerate(element.children):
        _format_element(lines, child, index * 100 + child_index, depth + 1)


def format_screen_state(state: ScreenState) -> str:
    """
    Serialize a snapshot: package/activity header, then one line per element.

    Each line carries the positional index, class name tail, optional
    resource id, text and description previews, capability flags and
    bounds, indented two spaces per tree level.
    """
    lines = [f"Package: {state.package_name}"]
    if state.activity_name is not None:
        lines.append(f"Activity: {state.activity_name}")
    lines.append("")
    lines.append("UI Elements:")
    for index, element in enumerate(state.elements):
        _format_element(lines, element, index, 0)
    return "\n".join(lines) + "\n"
