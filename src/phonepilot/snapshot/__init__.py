"""
Screen snapshots.

Builds element trees from host-reported nodes, indexes them per snapshot,
and renders them as compact text for the planner.
"""

from phonepilot.snapshot.index import ElementIndex
from phonepilot.snapshot.serializer import format_screen_state
from phonepilot.snapshot.tree import MAX_TREE_DEPTH, build_elements, iter_elements

__all__ = [
    "ElementIndex",
    "MAX_TREE_DEPTH",
    "build_elements",
    "format_screen_state",
    "iter_elements",
]
