"""Hierarchical section numbering.

A section's number is a dotted path of the ordinals of its numbered ancestors
and itself, e.g. ``(2, 3)`` for the third step of the second task, rendered
as ``"2.3. Title"``.
"""

from __future__ import annotations

from typing import Optional

from walkthrough.nodes import CONTEXT_DOCUMENT, DocumentNode

SectionPath = tuple[int, ...]


def section_path(
    node: DocumentNode, parent_path: Optional[SectionPath] = None
) -> SectionPath:
    """Return the number path of *node*.

    When *parent_path* is given it is taken as the already-resolved path of
    the node's parent and the parent chain is not walked again.  Unnumbered
    sections contribute no component.
    """
    own: SectionPath = (node.number,) if node.numbered and node.number is not None else ()
    if parent_path is not None:
        return parent_path + own

    if node.context == CONTEXT_DOCUMENT:
        return own
    parent = node.parent
    if parent is None or parent.context == CONTEXT_DOCUMENT:
        return own
    return section_path(parent) + own


def format_path(path: SectionPath) -> str:
    return ".".join(str(n) for n in path)


def numbered_title(node: DocumentNode, path: SectionPath) -> str:
    """Return the display title of *node*, prefixed with *path* if numbered."""
    title = node.title or ""
    if not node.numbered or not path:
        return title
    return f"{format_path(path)}. {title}"
