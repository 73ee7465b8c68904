"""The node interface the assembler reads parsed documents through.

Any parser front end can feed the assembler by exposing its tree through
:class:`DocumentNode`.  The assembler never imports a concrete parser type;
:mod:`walkthrough.parser` provides the Markdown implementation.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

CONTEXT_DOCUMENT = "document"
CONTEXT_PREAMBLE = "preamble"
CONTEXT_SECTION = "section"
CONTEXT_SIDEBAR = "sidebar"

ATTR_TYPE = "type"
ATTR_TIME = "time"
ATTR_SERVICE_NAME = "serviceName"


class DocumentNode(Protocol):
    """Read-only view of one node of a parsed document tree."""

    @property
    def context(self) -> str:
        """Container kind, e.g. ``"section"`` or ``"sidebar"``."""
        ...

    @property
    def level(self) -> int:
        """Section nesting depth; 0 for the document and its preamble."""
        ...

    @property
    def numbered(self) -> bool: ...

    @property
    def number(self) -> Optional[int]:
        """Ordinal among sibling sections; only meaningful when numbered."""
        ...

    @property
    def title(self) -> Optional[str]: ...

    @property
    def parent(self) -> Optional[DocumentNode]: ...

    @property
    def blocks(self) -> Sequence[DocumentNode]: ...

    @property
    def document_title(self) -> Optional[str]:
        """The document title; only meaningful on the root node."""
        ...

    def get_attribute(self, name: str) -> Optional[str]: ...

    def convert(self) -> str:
        """Render this node and its descendants to presentation markup."""
        ...
