"""Markdown front end producing a :class:`~walkthrough.nodes.DocumentNode` tree.

Parses walkthrough Markdown with markdown-it-py and regroups the flat block
stream into the section tree the assembler expects.  Two mdit-py-plugins
extensions carry the walkthrough-specific markup:

* ``attrs_block_plugin`` -- a ``{key=value ...}`` line attaches attributes to
  the block that follows it (``{type=verification}``, ``{time=10}``).
* ``container_plugin`` -- ``::: sidebar Title`` ... ``:::`` fences a side
  panel.

Example::

    # Getting started

    {type=walkthroughResource serviceName=console}
    ::: sidebar Console
    Open the [console](https://console.example.com).
    :::

    {time=10}
    ## Create a project

    ### Open a terminal

    {type=verification}
    Does `oc whoami` print your user name?

Heading depth maps onto section level: ``#`` is the document title, ``##``
a level-1 section (task), ``###`` a level-2 section (step), and so on.
Blocks before the first section are grouped into a level-0 preamble node.

``{name}`` references to parser attributes are replaced before parsing,
except inside fenced and indented code blocks.
"""

from __future__ import annotations

import logging
import re
from copy import deepcopy
from typing import Collection, Mapping, Optional, Sequence

from markdown_it import MarkdownIt
from markdown_it.token import Token
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.attrs import attrs_block_plugin
from mdit_py_plugins.container import container_plugin

from walkthrough.config import WalkthroughConfig
from walkthrough.nodes import (
    CONTEXT_DOCUMENT,
    CONTEXT_PREAMBLE,
    CONTEXT_SECTION,
    CONTEXT_SIDEBAR,
)

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────

# `{name}` references to parser attributes, substituted before parsing.
# Attribute blocks such as `{type=verification}` never match.
_ATTR_REF_RE = re.compile(r"\{([A-Za-z0-9_][\w-]*)\}")

_DEFAULT_SECTNUMLEVELS = 3

# markdown-it node type -> node context.
_CONTEXTS: dict[str, str] = {
    "paragraph": "paragraph",
    "blockquote": "quote",
    "bullet_list": "ulist",
    "ordered_list": "olist",
    "list_item": "list_item",
    "fence": "listing",
    "code_block": "listing",
    "table": "table",
    "hr": "thematic_break",
    "html_block": "pass",
    "heading": "floating_title",
}

# Node types whose block children become child nodes.
_NESTED_TYPES = frozenset({"blockquote", "bullet_list", "ordered_list", "list_item"})

# Node types whose source lines are never attribute-substituted.
_LITERAL_TYPES = frozenset({"fence", "code_block"})


# ── Helpers ────────────────────────────────────────────────────────────


def substitute_attributes(
    source: str,
    attributes: Mapping[str, str],
    literal_lines: Collection[int] = (),
) -> str:
    """Replace ``{name}`` with the value of each attribute defined in
    *attributes*; references to undefined attributes are left alone.

    Lines whose zero-based index is in *literal_lines* are copied verbatim,
    so code listings keep their braces.
    """
    if not attributes:
        return source

    def _replace(m: re.Match[str]) -> str:
        name = m.group(1)
        return attributes[name] if name in attributes else m.group(0)

    if not literal_lines:
        return _ATTR_REF_RE.sub(_replace, source)
    return "\n".join(
        line if index in literal_lines else _ATTR_REF_RE.sub(_replace, line)
        for index, line in enumerate(source.split("\n"))
    )


def _literal_lines(tokens: Sequence[Token]) -> set[int]:
    """Source line indexes covered by fenced and indented code blocks."""
    lines: set[int] = set()
    for token in tokens:
        if token.type in _LITERAL_TYPES and token.map:
            lines.update(range(token.map[0], token.map[1]))
    return lines


def _heading_level(node: SyntaxTreeNode) -> int:
    return int(node.tag[1:])


def _inline_text(node: SyntaxTreeNode) -> str:
    if node.children and node.children[0].type == "inline":
        return (node.children[0].content or "").strip()
    return ""


def _string_attrs(node: SyntaxTreeNode) -> dict[str, str]:
    return {str(k): str(v) for k, v in node.attrs.items()}


# ── Node implementation ────────────────────────────────────────────────


class MarkdownNode:
    """One node of the document tree built by :class:`MarkdownDocumentParser`.

    Leaf and container blocks render from their own markdown-it tokens.
    Sections render as ``<section class="sectN">`` wrapping their heading and
    children; the document and preamble render their children.
    """

    def __init__(
        self,
        context: str,
        level: int,
        md: MarkdownIt,
        *,
        tokens: Sequence[Token] = (),
        attributes: Optional[Mapping[str, str]] = None,
        title: Optional[str] = None,
        number: Optional[int] = None,
        numbered: bool = False,
    ) -> None:
        self._context = context
        self._level = level
        self._md = md
        self._tokens = list(tokens)
        self._attributes = dict(attributes or {})
        self._title = title
        self._number = number
        self._numbered = numbered
        self._parent: Optional[MarkdownNode] = None
        self._blocks: list[MarkdownNode] = []

    def __repr__(self) -> str:
        return (
            f"MarkdownNode(context={self._context!r}, level={self._level}, "
            f"title={self._title!r}, blocks={len(self._blocks)})"
        )

    # ── Tree building ──────────────────────────────────────────────

    def append(self, child: MarkdownNode) -> None:
        child._parent = self
        self._blocks.append(child)

    # ── DocumentNode interface ─────────────────────────────────────

    @property
    def context(self) -> str:
        return self._context

    @property
    def level(self) -> int:
        return self._level

    @property
    def numbered(self) -> bool:
        return self._numbered

    @property
    def number(self) -> Optional[int]:
        return self._number

    @property
    def title(self) -> Optional[str]:
        return self._title

    @property
    def parent(self) -> Optional[MarkdownNode]:
        return self._parent

    @property
    def blocks(self) -> tuple[MarkdownNode, ...]:
        return tuple(self._blocks)

    @property
    def document_title(self) -> Optional[str]:
        return self._title if self._context == CONTEXT_DOCUMENT else None

    def get_attribute(self, name: str) -> Optional[str]:
        return self._attributes.get(name)

    def convert(self) -> str:
        if self._context == CONTEXT_SECTION:
            body = "".join(child.convert() for child in self._blocks)
            return (
                f'<section class="sect{self._level}">\n'
                f"{self._render(self._tokens)}{body}</section>\n"
            )
        if self._context == CONTEXT_PREAMBLE:
            body = "".join(child.convert() for child in self._blocks)
            return f'<div class="preamble">\n{body}</div>\n'
        if self._context == CONTEXT_DOCUMENT:
            return "".join(child.convert() for child in self._blocks)
        return self._render(self._tokens)

    def _render(self, tokens: Sequence[Token]) -> str:
        # Some render rules modify tokens in place; render a copy so that
        # converting a node twice yields the same markup.
        return self._md.renderer.render(deepcopy(list(tokens)), self._md.options, {})


# ── Main parser ────────────────────────────────────────────────────────


class MarkdownDocumentParser:
    """Parse walkthrough Markdown into a :class:`MarkdownNode` tree.

    Usage::

        parser = MarkdownDocumentParser()
        document = parser.parse(source, {"sectnums": ""})
    """

    def __init__(self, config: Optional[WalkthroughConfig] = None) -> None:
        self._config = config or WalkthroughConfig()
        self._sidebar_type = f"container_{self._config.sidebar_container}"
        self._md = self._create_markdown()

    def _create_markdown(self) -> MarkdownIt:
        md = MarkdownIt(self._config.markdown_preset)
        if self._config.enabled_rules:
            md.enable(self._config.enabled_rules, ignoreInvalid=True)
        md.use(attrs_block_plugin)
        md.use(container_plugin, name=self._config.sidebar_container)
        return md

    # ── Public API ─────────────────────────────────────────────────

    def parse(
        self, source: str, attributes: Optional[Mapping[str, object]] = None
    ) -> MarkdownNode:
        """Parse *source* and return the document root node.

        *attributes* are layered on top of the configured default attributes;
        they drive section numbering (``sectnums``, ``sectnumlevels``), the
        fallback title (``doctitle``) and ``{name}`` substitution.
        """
        attrs = self._config.attributes(attributes)
        text = substitute_attributes(
            source, attrs, _literal_lines(self._md.parse(source))
        )
        root = SyntaxTreeNode(self._md.parse(text))

        children = list(root.children)
        title = attrs.get("doctitle")
        if children and children[0].type == "heading" and _heading_level(children[0]) == 1:
            title = _inline_text(children.pop(0))

        document = MarkdownNode(
            CONTEXT_DOCUMENT, 0, self._md, attributes=attrs, title=title
        )
        if children:
            self._build_sections(document, children, attrs)

        logger.info(
            "Parsed document '%s': %d top-level block(s)",
            title or "",
            len(document.blocks),
        )
        return document

    # ── Section tree ───────────────────────────────────────────────

    def _build_sections(
        self,
        document: MarkdownNode,
        children: list[SyntaxTreeNode],
        attrs: Mapping[str, str],
    ) -> None:
        numbered = "sectnums" in attrs
        try:
            max_numbered_level = int(attrs.get("sectnumlevels", _DEFAULT_SECTNUMLEVELS))
        except ValueError:
            logger.warning(
                "Ignoring malformed sectnumlevels %r", attrs.get("sectnumlevels")
            )
            max_numbered_level = _DEFAULT_SECTNUMLEVELS

        preamble = MarkdownNode(CONTEXT_PREAMBLE, 0, self._md)
        document.append(preamble)
        open_sections: list[MarkdownNode] = []

        for child in children:
            if child.type == "heading" and _heading_level(child) > 1:
                level = _heading_level(child) - 1
                while open_sections and open_sections[-1].level >= level:
                    open_sections.pop()
                parent = open_sections[-1] if open_sections else document
                number = 1 + sum(
                    1 for b in parent.blocks if b.context == CONTEXT_SECTION
                )
                section = MarkdownNode(
                    CONTEXT_SECTION,
                    level,
                    self._md,
                    tokens=child.to_tokens(),
                    attributes=_string_attrs(child),
                    title=_inline_text(child),
                    number=number,
                    numbered=numbered and level <= max_numbered_level,
                )
                parent.append(section)
                open_sections.append(section)
                logger.debug("Section level %d: '%s'", level, section.title)
                continue

            container = open_sections[-1] if open_sections else preamble
            container.append(self._build_block(child, container.level))

    def _build_block(self, node: SyntaxTreeNode, level: int) -> MarkdownNode:
        attributes = _string_attrs(node)

        if node.type == self._sidebar_type:
            title = attributes.get("title")
            if title is None:
                info = (node.info or "").strip()
                name = self._config.sidebar_container
                title = info[len(name):].strip() if info.startswith(name) else info
            block = MarkdownNode(
                CONTEXT_SIDEBAR,
                level,
                self._md,
                tokens=node.to_tokens(),
                attributes=attributes,
                title=title or None,
            )
            for child in node.children:
                block.append(self._build_block(child, level))
            return block

        block = MarkdownNode(
            _CONTEXTS.get(node.type, node.type),
            level,
            self._md,
            tokens=node.to_tokens(),
            attributes=attributes,
            title=attributes.get("title") or (
                _inline_text(node) if node.type == "heading" else None
            ),
        )
        if node.type in _NESTED_TYPES:
            for child in node.children:
                block.append(self._build_block(child, level))
        return block
