"""Block classification for walkthrough documents.

Each block kind has one pure predicate deciding, from a node's context,
nesting level and ``type`` attribute, whether the node is of that kind.
:func:`classify` turns those predicates into a single :class:`BlockKind` so
the assemblers can dispatch on a closed set of kinds.

=========================  ===========  =======  =======================
Kind                       Context      Level    ``type`` attribute
=========================  ===========  =======  =======================
Task                       section      1
Step                       section      2
Verification               any          any      verification
Verification success       any          any      verificationSuccess
Verification fail          any          any      verificationFail
Task resource              sidebar      1 or 2   taskResource
Walkthrough resource       sidebar      0        walkthroughResource
Text                       everything else
=========================  ===========  =======  =======================
"""

from __future__ import annotations

import logging
from typing import Callable

from walkthrough.models import BlockKind
from walkthrough.nodes import (
    ATTR_TYPE,
    CONTEXT_SECTION,
    CONTEXT_SIDEBAR,
    DocumentNode,
)

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────

LEVEL_PREAMBLE = 0
LEVEL_TASK = 1
LEVEL_STEP = 2

TYPE_VERIFICATION = BlockKind.VERIFICATION.value
TYPE_VERIFICATION_SUCCESS = BlockKind.VERIFICATION_SUCCESS.value
TYPE_VERIFICATION_FAIL = BlockKind.VERIFICATION_FAIL.value
TYPE_TASK_RESOURCE = BlockKind.TASK_RESOURCE.value
TYPE_WALKTHROUGH_RESOURCE = BlockKind.WALKTHROUGH_RESOURCE.value


def _type_of(node: DocumentNode) -> str | None:
    return node.get_attribute(ATTR_TYPE)


# ── Typed predicates ───────────────────────────────────────────────────


def is_task(node: DocumentNode) -> bool:
    return node.context == CONTEXT_SECTION and node.level == LEVEL_TASK


def is_step(node: DocumentNode) -> bool:
    return node.context == CONTEXT_SECTION and node.level == LEVEL_STEP


def is_verification(node: DocumentNode) -> bool:
    return _type_of(node) == TYPE_VERIFICATION


def is_verification_success(node: DocumentNode) -> bool:
    return _type_of(node) == TYPE_VERIFICATION_SUCCESS


def is_verification_fail(node: DocumentNode) -> bool:
    return _type_of(node) == TYPE_VERIFICATION_FAIL


def is_task_resource(node: DocumentNode) -> bool:
    """A side panel declared at task or step level."""
    return (
        node.context == CONTEXT_SIDEBAR
        and node.level in (LEVEL_TASK, LEVEL_STEP)
        and _type_of(node) == TYPE_TASK_RESOURCE
    )


def is_walkthrough_resource(node: DocumentNode) -> bool:
    """A side panel declared in the preamble."""
    return (
        node.context == CONTEXT_SIDEBAR
        and node.level == LEVEL_PREAMBLE
        and _type_of(node) == TYPE_WALKTHROUGH_RESOURCE
    )


# Ordered by precedence: the first matching predicate decides the kind.
_TYPED_PREDICATES: tuple[tuple[BlockKind, Callable[[DocumentNode], bool]], ...] = (
    (BlockKind.TASK_RESOURCE, is_task_resource),
    (BlockKind.WALKTHROUGH_RESOURCE, is_walkthrough_resource),
    (BlockKind.TASK, is_task),
    (BlockKind.STEP, is_step),
    (BlockKind.VERIFICATION, is_verification),
    (BlockKind.VERIFICATION_SUCCESS, is_verification_success),
    (BlockKind.VERIFICATION_FAIL, is_verification_fail),
)


def is_text(node: DocumentNode) -> bool:
    """Catch-all: true iff no typed predicate matches *node*."""
    return not any(predicate(node) for _, predicate in _TYPED_PREDICATES)


# ── Classification ─────────────────────────────────────────────────────


def classify(node: DocumentNode) -> BlockKind:
    """Return the :class:`BlockKind` of *node*.

    Typed kinds are tried in precedence order; :attr:`BlockKind.TEXT` is
    returned only when none of them match.
    """
    for kind, predicate in _TYPED_PREDICATES:
        if predicate(node):
            logger.debug(
                "Classified %s node (level %d) as %s",
                node.context,
                node.level,
                kind.value,
            )
            return kind
    return BlockKind.TEXT
