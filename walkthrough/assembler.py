"""Assembly of a parsed document tree into a :class:`Walkthrough`.

The assemblers work top-down over the tree and return frozen value objects
bottom-up:

1. :class:`WalkthroughAssembler` reads the title, splits the preamble into
   text and walkthrough resources, and assembles every task.
2. :class:`TaskAssembler` resolves the task's number and time, collects every
   task resource beneath it, and assembles its steps and direct content.
3. :class:`StepAssembler` assembles the text and verification blocks of a
   single step.

:func:`parse_walkthrough` chains the Markdown front end and the assemblers.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping, Optional, Sequence

from walkthrough.classifier import classify, is_task
from walkthrough.config import WalkthroughConfig
from walkthrough.linker import find_next_fail, find_next_success
from walkthrough.models import (
    BlockKind,
    Step,
    StepContent,
    StructuralError,
    Task,
    TaskContent,
    TextBlock,
    VerificationBlock,
    Walkthrough,
)
from walkthrough.nodes import ATTR_TIME, DocumentNode
from walkthrough.numbering import SectionPath, numbered_title, section_path
from walkthrough.parser import MarkdownDocumentParser
from walkthrough.resources import (
    collect_task_resources,
    partition_walkthrough_resources,
)

logger = logging.getLogger(__name__)

# Leading integer of a time attribute: "15", " 15 ", "15min".
_TIME_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_time(value: Optional[str]) -> int:
    """Return the minutes declared by a ``time`` attribute.

    Absent, unparseable and negative values all yield ``0``.
    """
    if value is None:
        return 0
    m = _TIME_RE.match(str(value))
    if m is None:
        logger.warning("Ignoring malformed time attribute %r", value)
        return 0
    minutes = int(m.group(1))
    if minutes < 0:
        logger.warning("Ignoring negative time attribute %r", value)
        return 0
    return minutes


def _verification_block(
    node: DocumentNode, remaining: Sequence[DocumentNode]
) -> VerificationBlock:
    block = VerificationBlock(
        html=node.convert(),
        success_block=find_next_success(remaining),
        fail_block=find_next_fail(remaining),
    )
    logger.debug(
        "Linked verification block (success=%s, fail=%s)",
        block.has_success_block,
        block.has_fail_block,
    )
    return block


# ── Step ───────────────────────────────────────────────────────────────


class StepAssembler:
    """Builds a :class:`Step` from a level-2 section node.

    Usage::

        step = StepAssembler().build(step_node)
    """

    def build(
        self, node: DocumentNode, parent_path: Optional[SectionPath] = None
    ) -> Step:
        title = numbered_title(node, section_path(node, parent_path))
        children = list(node.blocks)
        blocks: list[StepContent] = []

        for i, child in enumerate(children):
            match classify(child):
                case BlockKind.VERIFICATION:
                    blocks.append(_verification_block(child, children[i + 1:]))
                case BlockKind.TEXT:
                    blocks.append(TextBlock(child.convert()))
                case _:
                    # Resources belong to the enclosing task; success and
                    # fail blocks only exist through their verification.
                    pass

        logger.debug("Assembled step '%s' with %d block(s)", title, len(blocks))
        return Step(title=title, blocks=tuple(blocks))


# ── Task ───────────────────────────────────────────────────────────────


class TaskAssembler:
    """Builds a :class:`Task` from a level-1 section node.

    Usage::

        task = TaskAssembler().build(task_node)
    """

    def __init__(self, step_assembler: Optional[StepAssembler] = None) -> None:
        self._steps = step_assembler or StepAssembler()

    def build(self, node: DocumentNode) -> Task:
        path = section_path(node)
        title = numbered_title(node, path)
        time = parse_time(node.get_attribute(ATTR_TIME))
        resources = collect_task_resources(node)

        children = list(node.blocks)
        blocks: list[TaskContent] = []
        for i, child in enumerate(children):
            match classify(child):
                case BlockKind.STEP:
                    blocks.append(self._steps.build(child, path))
                case BlockKind.VERIFICATION:
                    blocks.append(_verification_block(child, children[i + 1:]))
                case BlockKind.TEXT:
                    blocks.append(TextBlock(child.convert()))
                case _:
                    pass

        logger.info(
            "Assembled task '%s': %d block(s), %d resource(s), %d min",
            title,
            len(blocks),
            len(resources),
            time,
        )
        return Task(
            title=title,
            time=time,
            html=node.convert(),
            blocks=tuple(blocks),
            resources=resources,
        )


# ── Walkthrough ────────────────────────────────────────────────────────


class WalkthroughAssembler:
    """Builds a :class:`Walkthrough` from a document root node.

    Usage::

        walkthrough = WalkthroughAssembler().build(document)
    """

    def __init__(self, task_assembler: Optional[TaskAssembler] = None) -> None:
        self._tasks = task_assembler or TaskAssembler()

    def build(self, document: DocumentNode) -> Walkthrough:
        """Assemble *document* into a :class:`Walkthrough`.

        Raises
        ------
        StructuralError
            If the document has no blocks at all.
        """
        title = document.document_title or ""
        if not document.blocks:
            raise StructuralError(f"Invalid walkthrough {title!r}: document has no blocks")

        preamble_node = document.blocks[0]
        kept, resources = partition_walkthrough_resources(preamble_node)
        preamble = "".join(block.convert() for block in kept)

        tasks = tuple(
            self._tasks.build(block)
            for block in document.blocks
            if is_task(block)
        )
        time = sum(task.time for task in tasks)

        logger.info(
            "Assembled walkthrough '%s': %d task(s), %d resource(s), %d min",
            title,
            len(tasks),
            len(resources),
            time,
        )
        return Walkthrough(
            title=title,
            preamble=preamble,
            time=time,
            tasks=tasks,
            resources=tuple(resources),
        )


# ── Entry point ────────────────────────────────────────────────────────


def parse_walkthrough(
    source: str,
    attributes: Optional[Mapping[str, object]] = None,
    config: Optional[WalkthroughConfig] = None,
) -> Walkthrough:
    """Parse Markdown *source* and assemble it into a :class:`Walkthrough`.

    Parameters
    ----------
    source : str
        Raw walkthrough Markdown.
    attributes : mapping, optional
        Named parser attributes (e.g. ``{"sectnums": ""}``).  They are
        layered on top of the configured default attributes.
    config : WalkthroughConfig, optional
        Parser configuration.  Defaults to the packaged configuration.

    Raises
    ------
    StructuralError
        If the parsed document has no blocks.
    """
    config = config or WalkthroughConfig()
    parser = MarkdownDocumentParser(config)
    document = parser.parse(source, attributes)
    return WalkthroughAssembler().build(document)
