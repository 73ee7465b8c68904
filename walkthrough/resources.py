"""Harvesting side-panel resources out of a document tree.

Task resources may be declared anywhere beneath a task, at any depth, and all
of them surface on the task.  Walkthrough resources are only ever declared as
direct children of the preamble.
"""

from __future__ import annotations

import logging

from walkthrough.classifier import is_task_resource, is_walkthrough_resource
from walkthrough.models import TaskResource, WalkthroughResource
from walkthrough.nodes import ATTR_SERVICE_NAME, DocumentNode

logger = logging.getLogger(__name__)


def _first_child_markup(node: DocumentNode) -> str:
    return node.blocks[0].convert() if node.blocks else ""


def task_resource_from_node(node: DocumentNode) -> TaskResource:
    return TaskResource(
        html=_first_child_markup(node),
        service_name=node.get_attribute(ATTR_SERVICE_NAME),
        title=node.title,
    )


def walkthrough_resource_from_node(node: DocumentNode) -> WalkthroughResource:
    return WalkthroughResource(
        html=_first_child_markup(node),
        service_name=node.get_attribute(ATTR_SERVICE_NAME),
        title=node.title,
    )


def collect_task_resources(root: DocumentNode) -> tuple[TaskResource, ...]:
    """Return every task resource beneath *root*, in document order.

    The walk is depth-first and pre-order.  A resource node's own children
    are not searched.
    """
    collected: list[TaskResource] = []
    _collect_into(root, collected)
    return tuple(collected)


def _collect_into(node: DocumentNode, collected: list[TaskResource]) -> None:
    for block in node.blocks:
        if is_task_resource(block):
            resource = task_resource_from_node(block)
            logger.debug(
                "Collected task resource '%s' (service %s)",
                resource.title,
                resource.service_name,
            )
            collected.append(resource)
        elif block.blocks:
            _collect_into(block, collected)


def partition_walkthrough_resources(
    preamble: DocumentNode,
) -> tuple[list[DocumentNode], list[WalkthroughResource]]:
    """Split the preamble's direct children into content and resources.

    Returns ``(kept, resources)``: *kept* holds the children that remain part
    of the preamble text, in order, and *resources* the converted walkthrough
    resources.  The preamble itself is left untouched.
    """
    kept: list[DocumentNode] = []
    resources: list[WalkthroughResource] = []
    for block in preamble.blocks:
        if is_walkthrough_resource(block):
            resources.append(walkthrough_resource_from_node(block))
        else:
            kept.append(block)
    logger.debug(
        "Preamble: %d content block(s), %d walkthrough resource(s)",
        len(kept),
        len(resources),
    )
    return kept, resources
