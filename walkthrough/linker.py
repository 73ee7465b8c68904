"""Linking verification checkpoints to their follow-up messages.

A verification block owns the nearest success block and the nearest fail
block that follow it, as long as no other verification block comes first.
Success and fail are searched independently, so a checkpoint may end up with
either, both or neither.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, TypeVar

from walkthrough.classifier import (
    is_verification,
    is_verification_fail,
    is_verification_success,
)
from walkthrough.models import VerificationFailBlock, VerificationSuccessBlock
from walkthrough.nodes import DocumentNode

logger = logging.getLogger(__name__)

_B = TypeVar("_B")


def _find_next(
    remaining: Iterable[DocumentNode],
    matches: Callable[[DocumentNode], bool],
    build: Callable[[str], _B],
) -> Optional[_B]:
    for node in remaining:
        if is_verification(node):
            return None
        if matches(node):
            return build(node.convert())
    return None


def find_next_success(
    remaining: Iterable[DocumentNode],
) -> Optional[VerificationSuccessBlock]:
    """Return the success block for a checkpoint, given the siblings after it."""
    return _find_next(remaining, is_verification_success, VerificationSuccessBlock)


def find_next_fail(
    remaining: Iterable[DocumentNode],
) -> Optional[VerificationFailBlock]:
    """Return the fail block for a checkpoint, given the siblings after it."""
    return _find_next(remaining, is_verification_fail, VerificationFailBlock)
