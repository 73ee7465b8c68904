"""Data models for an assembled walkthrough.

These value objects are produced by :mod:`walkthrough.assembler` from a parsed
document tree and consumed read-only by whatever renders the walkthrough.
Every model is frozen and holds its sequences as tuples, so a graph never
changes after assembly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BlockKind(Enum):
    """Closed set of kinds a document node can be classified as."""
    TASK = "task"
    STEP = "step"
    VERIFICATION = "verification"
    VERIFICATION_SUCCESS = "verificationSuccess"
    VERIFICATION_FAIL = "verificationFail"
    TASK_RESOURCE = "taskResource"
    WALKTHROUGH_RESOURCE = "walkthroughResource"
    TEXT = "text"


class StructuralError(ValueError):
    """The document tree does not have the minimal walkthrough shape."""


# ── Content blocks ──────────────────────────────────────────────────


@dataclass(frozen=True)
class TextBlock:
    """Narrative markup; the fallback for any unrecognised block."""
    html: str = ""


@dataclass(frozen=True)
class VerificationSuccessBlock:
    html: str = ""


@dataclass(frozen=True)
class VerificationFailBlock:
    html: str = ""


@dataclass(frozen=True)
class VerificationBlock:
    """A checkpoint, optionally followed by success and failure messages."""
    html: str = ""
    success_block: Optional[VerificationSuccessBlock] = None
    fail_block: Optional[VerificationFailBlock] = None

    @property
    def has_success_block(self) -> bool:
        return self.success_block is not None

    @property
    def has_fail_block(self) -> bool:
        return self.fail_block is not None


# ── Resources ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class WalkthroughResource:
    """A side panel declared in the preamble, owned by the whole walkthrough."""
    html: str = ""
    service_name: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class TaskResource:
    """A side panel declared anywhere inside a task, owned by that task."""
    html: str = ""
    service_name: Optional[str] = None
    title: Optional[str] = None


# ── Content type unions ─────────────────────────────────────────────

StepContent = TextBlock | VerificationBlock


# ── Walkthrough structure ───────────────────────────────────────────


@dataclass(frozen=True)
class Step:
    """A numbered sub-unit of a task."""
    title: str = ""
    blocks: tuple[StepContent, ...] = ()


TaskContent = Step | TextBlock | VerificationBlock


@dataclass(frozen=True)
class Task:
    """A numbered, timed unit of work."""
    title: str = ""
    time: int = 0  # minutes
    html: str = ""
    blocks: tuple[TaskContent, ...] = ()
    resources: tuple[TaskResource, ...] = ()

    @property
    def steps(self) -> tuple[TaskContent, ...]:
        """All task content in document order; resources are never included."""
        return self.blocks


@dataclass(frozen=True)
class Walkthrough:
    """The complete assembled walkthrough."""
    title: str = ""
    preamble: str = ""
    time: int = 0  # minutes, sum of task times
    tasks: tuple[Task, ...] = ()
    resources: tuple[WalkthroughResource, ...] = ()

    def summary(self) -> dict:
        """Return a summary of the walkthrough structure."""
        stats: dict = {
            "tasks": len(self.tasks),
            "steps": 0,
            "text_blocks": 0,
            "verifications": 0,
            "resources": len(self.resources),
            "time": self.time,
        }

        def count(blocks) -> None:
            for block in blocks:
                match block:
                    case Step():
                        stats["steps"] += 1
                        count(block.blocks)
                    case TextBlock():
                        stats["text_blocks"] += 1
                    case VerificationBlock():
                        stats["verifications"] += 1

        for task in self.tasks:
            stats["resources"] += len(task.resources)
            count(task.blocks)
        return stats
