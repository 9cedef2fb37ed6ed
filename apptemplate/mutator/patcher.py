"""Anchored text insertion into existing files.

A patch inserts one block of text next to an anchor: a literal string, a
regular expression, or the end of the file.  Only the first match is used,
ordered by offset, and every byte outside the inserted block is preserved.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from ..errors import AnchorNotFoundError, NotFoundError
from ..utils import atomic_write_text, print_action, read_text_exact


class AnchorKind(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    BEFORE_PATTERN = "before_pattern"
    AFTER_PATTERN = "after_pattern"
    END = "end"


class IdempotencyPolicy(str, Enum):
    """What to do when the block is already in the file.

    ``FORCE`` inserts regardless, so re-running a patch duplicates the block.
    ``SKIP_IF_PRESENT`` leaves the file alone when the block text occurs in it.
    """

    FORCE = "force"
    SKIP_IF_PRESENT = "skip_if_present"


class Anchor(BaseModel):
    """Where a block goes relative to existing content."""

    model_config = ConfigDict(frozen=True)

    kind: AnchorKind
    value: str = ""

    @classmethod
    def before(cls, text: str) -> "Anchor":
        return cls(kind=AnchorKind.BEFORE, value=text)

    @classmethod
    def after(cls, text: str) -> "Anchor":
        return cls(kind=AnchorKind.AFTER, value=text)

    @classmethod
    def before_pattern(cls, pattern: str) -> "Anchor":
        return cls(kind=AnchorKind.BEFORE_PATTERN, value=pattern)

    @classmethod
    def after_pattern(cls, pattern: str) -> "Anchor":
        return cls(kind=AnchorKind.AFTER_PATTERN, value=pattern)

    @classmethod
    def end(cls) -> "Anchor":
        return cls(kind=AnchorKind.END)

    def locate(self, text: str) -> int | None:
        """Return the insertion offset in *text*, or ``None`` if there is no match."""
        if self.kind is AnchorKind.END:
            return len(text)

        if self.kind in (AnchorKind.BEFORE_PATTERN, AnchorKind.AFTER_PATTERN):
            match = re.search(self.value, text, flags=re.MULTILINE)
            if match is None:
                return None
            return match.start() if self.kind is AnchorKind.BEFORE_PATTERN else match.end()

        index = text.find(self.value)
        if index == -1:
            return None
        return index if self.kind is AnchorKind.BEFORE else index + len(self.value)

    def describe(self) -> str:
        if self.kind is AnchorKind.END:
            return "<end of file>"
        return f"{self.kind.value} {self.value!r}"


class PatchRequest(BaseModel):
    """One anchored insertion, built per call and discarded after use."""

    path: Path
    anchor: Anchor
    block: str
    required: bool = True
    policy: IdempotencyPolicy = IdempotencyPolicy.FORCE


def insert_block(text: str, anchor: Anchor, block: str) -> str | None:
    """Return *text* with *block* inserted at *anchor*, or ``None`` if unmatched."""
    offset = anchor.locate(text)
    if offset is None:
        return None
    return text[:offset] + block + text[offset:]


class TextPatcher:
    """Applies ``PatchRequest`` objects to files under a project root."""

    def __init__(
        self,
        root: str | Path,
        default_policy: IdempotencyPolicy = IdempotencyPolicy.FORCE,
    ) -> None:
        self.root = Path(root)
        self.default_policy = default_policy

    def patch(
        self,
        path: str | Path,
        anchor: Anchor,
        block: str,
        *,
        required: bool = True,
        policy: IdempotencyPolicy | None = None,
    ) -> bool:
        """Insert *block* at *anchor* in *path*.

        Returns ``True`` when the file changed.

        Raises:
            NotFoundError: If the file does not exist.
            AnchorNotFoundError: If *required* and the anchor is not found.
        """
        request = PatchRequest(
            path=Path(path),
            anchor=anchor,
            block=block,
            required=required,
            policy=policy or self.default_policy,
        )
        return self.apply(request)

    def apply(self, request: PatchRequest) -> bool:
        target = self.root / request.path
        if not target.is_file():
            raise NotFoundError(target)

        text = read_text_exact(target)
        if request.policy is IdempotencyPolicy.SKIP_IF_PRESENT and request.block in text:
            print_action("identical", str(request.path), style="blue")
            return False

        patched = insert_block(text, request.anchor, request.block)
        if patched is None:
            if request.required:
                raise AnchorNotFoundError(target, request.anchor.describe())
            print_action("skip", f"{request.path} ({request.anchor.describe()} not found)", style="yellow")
            return False

        atomic_write_text(target, patched)
        print_action("inject", str(request.path))
        return True
