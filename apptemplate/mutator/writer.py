"""Whole-file writes for project mutations."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from ..context import RunContext
from ..errors import AlreadyExistsError
from ..utils import atomic_write_text, print_action
from .templates import TemplateRenderer


class FileSpec(BaseModel):
    path: Path
    content: str
    force: bool = False


class FileWriter:
    """Creates or replaces files under a project root.

    A write either replaces the whole file or does nothing: content is fully
    rendered before the target is touched, and the target is swapped in with
    an atomic rename.
    """

    def __init__(self, root: str | Path, renderer: TemplateRenderer | None = None) -> None:
        self.root = Path(root)
        self.renderer = renderer or TemplateRenderer()

    def write(
        self,
        path: str | Path,
        content: str,
        *,
        force: bool = False,
        context: RunContext | None = None,
    ) -> Path:
        """Write *content* to *path*, relative to the project root.

        Args:
            path: Target file.
            content: Full file body.  When *context* is given it is treated as
                a template and rendered against the context first.
            force: Replace an existing file instead of failing.
            context: Run context for placeholder interpolation.

        Raises:
            AlreadyExistsError: If the file exists and *force* is false.
            UnresolvedPlaceholderError: If the content names a missing value.
        """
        return self.apply(FileSpec(path=Path(path), content=content, force=force), context)

    def apply(self, spec: FileSpec, context: RunContext | None = None) -> Path:
        target = self.root / spec.path
        existed = target.exists()
        if existed and not spec.force:
            raise AlreadyExistsError(target)

        content = spec.content
        if context is not None:
            content = self.renderer.render_string(content, context.as_template_vars())

        atomic_write_text(target, content)
        print_action("force" if existed else "create", str(spec.path))
        return target
