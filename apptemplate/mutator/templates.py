"""Jinja2 template rendering for project mutations.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``apptemplate/templates/`` directory and renders them with the run context.
Rendering is strict: a placeholder that the context does not define raises
``UnresolvedPlaceholderError`` instead of rendering as an empty string.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
)

from ..errors import InvalidTemplateError, NotFoundError, UnresolvedPlaceholderError


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project mutations.

    Template bodies are plain data files; the renderer knows nothing about
    what they contain.  Ruby/ERB syntax (``<%= ... %>``, ``#{...}``) passes
    through untouched because it does not collide with Jinja2 delimiters.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template file with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"shared/rubocop.yml.j2"``).
            context: Dictionary of variables available inside the template.

        Raises:
            NotFoundError: If the template file does not exist.
            InvalidTemplateError: If the template does not parse.
            UnresolvedPlaceholderError: If the template uses an undefined name.
        """
        try:
            template = self.env.get_template(template_path)
        except TemplateNotFound as exc:
            raise NotFoundError(self.template_dir / template_path) from exc
        except TemplateSyntaxError as exc:
            raise InvalidTemplateError(template_path, exc.message or str(exc), exc.lineno) from exc
        try:
            return template.render(**context)
        except UndefinedError as exc:
            raise UnresolvedPlaceholderError(template_path, str(exc)) from exc

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        try:
            template = self.env.from_string(template_string)
        except TemplateSyntaxError as exc:
            raise InvalidTemplateError("<string>", exc.message or str(exc), exc.lineno) from exc
        try:
            return template.render(**context)
        except UndefinedError as exc:
            raise UnresolvedPlaceholderError("<string>", str(exc)) from exc
