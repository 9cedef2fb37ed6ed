"""Structured edits to manifest-like files: Gemfile, routes, application config.

Every edit is a single anchored insertion through ``TextPatcher``.  The only
logic added here is rendering dependency lines and locating the boundaries of
a named ``group ... do`` block.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable, Sequence

from ..errors import GroupNotFoundError
from ..utils import print_action, read_text_exact
from .patcher import Anchor, TextPatcher

GEMFILE = Path("Gemfile")
ROUTES_FILE = Path("config/routes.rb")
APPLICATION_FILE = Path("config/application.rb")

_GROUP_HEADER = re.compile(r"^(?P<indent>[ \t]*)group\s+(?P<names>.+?)\s+do[ \t]*\r?$", re.MULTILINE)
_GROUP_NAME = re.compile(r""":(\w+)|['"](\w+)['"]""")

# Everything from the draw line up to the last column-0 ``end``.
_ROUTES_BODY = r"\.routes\.draw\s+do[ \t]*\r?\n(?s:.*)(?=^end\b)"
_APPLICATION_BODY = r"class Application < Rails::Application[ \t]*\r?\n"


def _ruby_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return f"'{value}'"


def gem_line(name: str, *requirements: str, **options: Any) -> str:
    """Render one Gemfile declaration.

    Examples::

        gem_line("rubocop", require=False)
            -> "gem 'rubocop', require: false"
        gem_line("devise_token_auth", ">= 1.2.0", git="https://example.com/repo")
            -> "gem 'devise_token_auth', '>= 1.2.0', git: 'https://example.com/repo'"
    """
    parts = [f"gem '{name}'"]
    parts.extend(f"'{req}'" for req in requirements)
    parts.extend(
        f"{key}: {_ruby_literal(value)}" for key, value in options.items() if value is not None
    )
    return ", ".join(parts)


def parse_group_names(header_names: str) -> frozenset[str]:
    """Return the group names of a header such as ``:development, :test``."""
    return frozenset(sym or quoted for sym, quoted in _GROUP_NAME.findall(header_names))


def find_group_header(text: str, groups: Iterable[str]) -> re.Match[str] | None:
    """Return the first ``group ... do`` line naming exactly *groups*."""
    wanted = frozenset(groups)
    for match in _GROUP_HEADER.finditer(text):
        if parse_group_names(match.group("names")) == wanted:
            return match
    return None


def _group_header_text(groups: Sequence[str]) -> str:
    return "group " + ", ".join(f":{g}" for g in groups) + " do"


class ManifestEditor:
    """Adds dependencies, routes and application settings to a Rails project."""

    def __init__(self, patcher: TextPatcher) -> None:
        self.patcher = patcher

    @property
    def root(self) -> Path:
        return self.patcher.root

    # -- Gemfile -----------------------------------------------------------

    def gem(
        self,
        name: str,
        *requirements: str,
        group: str | Sequence[str] | None = None,
        **options: Any,
    ) -> bool:
        """Declare a gem, at the end of the Gemfile or inside *group*."""
        line = gem_line(name, *requirements, **options)
        if group is not None:
            groups = [group] if isinstance(group, str) else list(group)
            return self.gem_group(groups, [line])

        text = read_text_exact(self.root / GEMFILE) if (self.root / GEMFILE).is_file() else ""
        prefix = "" if not text or text.endswith("\n") else "\n"
        print_action("gemfile", name)
        return self.patcher.patch(GEMFILE, Anchor.end(), f"{prefix}{line}\n")

    def gem_group(
        self,
        groups: Sequence[str],
        lines: Sequence[str],
        *,
        create: bool = False,
    ) -> bool:
        """Insert gem *lines* at the end of the ``group`` block for *groups*.

        The block is matched on its set of group names, so ``[:test,
        :development]`` finds ``group :development, :test do``.  Other blocks
        are left untouched.

        Raises:
            GroupNotFoundError: If no such block exists and *create* is false.
        """
        gemfile = self.root / GEMFILE
        text = read_text_exact(gemfile) if gemfile.is_file() else ""
        header = find_group_header(text, groups)

        if header is None:
            if not create:
                raise GroupNotFoundError(gemfile, groups)
            body = "".join(f"  {line}\n" for line in lines)
            prefix = "\n" if text and not text.endswith("\n") else ""
            block = f"{prefix}\n{_group_header_text(groups)}\n{body}end\n"
            print_action("gemfile", _group_header_text(groups))
            return self.patcher.patch(GEMFILE, Anchor.end(), block)

        indent = header.group("indent")
        body = "".join(f"{indent}  {line}\n" for line in lines)
        # Header line through the last line before the block's own ``end``.
        pattern = (
            "^"
            + re.escape(header.group(0))
            + r"\n(?:.*\n)*?"
            + rf"(?={re.escape(indent)}end[ \t]*\r?$)"
        )
        print_action("gemfile", header.group(0).strip())
        return self.patcher.patch(GEMFILE, Anchor.after_pattern(pattern), body)

    # -- Routes ------------------------------------------------------------

    def route(self, block: str) -> bool:
        """Insert routing rules at the end of the top-level ``routes.draw`` block."""
        if not block.endswith("\n"):
            block += "\n"
        print_action("route", block.strip().splitlines()[0] if block.strip() else "")
        return self.patcher.patch(ROUTES_FILE, Anchor.after_pattern(_ROUTES_BODY), block)

    # -- Application config -----------------------------------------------

    def application(self, line: str) -> bool:
        """Add a configuration line to the ``Rails::Application`` class body."""
        print_action("application", line)
        return self.patcher.patch(
            APPLICATION_FILE,
            Anchor.after_pattern(_APPLICATION_BODY),
            f"    {line}\n",
        )
