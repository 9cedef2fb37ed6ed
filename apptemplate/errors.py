"""Error taxonomy for project mutations.

Every error is fatal at the point it is raised: the pipeline stops, prints the
message and exits.  Nothing is retried and completed steps are not rolled back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class MutationError(Exception):
    """Base class for every failure raised while mutating a project."""


class NotFoundError(MutationError):
    """Raised when a file that must be patched does not exist."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"File not found: {self.path}")


class AlreadyExistsError(MutationError):
    """Raised when writing a file that exists without ``force``."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"File already exists (use force to overwrite): {self.path}")


class AnchorNotFoundError(MutationError):
    """Raised when a required patch anchor does not occur in the target file."""

    def __init__(self, path: str | Path, anchor: str) -> None:
        self.path = Path(path)
        self.anchor = anchor
        super().__init__(f"Anchor {anchor} not found in {self.path}")


class GroupNotFoundError(MutationError):
    """Raised when a dependency group block is missing from the Gemfile."""

    def __init__(self, path: str | Path, groups: Sequence[str]) -> None:
        self.path = Path(path)
        self.groups = tuple(groups)
        names = ", ".join(f":{g}" for g in self.groups)
        super().__init__(f"Group block 'group {names} do' not found in {self.path}")


class UnresolvedPlaceholderError(MutationError):
    """Raised when a template references a value missing from the run context."""

    def __init__(self, template: str, message: str) -> None:
        self.template = template
        super().__init__(f"Unresolved placeholder in {template}: {message}")


class UnreadableFileError(MutationError):
    """Raised when a file to be patched is not valid UTF-8 text."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Cannot read {self.path} as UTF-8 text: {reason}")


class InvalidTemplateError(MutationError):
    """Raised when template text does not parse."""

    def __init__(self, template: str, message: str, lineno: int | None = None) -> None:
        self.template = template
        self.lineno = lineno
        where = f"{template}:{lineno}" if lineno else template
        super().__init__(f"Invalid template {where}: {message}")


class InvalidCommandError(MutationError):
    """Raised when command arguments cannot be split into words."""

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        super().__init__(f"Cannot parse command arguments {command!r}: {reason}")


class ExternalCommandFailedError(MutationError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(
        self,
        program: str,
        args: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.program = program
        self.args_list = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        cmd_str = " ".join([program, *self.args_list])
        message = f"Command failed (exit {returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message)
