"""External command execution for generator, bundler and git steps.

Commands run one at a time in the project root.  Output is captured for
diagnostics but never interpreted; only the exit status matters.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel, Field

from ..errors import ExternalCommandFailedError, InvalidCommandError
from ..utils import print_action, print_warning, run_command


class CommandInvocation(BaseModel):
    program: str
    args: list[str] = Field(default_factory=list)
    allow_failure: bool = False

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    @property
    def display(self) -> str:
        return shlex.join(self.argv)


@dataclass
class CommandResult:
    """Exit status and captured output of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs external commands in a project directory.

    A non-zero exit raises ``ExternalCommandFailedError`` unless the call
    opted into ``allow_failure``, in which case a warning is printed and the
    result is returned.  No timeout is imposed.
    """

    def __init__(
        self,
        root: str | Path,
        rails_bin: str = "bin/rails",
        bundle_command: Sequence[str] = ("bundle", "install"),
    ) -> None:
        self.root = Path(root)
        self.rails_bin = rails_bin
        self.bundle_command = list(bundle_command)
        self.history: list[CommandInvocation] = []

    async def run(
        self,
        program: str,
        args: Sequence[str] = (),
        *,
        allow_failure: bool = False,
    ) -> CommandResult:
        invocation = CommandInvocation(
            program=program, args=list(args), allow_failure=allow_failure
        )
        return await self.execute(invocation)

    async def execute(self, invocation: CommandInvocation) -> CommandResult:
        print_action("run", invocation.display, style="cyan")
        self.history.append(invocation)

        returncode, stdout, stderr = await run_command(invocation.argv, cwd=self.root)
        result = CommandResult(returncode=returncode, stdout=stdout, stderr=stderr)

        if not result.ok:
            if not invocation.allow_failure:
                raise ExternalCommandFailedError(
                    invocation.program,
                    invocation.args,
                    returncode,
                    stdout=stdout,
                    stderr=stderr,
                )
            print_warning(f"  '{invocation.display}' exited with {returncode}, continuing")
        return result

    # -- Convenience wrappers ----------------------------------------------

    async def rails_command(self, command: str, *, allow_failure: bool = False) -> CommandResult:
        """Run ``bin/rails <command>``; *command* may hold several tasks, e.g. ``"db:drop db:create"``."""
        return await self.run(self.rails_bin, _split(command), allow_failure=allow_failure)

    async def generate(self, generator: str, *args: str) -> CommandResult:
        """Run ``bin/rails generate <generator> <args...>``.

        Each argument is split shell-style, so ``generate("scaffold", "Post title:string")``
        passes ``Post`` and ``title:string`` separately.
        """
        split_args = [part for arg in args for part in _split(arg)]
        return await self.run(self.rails_bin, ["generate", generator, *split_args])

    async def bundle_install(self) -> CommandResult:
        return await self.run(self.bundle_command[0], self.bundle_command[1:])

    async def git(self, *args: str) -> CommandResult:
        return await self.run("git", list(args))


def _split(command: str) -> list[str]:
    try:
        return shlex.split(command)
    except ValueError as exc:
        raise InvalidCommandError(command, str(exc)) from exc
