"""Mutation facade bound to one project and one run context.

``ProjectMutator`` wires the renderer, writer, patcher, manifest editor,
command runner and hook executor together so that a plan can be written as a
flat sequence of steps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from ..config import Config
from ..context import RunContext
from ..utils import say
from .hooks import Hook, HookAction, HookExecutor
from .manifest import ManifestEditor
from .patcher import Anchor, IdempotencyPolicy, TextPatcher
from .runner import CommandRunner
from .templates import TemplateRenderer
from .writer import FileWriter


class ProjectMutator:
    """Applies file mutations immediately and defers commands to hooks.

    When ``config.run_bundle`` is set, dependency installation is registered
    as the very first hook, so it always runs before any ``after_bundle``
    hook that needs the installed gems.
    """

    def __init__(self, config: Config, context: RunContext) -> None:
        self.config = config
        self.context = context
        self.root = Path(config.project_root)

        policy = (
            IdempotencyPolicy.SKIP_IF_PRESENT
            if config.skip_existing_blocks
            else IdempotencyPolicy.FORCE
        )
        self.renderer = TemplateRenderer(config.templates_dir)
        self.writer = FileWriter(self.root, self.renderer)
        self.patcher = TextPatcher(self.root, default_policy=policy)
        self.manifest = ManifestEditor(self.patcher)
        self.runner = CommandRunner(
            self.root,
            rails_bin=config.rails_bin,
            bundle_command=config.bundle_command,
        )
        self.hooks = HookExecutor()

        if config.run_bundle:
            self.hooks.register(self.runner.bundle_install, name="bundle install")

    # -- Templates ---------------------------------------------------------

    def render(self, template_path: str, **extra: Any) -> str:
        """Render a named template against the run context (plus *extra*)."""
        return self.renderer.render(
            template_path, {**self.context.as_template_vars(), **extra}
        )

    # -- Files -------------------------------------------------------------

    def file(self, path: str | Path, template_path: str, *, force: bool = False, **extra: Any) -> Path:
        """Create *path* from a named template."""
        return self.writer.write(path, self.render(template_path, **extra), force=force)

    def write(self, path: str | Path, content: str, *, force: bool = False, interpolate: bool = False) -> Path:
        """Create *path* from literal content, optionally interpolating the context."""
        return self.writer.write(
            path, content, force=force, context=self.context if interpolate else None
        )

    def inject_into_file(
        self,
        path: str | Path,
        block: str,
        anchor: Anchor | None = None,
        *,
        required: bool = True,
        policy: IdempotencyPolicy | None = None,
    ) -> bool:
        """Insert *block* at *anchor*; without an anchor it is appended."""
        return self.patcher.patch(
            path, anchor or Anchor.end(), block, required=required, policy=policy
        )

    def append_to_file(self, path: str | Path, block: str) -> bool:
        return self.patcher.patch(path, Anchor.end(), block)

    # -- Manifests ---------------------------------------------------------

    def gem(self, name: str, *requirements: str, **options: Any) -> bool:
        return self.manifest.gem(name, *requirements, **options)

    def gem_group(self, groups: Sequence[str], lines: Sequence[str], *, create: bool = False) -> bool:
        return self.manifest.gem_group(groups, lines, create=create)

    def route(self, block: str) -> bool:
        return self.manifest.route(block)

    def application(self, line: str) -> bool:
        return self.manifest.application(line)

    # -- Deferred commands -------------------------------------------------

    def after_bundle(self, action: HookAction, name: str | None = None) -> Hook:
        """Defer *action* until dependencies are installed."""
        return self.hooks.register(action, name=name)

    def after_bundle_rails(self, command: str, *, allow_failure: bool = False) -> Hook:
        async def _rails() -> None:
            await self.runner.rails_command(command, allow_failure=allow_failure)

        return self.after_bundle(_rails, name=f"rails {command}")

    def after_bundle_run(self, argv: Sequence[str], *, allow_failure: bool = False) -> Hook:
        program, *args = argv

        async def _run() -> None:
            await self.runner.run(program, args, allow_failure=allow_failure)

        return self.after_bundle(_run, name=" ".join(argv))

    def initial_commit(self) -> None:
        """Queue ``git init``, ``git add .`` and the initial commit."""
        self.after_bundle(lambda: self.runner.git("init"), name="git init")
        self.after_bundle(lambda: self.runner.git("add", "."), name="git add")
        self.after_bundle(
            lambda: self.runner.git("commit", "-a", "-m", self.config.commit_message),
            name="git commit",
        )

    async def finalize(self) -> list[Hook]:
        """Run every queued hook in order."""
        return await self.hooks.run_all()

    # -- Output ------------------------------------------------------------

    @staticmethod
    def say(message: str, style: str = "yellow") -> None:
        say(message, style)
