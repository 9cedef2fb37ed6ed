"""app-template pipeline driver.

Runs one mutation plan against a freshly generated Rails API project:

Stage 1: COLLECT  -- Resolve flags, prompt answers and derived names.
Stage 2: MUTATE   -- Apply the plan's file mutations, queue its hooks.
Stage 3: FINALIZE -- Install dependencies, run generators, commit.

Usage::

    python -m apptemplate.pipeline path/to/app --plan activities --devise
    python -m apptemplate.pipeline path/to/app --scaffold="Post title:string"
"""

from __future__ import annotations

import asyncio
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from rich.markup import escape
from rich.panel import Panel

from apptemplate.config import PLAN_NAMES, Config
from apptemplate.context import ContextCollector, RunContext
from apptemplate.errors import ExternalCommandFailedError, MutationError
from apptemplate.mutator import ProjectMutator
from apptemplate.plans import PLANS, MutationPlan
from apptemplate.utils import (
    STAGE_NAMES,
    console,
    format_duration,
    print_error,
    print_phase_header,
    print_success,
    print_summary_table,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Raised when the pipeline cannot start, e.g. for an unknown plan."""


def exit_status(returncode: int) -> int:
    """Map a failed command's return code to this process's exit status.

    A child killed by signal N reports ``-N``; that becomes ``128 + N`` as in
    a shell.  Zero becomes 1.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode or 1


def select_plan(name: str) -> MutationPlan:
    """Return a fresh instance of the plan called *name*."""
    plan_cls = PLANS.get(name)
    if plan_cls is None:
        raise PipelineError(f"Unknown plan {name!r}; available: {', '.join(sorted(PLANS))}")
    return plan_cls()


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Drives a single run: collect, mutate, finalize.

    Any ``MutationError`` stops the run at the step that raised it.  Files
    already written stay as they are.  The returned state carries the exit
    code ``main`` should use.
    """

    def __init__(self, config: Config, collector: ContextCollector | None = None) -> None:
        self.config = config
        self.collector = collector or ContextCollector(config)
        self.plan = select_plan(config.plan)
        self.context: RunContext | None = None
        self.mutator: ProjectMutator | None = None
        self.state: dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "plan": self.plan.name,
            "stages_completed": [],
            "hooks_run": [],
            "commands_run": [],
            "success": False,
            "exit_code": 1,
        }

    async def run(self, argv: Sequence[str] = ()) -> dict[str, Any]:
        start = time.monotonic()
        console.print(
            Panel(
                f"[bold bright_cyan]app-template[/bold bright_cyan]\n"
                f"Project : {escape(str(Path(self.config.project_root).resolve()))}\n"
                f"Plan    : {self.plan.name} -- {self.plan.description}",
                title="[bold]Run Start[/bold]",
                border_style="bright_cyan",
            )
        )

        stage = 1
        try:
            print_phase_header(stage, STAGE_NAMES[stage])
            self.context = self.collector.collect(
                argv, needs_credentials=self.plan.needs_credentials
            )
            self.state["app_name"] = self.context.app_name
            self.state["stages_completed"].append(stage)

            stage = 2
            print_phase_header(stage, STAGE_NAMES[stage])
            self.mutator = ProjectMutator(self.config, self.context)
            self.plan.apply(self.mutator)
            self.state["hooks_queued"] = len(self.mutator.hooks)
            self.state["stages_completed"].append(stage)

            stage = 3
            print_phase_header(stage, STAGE_NAMES[stage])
            completed = await self.mutator.finalize()
            self.state["hooks_run"] = [hook.name for hook in completed]
            self.state["stages_completed"].append(stage)

        except ExternalCommandFailedError as exc:
            self._record_failure(stage, exc, exit_status(exc.returncode))
            if exc.stdout:
                console.print(f"[dim]{escape(exc.stdout)}[/dim]")
        except MutationError as exc:
            self._record_failure(stage, exc, 1)
        else:
            self.state["success"] = True
            self.state["exit_code"] = 0

        if self.mutator is not None:
            self.state["commands_run"] = [inv.display for inv in self.mutator.runner.history]
        elapsed = time.monotonic() - start
        self.state["total_duration"] = format_duration(elapsed)
        self.state["finished_at"] = datetime.now(timezone.utc).isoformat()
        self._print_final_summary()
        return self.state

    def _record_failure(self, stage: int, exc: Exception, exit_code: int) -> None:
        self.state["failed_stage"] = stage
        self.state["error"] = str(exc)
        self.state["exit_code"] = exit_code
        print_error(f"Stage {stage} ({STAGE_NAMES[stage]}) FAILED: {escape(str(exc))}")

    def _print_final_summary(self) -> None:
        summary = {
            "Plan": self.plan.name,
            "App name": self.state.get("app_name", "-"),
            "Stages completed": ", ".join(str(s) for s in self.state["stages_completed"]) or "-",
            "Hooks run": str(len(self.state["hooks_run"])),
            "Commands run": str(len(self.state["commands_run"])),
            "Duration": self.state.get("total_duration", "-"),
            "Result": "success" if self.state["success"] else "failed",
        }
        print_summary_table(summary, title="Run Summary")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_config(argv: Sequence[str]) -> Config:
    """Parse engine options from *argv* into a ``Config``.

    Template flags (``--devise``, ``--scaffold``) and unknown options are
    left for the context collector.
    """
    import argparse

    parser = argparse.ArgumentParser(
        prog="apptemplate",
        description="Apply a project template to a freshly generated Rails API app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Template flags:\n"
            "  --devise             add devise token auth (activities plan)\n"
            "  --scaffold=SPEC      generate a scaffold, e.g. --scaffold='Post title:string'\n"
        ),
    )
    parser.add_argument("project_root", nargs="?", default=None, help="Rails project directory")
    parser.add_argument("--plan", choices=PLAN_NAMES, default=None)
    parser.add_argument("--app-name", default=None, help="Override the application name")
    parser.add_argument("--config", default=None, help="Load settings from a JSON file")
    parser.add_argument("--no-input", action="store_true", help="Never prompt; use defaults")
    parser.add_argument("--skip-bundle", action="store_true", help="Do not run bundle install")
    parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Do not inject blocks that are already present",
    )
    args, _unknown = parser.parse_known_args(list(argv))

    config = Config.load(Path(args.config)) if args.config else Config.from_env()
    updates: dict[str, Any] = {}
    if args.project_root:
        updates["project_root"] = Path(args.project_root)
    if args.plan:
        updates["plan"] = args.plan
    if args.app_name:
        updates["app_name"] = args.app_name
    if args.no_input:
        updates["interactive"] = False
    if args.skip_bundle:
        updates["run_bundle"] = False
    if args.skip_existing:
        updates["skip_existing_blocks"] = True
    return config.model_copy(update=updates)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``apptemplate`` / ``python -m apptemplate.pipeline``."""
    argv = list(sys.argv[1:] if argv is None else argv)
    config = build_config(argv)

    if not Path(config.project_root).is_dir():
        print_error(f"Error: project directory not found: {escape(str(config.project_root))}")
        sys.exit(1)

    pipeline = Pipeline(config)
    result = asyncio.run(pipeline.run(argv))

    if result.get("success"):
        print_success("Template applied successfully!")
    else:
        sys.exit(result.get("exit_code", 1))


if __name__ == "__main__":
    main()
