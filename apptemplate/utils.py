"""Shared utility functions for app-template.

Provides async command execution, exact-content file I/O with atomic writes,
name normalisation and Rich-based status output.
"""

from __future__ import annotations

import asyncio
import os
import re
import stat
import tempfile
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from .errors import UnreadableFileError

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command and wait for it to finish.

    Args:
        cmd: Program followed by its arguments.  No shell is involved.
        cwd: Working directory for the child process.
        timeout: Optional wall-clock limit in seconds.  ``None`` waits for as
            long as the command runs.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A program that cannot be
        found reports return code 127, the shell convention.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    except FileNotFoundError:
        return 127, "", f"Command not found: {cmd[0]}"

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return -1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}"

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return process.returncode or 0, stdout_str, stderr_str


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def read_text_exact(path: str | Path) -> str:
    """Read a file without newline translation so CRLF endings survive a patch.

    Raises:
        UnreadableFileError: If the file is not valid UTF-8.
    """
    try:
        with open(path, encoding="utf-8", newline="") as fh:
            return fh.read()
    except UnicodeDecodeError as exc:
        raise UnreadableFileError(path, exc.reason) from exc


def atomic_write_text(path: str | Path, content: str) -> Path:
    """Write *content* to *path* so readers see either the old or the new file.

    The content goes to a temporary file in the target directory which then
    replaces the target in a single ``os.replace``.  Parent directories are
    created as needed.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        if target.exists():
            mode = stat.S_IMODE(target.stat().st_mode)
        else:
            mode = 0o666 & ~_current_umask()
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return target


def _current_umask() -> int:
    # The umask can only be read by setting it.
    mask = os.umask(0)
    os.umask(mask)
    return mask


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def rails_app_name(name: str) -> str:
    """Return the application name the way ``rails new`` derives it.

    Rails only replaces dots and spaces; case and hyphens are kept, so the
    result matches the ``database:`` entries Rails wrote to ``database.yml``.

    Examples::

        rails_app_name("blog-api") -> "blog-api"
        rails_app_name("my.blog api") -> "my_blog_api"
    """
    return re.sub(r"[. ]", "_", name.strip())


def env_var_prefix(app_name: str) -> str:
    """Turn an application name into an environment variable prefix.

    Anything that is not a letter, digit or underscore becomes ``_`` so the
    prefix is usable in ``export`` lines and ``ENV[...]`` lookups.

    Examples::

        env_var_prefix("blog-api") -> "BLOG_API"
        env_var_prefix("shop") -> "SHOP"
    """
    return re.sub(r"[^A-Za-z0-9_]", "_", app_name).upper()


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_NAMES: dict[int, str] = {
    1: "COLLECT",
    2: "MUTATE",
    3: "FINALIZE",
}

STAGE_COLORS: dict[int, str] = {
    1: "bright_cyan",
    2: "bright_green",
    3: "bright_yellow",
}


def print_phase_header(stage: int, name: str) -> None:
    """Print a full-width rule announcing a pipeline stage."""
    color = STAGE_COLORS.get(stage, "white")
    console.print()
    console.print(
        Rule(
            f"[bold {color}] Stage {stage}: {name.upper()} [/bold {color}]",
            style=color,
        )
    )
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def say(message: str, style: str = "yellow") -> None:
    """Print a coloured status line for a plan section."""
    console.print(f"[{style}]{message}[/{style}]")


def print_action(verb: str, target: str, style: str = "green") -> None:
    """Print a right-aligned action verb followed by its target."""
    console.print(f"[bold {style}]{verb:>12}[/bold {style}]  {escape(target)}")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
