"""Unit tests for shared utilities (apptemplate.utils)."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from apptemplate.errors import UnreadableFileError
from apptemplate.utils import (
    atomic_write_text,
    env_var_prefix,
    format_duration,
    print_action,
    rails_app_name,
    read_text_exact,
    run_command,
)


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_captures_output(self):
        rc, out, err = await run_command([sys.executable, "-c", "print(' hi ')"])
        assert (rc, out, err) == (0, "hi", "")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nonzero_exit(self):
        rc, _, _ = await run_command([sys.executable, "-c", "raise SystemExit(4)"])
        assert rc == 4

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_program(self):
        rc, out, err = await run_command(["no-such-program-abc"])
        assert rc == 127
        assert "no-such-program-abc" in err

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        rc, _, err = await run_command(
            [sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2
        )
        assert rc == -1
        assert "timed out" in err

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extra_env(self):
        rc, out, _ = await run_command(
            [sys.executable, "-c", "import os; print(os.environ['APP_FLAG'])"],
            env={"APP_FLAG": "on"},
        )
        assert (rc, out) == (0, "on")


class TestFileHelpers:
    @pytest.mark.unit
    def test_crlf_survives(self, tmp_path: Path):
        path = tmp_path / "Gemfile"
        atomic_write_text(path, "a\r\nb\r\n")
        assert path.read_bytes() == b"a\r\nb\r\n"
        assert read_text_exact(path) == "a\r\nb\r\n"

    @pytest.mark.unit
    def test_creates_parents(self, tmp_path: Path):
        path = atomic_write_text(tmp_path / "a" / "b" / "c.rb", "x\n")
        assert path.read_text(encoding="utf-8") == "x\n"

    @pytest.mark.unit
    def test_replaces_without_leftovers(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        path.write_text("old", encoding="utf-8")
        atomic_write_text(path, "new")
        assert path.read_text(encoding="utf-8") == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    @pytest.mark.unit
    def test_new_file_follows_umask(self, tmp_path: Path):
        previous = os.umask(0o022)
        try:
            path = atomic_write_text(tmp_path / "file.txt", "x")
        finally:
            os.umask(previous)
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    @pytest.mark.unit
    def test_read_non_utf8(self, tmp_path: Path):
        path = tmp_path / "Gemfile"
        path.write_bytes(b"gem '\xff'\n")
        with pytest.raises(UnreadableFileError) as exc_info:
            read_text_exact(path)
        assert exc_info.value.path == path


class TestNames:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("blog_api", "blog_api"),
            ("blog-api", "blog-api"),
            ("BlogAPI", "BlogAPI"),
            ("my.blog api", "my_blog_api"),
            ("  shop  ", "shop"),
        ],
    )
    def test_rails_app_name(self, raw: str, expected: str):
        assert rails_app_name(raw) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "app_name, expected",
        [
            ("blog_api", "BLOG_API"),
            ("blog-api", "BLOG_API"),
            ("BlogAPI", "BLOGAPI"),
        ],
    )
    def test_env_var_prefix(self, app_name: str, expected: str):
        assert env_var_prefix(app_name) == expected


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-1) == "0.0s"


class TestOutput:
    @pytest.mark.unit
    def test_print_action_escapes_markup(self, capsys):
        print_action("create", "config/[bold]x[/bold].rb")
        out = capsys.readouterr().out
        assert "config/[bold]x[/bold].rb" in out
