"""Shared pytest fixtures for the app-template test suite.

Provides reusable fixtures for:
- A freshly generated Rails API project tree
- Non-interactive configs and run contexts
- A mocked ``run_command`` that records external commands
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, patch

import pytest

from apptemplate.config import Config
from apptemplate.context import RunContext


# ---------------------------------------------------------------------------
# Project tree
# ---------------------------------------------------------------------------

GEMFILE = textwrap.dedent(
    """\
    source "https://rubygems.org"

    ruby "3.2.2"

    gem "rails", "~> 7.1.3"
    gem "pg", "~> 1.1"
    gem "puma", ">= 5.0"

    gem "bootsnap", require: false

    group :development, :test do
      gem "debug", platforms: %i[ mri windows ]
    end

    group :development do
      # gem "spring"
    end
    """
)

DATABASE_YML = textwrap.dedent(
    """\
    default: &default
      adapter: postgresql
      encoding: unicode
      pool: <%= ENV.fetch("RAILS_MAX_THREADS") { 5 } %>

    development:
      <<: *default
      database: blog_api_development

    test:
      <<: *default
      database: blog_api_test

    production:
      <<: *default
      database: blog_api_production
    """
)

ROUTES_RB = textwrap.dedent(
    """\
    Rails.application.routes.draw do
      # Define your application routes per the DSL in https://guides.rubyonrails.org/routing.html

      get "up" => "rails/health#show", as: :rails_health_check
    end
    """
)

APPLICATION_RB = textwrap.dedent(
    """\
    require_relative "boot"

    require "rails/all"

    Bundler.require(*Rails.groups)

    module BlogApi
      class Application < Rails::Application
        config.load_defaults 7.1
        config.api_only = true
      end
    end
    """
)

APPLICATION_CONTROLLER_RB = "class ApplicationController < ActionController::API\nend\n"

TEST_HELPER_RB = textwrap.dedent(
    """\
    ENV["RAILS_ENV"] ||= "test"
    require_relative "../config/environment"
    require "rails/test_help"

    module ActiveSupport
      class TestCase
        fixtures :all
      end
    end
    """
)

SPEC_HELPER_RB = textwrap.dedent(
    """\
    RSpec.configure do |config|
      config.expect_with :rspec do |expectations|
        expectations.include_chain_clauses_in_custom_matcher_descriptions = true
      end
    end
    """
)

RAILS_FILES: dict[str, str] = {
    "Gemfile": GEMFILE,
    "config/database.yml": DATABASE_YML,
    "config/routes.rb": ROUTES_RB,
    "config/application.rb": APPLICATION_RB,
    "app/controllers/application_controller.rb": APPLICATION_CONTROLLER_RB,
    "db/seeds.rb": "# Seed data goes here.\n",
    ".gitignore": "/.bundle\n/log/*\n/tmp/*\n",
    "test/test_helper.rb": TEST_HELPER_RB,
}


@pytest.fixture
def make_rails_project(tmp_path: Path) -> Callable[[str], Path]:
    """Factory for minimal Rails API app trees; *name* is the directory name.

    ``database.yml`` names its databases after the directory, as
    ``rails new`` does.
    """

    def _make(name: str) -> Path:
        root = tmp_path / name
        for rel, content in RAILS_FILES.items():
            if rel == "config/database.yml":
                content = content.replace("blog_api_", f"{name}_")
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def rails_project(make_rails_project: Callable[[str], Path]) -> Path:
    """A minimal freshly generated Rails API app named ``blog_api``."""
    return make_rails_project("blog_api")


@pytest.fixture
def read(rails_project: Path) -> Callable[[str], str]:
    """Read a project file by relative path."""

    def _read(rel: str) -> str:
        return (rails_project / rel).read_text(encoding="utf-8")

    return _read


# ---------------------------------------------------------------------------
# Config & context
# ---------------------------------------------------------------------------

@pytest.fixture
def make_config(rails_project: Path) -> Callable[..., Config]:
    """Factory for non-interactive configs rooted at ``rails_project``."""

    def _make(**overrides: Any) -> Config:
        values: dict[str, Any] = {"project_root": rails_project, "interactive": False}
        values.update(overrides)
        return Config(**values)

    return _make


@pytest.fixture
def make_context() -> Callable[..., RunContext]:
    """Factory for run contexts of the ``blog_api`` app."""

    def _make(**overrides: Any) -> RunContext:
        values: dict[str, Any] = {
            "app_name": "blog_api",
            "app_name_upper": "BLOG_API",
            "plan": "activities",
            "db_username": "postgres",
            "db_password": "",
        }
        values.update(overrides)
        return RunContext(**values)

    return _make


# ---------------------------------------------------------------------------
# Mock subprocess helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_commands(rails_project: Path):
    """Patch ``run_command`` in the runner; every command succeeds.

    ``rails generate rspec:install`` also drops a ``spec/spec_helper.rb`` so
    the hook that patches it finds the file.  The mock exposes the executed
    argv lists as ``mock.commands``.
    """
    commands: list[list[str]] = []

    async def _fake_run(cmd, cwd=None, timeout=None, env=None):
        commands.append(list(cmd))
        if "rspec:install" in cmd:
            helper = rails_project / "spec" / "spec_helper.rb"
            helper.parent.mkdir(parents=True, exist_ok=True)
            helper.write_text(SPEC_HELPER_RB, encoding="utf-8")
        return 0, "", ""

    mock = AsyncMock(side_effect=_fake_run)
    mock.commands = commands
    with patch("apptemplate.mutator.runner.run_command", mock):
        yield mock
