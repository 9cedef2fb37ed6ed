"""app-template configuration.

Typed settings for one run of the mutation pipeline.  All settings use a
Pydantic v2 model so they are validated at construction time and can be
serialised to/from JSON or read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

PLAN_NAMES: tuple[str, ...] = ("activities", "services")


class Config(BaseModel):
    """Settings for a single pipeline run.

    Instances are created once by the CLI entry point (or by tests) and then
    handed to ``Pipeline``, which passes them on to the mutator.
    """

    project_root: Path = Field(default=Path("."))
    plan: str = Field(default="activities", description="Name of the mutation plan to apply")
    app_name: str = Field(
        default="", description="Rails application name; defaults to the project directory name"
    )
    interactive: bool = Field(default=True, description="Ask for missing answers on the terminal")
    run_bundle: bool = Field(
        default=True, description="Install dependencies before the post-install hooks run"
    )
    rails_bin: str = Field(default="bin/rails")
    bundle_command: list[str] = Field(default_factory=lambda: ["bundle", "install"])
    commit_message: str = Field(default="Initial commit")
    skip_existing_blocks: bool = Field(
        default=False,
        description="Skip injections whose block is already present instead of inserting again",
    )
    db_username: str | None = Field(default=None)
    db_password: str | None = Field(default=None)
    templates_dir: Path | None = Field(default=None)

    @field_validator("plan")
    @classmethod
    def _known_plan(cls, value: str) -> str:
        if value not in PLAN_NAMES:
            raise ValueError(f"unknown plan {value!r}, expected one of {', '.join(PLAN_NAMES)}")
        return value

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def gemfile_path(self) -> Path:
        """Path to the project's ``Gemfile``."""
        return self.project_root / "Gemfile"

    @property
    def routes_path(self) -> Path:
        """Path to ``config/routes.rb``."""
        return self.project_root / "config" / "routes.rb"

    @property
    def application_path(self) -> Path:
        """Path to ``config/application.rb``."""
        return self.project_root / "config" / "application.rb"

    @property
    def resolved_app_name(self) -> str:
        """The configured app name, or the project directory name."""
        return self.app_name or self.project_root.resolve().name

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            APPTEMPLATE_PROJECT_ROOT, APPTEMPLATE_PLAN, APPTEMPLATE_APP_NAME,
            APPTEMPLATE_NO_INPUT, APPTEMPLATE_SKIP_BUNDLE, APPTEMPLATE_RAILS_BIN,
            APPTEMPLATE_COMMIT_MESSAGE, APPTEMPLATE_SKIP_EXISTING,
            APPTEMPLATE_DB_USERNAME, APPTEMPLATE_DB_PASSWORD.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("APPTEMPLATE_PROJECT_ROOT"):
            kwargs["project_root"] = Path(os.environ["APPTEMPLATE_PROJECT_ROOT"])
        if os.environ.get("APPTEMPLATE_PLAN"):
            kwargs["plan"] = os.environ["APPTEMPLATE_PLAN"]
        if os.environ.get("APPTEMPLATE_APP_NAME"):
            kwargs["app_name"] = os.environ["APPTEMPLATE_APP_NAME"]
        if os.environ.get("APPTEMPLATE_RAILS_BIN"):
            kwargs["rails_bin"] = os.environ["APPTEMPLATE_RAILS_BIN"]
        if os.environ.get("APPTEMPLATE_COMMIT_MESSAGE"):
            kwargs["commit_message"] = os.environ["APPTEMPLATE_COMMIT_MESSAGE"]
        if "APPTEMPLATE_DB_USERNAME" in os.environ:
            kwargs["db_username"] = os.environ["APPTEMPLATE_DB_USERNAME"]
        if "APPTEMPLATE_DB_PASSWORD" in os.environ:
            kwargs["db_password"] = os.environ["APPTEMPLATE_DB_PASSWORD"]

        kwargs["interactive"] = not _env_flag("APPTEMPLATE_NO_INPUT")
        kwargs["run_bundle"] = not _env_flag("APPTEMPLATE_SKIP_BUNDLE")
        kwargs["skip_existing_blocks"] = _env_flag("APPTEMPLATE_SKIP_EXISTING")

        return cls(**kwargs)


def _env_flag(name: str) -> bool:
    """Interpret an environment variable as a boolean switch."""
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
