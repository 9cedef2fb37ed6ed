"""Run context collection.

Gathers command-line flags, prompt answers and derived values into a frozen
``RunContext`` that every mutation step reads from.
"""

from __future__ import annotations

import argparse
import shlex
from typing import Any, Callable, Sequence

from pydantic import BaseModel, ConfigDict
from rich.prompt import Prompt

from .config import Config
from .errors import InvalidCommandError
from .utils import console, env_var_prefix, rails_app_name

DEFAULT_DB_USERNAME = "postgres"
DEFAULT_DB_PASSWORD = ""

AskFn = Callable[[str, str, bool], str]


class RunContext(BaseModel):
    """Resolved run-time parameters.  Immutable once created.

    ``app_name`` is the Rails application name as written into
    ``database.yml``.  ``app_name_upper`` is its environment variable prefix:
    upper-cased, with every character outside ``[A-Za-z0-9_]`` replaced by
    ``_``.
    """

    model_config = ConfigDict(frozen=True)

    app_name: str
    app_name_upper: str
    plan: str
    use_devise: bool = False
    scaffold: str | None = None
    db_username: str = DEFAULT_DB_USERNAME
    db_password: str = DEFAULT_DB_PASSWORD

    def get(self, key: str, default: Any = None) -> Any:
        return self.as_template_vars().get(key, default)

    def as_template_vars(self) -> dict[str, Any]:
        """Return a fresh dict of every value, for template rendering."""
        return self.model_dump()


def parse_flags(argv: Sequence[str]) -> argparse.Namespace:
    """Pick the template flags out of *argv*, ignoring everything else."""
    parser = argparse.ArgumentParser(add_help=False, allow_abbrev=False)
    parser.add_argument("--devise", action="store_true", default=False)
    parser.add_argument("--scaffold", default=None)
    flags, _unknown = parser.parse_known_args(list(argv))
    return flags


def _rich_ask(question: str, default: str, password: bool) -> str:
    return Prompt.ask(
        question,
        default=default,
        show_default=False,
        password=password,
        console=console,
    )


class ContextCollector:
    """Builds the ``RunContext`` for a run.

    Answers are taken from the config first; anything still missing is asked
    on the terminal when the config is interactive, and otherwise falls back to
    its documented default.
    """

    def __init__(self, config: Config, ask: AskFn | None = None) -> None:
        self.config = config
        self.ask = ask or _rich_ask

    def collect(self, argv: Sequence[str], *, needs_credentials: bool = True) -> RunContext:
        flags = parse_flags(argv)
        app_name = rails_app_name(self.config.resolved_app_name)

        scaffold = (flags.scaffold or "").strip() or None
        if scaffold is not None:
            try:
                shlex.split(scaffold)
            except ValueError as exc:
                raise InvalidCommandError(scaffold, str(exc)) from exc

        username = DEFAULT_DB_USERNAME
        password = DEFAULT_DB_PASSWORD
        if needs_credentials:
            username = self._answer(
                self.config.db_username,
                f"Postgres username (default: {DEFAULT_DB_USERNAME})",
                DEFAULT_DB_USERNAME,
            )
            password = self._answer(
                self.config.db_password,
                "Postgres password (blank by default)",
                DEFAULT_DB_PASSWORD,
                password=True,
            )

        return RunContext(
            app_name=app_name,
            app_name_upper=env_var_prefix(app_name),
            plan=self.config.plan,
            use_devise=flags.devise,
            scaffold=scaffold,
            db_username=username,
            db_password=password,
        )

    def _answer(
        self,
        configured: str | None,
        question: str,
        default: str,
        *,
        password: bool = False,
    ) -> str:
        if configured is not None:
            return configured or default
        if not self.config.interactive:
            return default
        answer = self.ask(question, default, password)
        # A blank answer means "use the default".
        return answer.strip() or default
