"""Ordered execution of deferred post-install actions."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from rich.markup import escape

from ..utils import console

HookAction = Callable[[], Union[Awaitable[Any], Any]]


@dataclass
class Hook:
    """A zero-argument action with its registration position."""

    index: int
    name: str
    action: HookAction


class HookExecutor:
    """Collects hooks while a plan is applied and runs them afterwards.

    Hooks run strictly in registration order, one at a time.  The first hook
    that raises stops the run and its exception propagates; hooks after it
    never run.  Each registered hook runs at most once.
    """

    def __init__(self) -> None:
        self._hooks: list[Hook] = []
        self._next_index = 0

    def __len__(self) -> int:
        return len(self._hooks)

    @property
    def pending(self) -> list[Hook]:
        return list(self._hooks)

    def register(self, action: HookAction, name: str | None = None) -> Hook:
        hook = Hook(
            index=self._next_index,
            name=name or getattr(action, "__name__", f"hook-{self._next_index}"),
            action=action,
        )
        self._next_index += 1
        self._hooks.append(hook)
        return hook

    async def run_all(self) -> list[Hook]:
        """Run every pending hook in order and return the ones that completed.

        A hook may register further hooks; they run after the hooks already
        queued.  On failure the remaining hooks are discarded.
        """
        completed: list[Hook] = []
        try:
            while self._hooks:
                hook = self._hooks.pop(0)
                console.print(f"[dim]  hook {hook.index}: {escape(hook.name)}[/dim]")
                result = hook.action()
                if inspect.isawaitable(result):
                    await result
                completed.append(hook)
        finally:
            self._hooks.clear()
        return completed
