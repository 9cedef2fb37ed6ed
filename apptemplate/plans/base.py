"""Common shape of a mutation plan."""

from __future__ import annotations

from ..mutator import ProjectMutator


class MutationPlan:
    """A named, fixed set of file mutations and post-install hooks.

    Subclasses implement :meth:`apply`, which performs file mutations right
    away and registers every external command as a hook on the mutator.
    """

    name: str = ""
    description: str = ""
    # Whether the collector should ask for database credentials.
    needs_credentials: bool = False

    def apply(self, mutator: ProjectMutator) -> None:
        raise NotImplementedError
