"""Project mutation primitives.

Quick usage::

    from apptemplate.mutator import Anchor, ProjectMutator

    mutator = ProjectMutator(config, context)
    mutator.inject_into_file("db/seeds.rb", "User.create!(email: 'a@b.c')\n")
    mutator.gem("rubocop", require=False, group=["development", "test"])
    mutator.after_bundle_rails("db:migrate")
    await mutator.finalize()
"""

from apptemplate.mutator.hooks import Hook, HookExecutor
from apptemplate.mutator.manifest import ManifestEditor, gem_line
from apptemplate.mutator.patcher import Anchor, AnchorKind, IdempotencyPolicy, PatchRequest, TextPatcher
from apptemplate.mutator.project import ProjectMutator
from apptemplate.mutator.runner import CommandInvocation, CommandResult, CommandRunner
from apptemplate.mutator.templates import TemplateRenderer
from apptemplate.mutator.writer import FileSpec, FileWriter

__all__ = [
    "Anchor",
    "AnchorKind",
    "CommandInvocation",
    "CommandResult",
    "CommandRunner",
    "FileSpec",
    "FileWriter",
    "Hook",
    "HookExecutor",
    "IdempotencyPolicy",
    "ManifestEditor",
    "PatchRequest",
    "ProjectMutator",
    "TemplateRenderer",
    "TextPatcher",
    "gem_line",
]
