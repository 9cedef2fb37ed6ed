"""Activities plan: Postgres credentials, optional token auth, RSpec.

Business logic lives in ``app/activities``.  ``--devise`` adds token
authentication with a users endpoint; ``--scaffold=<resource>`` generates
CRUD boilerplate once the gems are installed.
"""

from __future__ import annotations

from ..mutator import Anchor, ProjectMutator, gem_line
from .base import MutationPlan

DEVISE_TOKEN_AUTH_GIT = "https://github.com/lynndylanhurley/devise_token_auth"

DEV_TEST_GEMS = [
    gem_line("dotenv-rails"),
    gem_line("rubocop", require=False),
    gem_line("rspec-rails"),
    gem_line("factory_bot_rails"),
]
DEVELOPMENT_GEMS = [gem_line("web-console")]
TEST_GEMS = [
    gem_line("shoulda-matchers"),
    gem_line("simplecov", require=False),
    gem_line("webmock"),
    gem_line("faker"),
]


class ActivitiesPlan(MutationPlan):
    name = "activities"
    description = "Activity objects, optional devise token auth, RSpec and SimpleCov"
    needs_credentials = True

    def apply(self, mutator: ProjectMutator) -> None:
        ctx = mutator.context

        mutator.say("Setting up the database")
        self._database(mutator)

        if ctx.use_devise:
            mutator.say("Using devise...")
            self._devise(mutator)

        mutator.say("Application config")
        mutator.application("config.autoload_paths += %W(#{config.root}/lib)")
        mutator.file("app/activities/base_activity.rb", "activities/base_activity.rb.j2")

        mutator.say("Initializing error serializer")
        mutator.file("lib/error_serializer.rb", "shared/error_serializer.rb.j2")
        mutator.inject_into_file(
            "app/controllers/application_controller.rb",
            mutator.render("shared/rescue_handlers.rb.j2"),
            Anchor.after_pattern(r"ActionController::API\n"),
        )

        mutator.say("Configuring gems")
        mutator.gem_group(["development", "test"], DEV_TEST_GEMS)
        mutator.gem_group(["development"], DEVELOPMENT_GEMS, create=True)
        mutator.gem_group(["test"], TEST_GEMS, create=True)

        mutator.say("Rubocop config")
        mutator.file(".rubocop.yml", "shared/rubocop.yml.j2")

        mutator.say("Git ignore")
        mutator.append_to_file(".gitignore", mutator.render("activities/gitignore.j2"))

        self._post_install(mutator)

    # -- Sections ----------------------------------------------------------

    def _database(self, mutator: ProjectMutator) -> None:
        app_name = mutator.context.app_name
        credentials = mutator.render("shared/database_credentials.yml.j2")
        for env in ("development", "test"):
            mutator.inject_into_file(
                "config/database.yml",
                credentials,
                Anchor.after(f"database: {app_name}_{env}\n"),
            )
            mutator.file(f".env.{env}", "shared/env.j2")

    def _devise(self, mutator: ProjectMutator) -> None:
        mutator.gem("devise_token_auth", ">= 1.2.0", git=DEVISE_TOKEN_AUTH_GIT)

        mutator.file(
            "app/controllers/application_controller.rb",
            "activities/application_controller.rb.j2",
            force=True,
        )
        mutator.file("app/controllers/api/v1/users_controller.rb", "activities/users_controller.rb.j2")
        mutator.file("app/activities/users/users_activity.rb", "activities/users_activity.rb.j2")
        mutator.inject_into_file("db/seeds.rb", mutator.render("shared/seeds.rb.j2"))
        mutator.file("spec/activities/users/users_activity_spec.rb", "activities/users_activity_spec.rb.j2")
        mutator.file("spec/factories/users.rb", "activities/users_factory.rb.j2")
        mutator.route(mutator.render("shared/users_routes.rb.j2"))

    def _post_install(self, mutator: ProjectMutator) -> None:
        ctx = mutator.context
        runner = mutator.runner

        mutator.after_bundle_rails("db:drop db:create")
        if ctx.use_devise:
            mutator.after_bundle_rails("generate devise:install")
            mutator.after_bundle_rails("generate devise_token_auth:install User api/v1/auth")

        async def _rspec() -> None:
            await runner.generate("rspec:install")
            mutator.inject_into_file(
                "spec/spec_helper.rb",
                mutator.render("activities/simplecov.rb.j2"),
                Anchor.before("RSpec.configure do |config|"),
            )

        mutator.after_bundle(_rspec, name="rspec:install")

        scaffold = ctx.get("scaffold")
        if scaffold:
            mutator.after_bundle(
                lambda: runner.generate("scaffold", scaffold), name=f"scaffold {scaffold}"
            )

        mutator.after_bundle_rails("db:migrate")
        mutator.after_bundle_rails("db:seed")
        mutator.after_bundle_run(["bin/spring", "stop"], allow_failure=True)
        mutator.initial_commit()
