"""Services plan: devise token auth with a service layer and Minitest."""

from __future__ import annotations

from ..mutator import Anchor, ProjectMutator, gem_line
from .base import MutationPlan

DEV_TEST_GEMS = [
    gem_line("dotenv-rails"),
    gem_line("rubocop", require=False),
    gem_line("factory_bot_rails"),
]
DEVELOPMENT_GEMS = [gem_line("web-console")]
TEST_GEMS = [
    gem_line("shoulda-matchers"),
    gem_line("simplecov", require=False),
    gem_line("webmock"),
    gem_line("faker"),
]


class ServicesPlan(MutationPlan):
    name = "services"
    description = "Service objects, devise token auth, Minitest and SimpleCov"

    def apply(self, mutator: ProjectMutator) -> None:
        mutator.say("Configuring gems")
        mutator.gem("devise_token_auth")
        mutator.gem_group(["development", "test"], DEV_TEST_GEMS)
        mutator.gem_group(["development"], DEVELOPMENT_GEMS, create=True)
        mutator.gem_group(["test"], TEST_GEMS, create=True)

        mutator.file(".rubocop.yml", "shared/rubocop.yml.j2")

        mutator.say("Controllers and services")
        mutator.file(
            "app/controllers/application_controller.rb",
            "services/application_controller.rb.j2",
            force=True,
        )
        mutator.file("app/controllers/api/v1/users_controller.rb", "services/users_controller.rb.j2")
        mutator.file("app/services/api/v1/users_service.rb", "services/users_service.rb.j2")

        mutator.inject_into_file("db/seeds.rb", mutator.render("shared/seeds.rb.j2"))

        mutator.say("Tests")
        mutator.file("test/services/api/v1/users_service_test.rb", "services/users_service_test.rb.j2")
        mutator.file("test/fixtures/users.yml", "services/users_fixture.yml.j2")
        mutator.inject_into_file(
            "test/test_helper.rb",
            mutator.render("services/simplecov.rb.j2"),
            Anchor.after_pattern(r"""require ["']rails/test_help["']"""),
        )

        mutator.route(mutator.render("shared/users_routes.rb.j2"))
        mutator.append_to_file(".gitignore", mutator.render("services/gitignore.j2"))

        mutator.after_bundle_rails("db:drop db:create")
        mutator.after_bundle_rails("generate devise:install")
        mutator.after_bundle_rails("generate devise_token_auth:install User api/v1/auth")
        mutator.after_bundle_rails("db:migrate")
        mutator.after_bundle_rails("db:seed")
        mutator.after_bundle_run(["bin/spring", "stop"], allow_failure=True)
        mutator.initial_commit()
