"""Tests for the activities plan (apptemplate.plans.activities)."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from apptemplate.config import Config
from apptemplate.context import ContextCollector
from apptemplate.errors import AnchorNotFoundError
from apptemplate.mutator.project import ProjectMutator
from apptemplate.plans.activities import ActivitiesPlan

pytestmark = pytest.mark.unit


@pytest.fixture
def apply_plan(make_config, make_context):
    def _apply(**context_overrides) -> ProjectMutator:
        mutator = ProjectMutator(make_config(), make_context(**context_overrides))
        ActivitiesPlan().apply(mutator)
        return mutator

    return _apply


class TestFileMutations:
    def test_database_credentials_injected_for_dev_and_test(self, apply_plan, read):
        apply_plan()
        database = read("config/database.yml")
        assert database.count("<%= ENV['BLOG_API_DATABASE_USERNAME'] %>") == 2
        assert (
            "database: blog_api_test\n"
            "  username: <%= ENV['BLOG_API_DATABASE_USERNAME'] %>\n"
        ) in database
        assert "database: blog_api_production\n" in database

    def test_database_yml_stays_valid_yaml(self, apply_plan, read):
        apply_plan()
        data = yaml.safe_load(read("config/database.yml"))
        assert data["development"]["adapter"] == "postgresql"
        assert data["development"]["username"].startswith("<%= ENV[")
        assert "username" not in data["production"]

    def test_env_files_carry_answers(self, apply_plan, read):
        apply_plan(db_username="deploy", db_password="hunter2")
        assert read(".env.development") == (
            "export BLOG_API_DATABASE_USERNAME=deploy\n"
            "export BLOG_API_DATABASE_PASSWORD=hunter2\n"
        )
        assert read(".env.test") == read(".env.development")

    def test_application_autoload_path(self, apply_plan, read):
        apply_plan()
        assert "    config.autoload_paths += %W(#{config.root}/lib)\n" in read("config/application.rb")

    def test_error_serializer_and_rescue_handlers(self, apply_plan, read):
        apply_plan()
        assert read("lib/error_serializer.rb").startswith("module ErrorSerializer\n")
        controller = read("app/controllers/application_controller.rb")
        assert controller.startswith(
            "class ApplicationController < ActionController::API\n"
            "  rescue_from ActiveRecord::RecordNotFound, with: :not_found\n"
        )
        assert controller.endswith("  end\n\nend\n")

    def test_gems_land_in_their_groups(self, apply_plan, read):
        apply_plan()
        gemfile = read("Gemfile")
        assert (
            '  gem "debug", platforms: %i[ mri windows ]\n'
            "  gem 'dotenv-rails'\n"
            "  gem 'rubocop', require: false\n"
            "  gem 'rspec-rails'\n"
            "  gem 'factory_bot_rails'\n"
            "end\n"
        ) in gemfile
        assert "group :development do\n  # gem \"spring\"\n  gem 'web-console'\nend\n" in gemfile
        assert gemfile.endswith(
            "group :test do\n"
            "  gem 'shoulda-matchers'\n"
            "  gem 'simplecov', require: false\n"
            "  gem 'webmock'\n"
            "  gem 'faker'\n"
            "end\n"
        )

    def test_rubocop_and_gitignore(self, apply_plan, read):
        apply_plan()
        assert yaml.safe_load(read(".rubocop.yml"))["AllCops"]["Exclude"][0] == "db/**"
        assert read(".gitignore").endswith("/tmp/*\n.byebug_history\n/coverage\n.DS_Store\n.env*\n")

    def test_no_devise_files_without_flag(self, apply_plan, rails_project: Path, read):
        apply_plan()
        assert not (rails_project / "app/activities/users").exists()
        assert "devise_token_auth" not in read("Gemfile")
        assert "namespace :api" not in read("config/routes.rb")

    def test_missing_database_entry_fails(self, apply_plan, rails_project: Path):
        (rails_project / "config/database.yml").write_text("default: {}\n", encoding="utf-8")
        with pytest.raises(AnchorNotFoundError):
            apply_plan()


class TestDevise:
    def test_devise_files_and_gem(self, apply_plan, rails_project: Path, read):
        apply_plan(use_devise=True)

        assert (
            "gem 'devise_token_auth', '>= 1.2.0', "
            "git: 'https://github.com/lynndylanhurley/devise_token_auth'"
        ) in read("Gemfile")
        for rel in (
            "app/controllers/api/v1/users_controller.rb",
            "app/activities/users/users_activity.rb",
            "spec/activities/users/users_activity_spec.rb",
            "spec/factories/users.rb",
        ):
            assert (rails_project / rel).is_file(), rel

        controller = read("app/controllers/application_controller.rb")
        assert "DeviseTokenAuth::Concerns::SetUserByToken" in controller
        assert "rescue_from ActiveRecord::RecordNotFound" in controller
        assert read("db/seeds.rb").endswith("password_confirmation: 'P@ssw0rd' })\n")
        assert "      resources :users, only: %i(index)\n    end\n  end\nend\n" in read(
            "config/routes.rb"
        )

    def test_devise_generators_queued(self, apply_plan):
        mutator = apply_plan(use_devise=True)
        names = [h.name for h in mutator.hooks.pending]
        assert names.index("rails generate devise:install") < names.index("rspec:install")
        assert "rails generate devise_token_auth:install User api/v1/auth" in names


class TestHooks:
    def test_hook_order(self, apply_plan):
        names = [h.name for h in apply_plan().hooks.pending]
        assert names == [
            "bundle install",
            "rails db:drop db:create",
            "rspec:install",
            "rails db:migrate",
            "rails db:seed",
            "bin/spring stop",
            "git init",
            "git add",
            "git commit",
        ]

    def test_scaffold_hook_before_migrate(self, apply_plan):
        names = [h.name for h in apply_plan(scaffold="Post title:string").hooks.pending]
        assert names.index("scaffold Post title:string") == names.index("rails db:migrate") - 1

    @pytest.mark.asyncio
    async def test_rspec_hook_patches_spec_helper(self, apply_plan, mock_commands, read):
        mutator = apply_plan(scaffold="Post title:string")
        await mutator.finalize()

        helper = read("spec/spec_helper.rb")
        assert helper.startswith("require 'simplecov'\n")
        assert "end\n\nRSpec.configure do |config|\n" in helper
        assert ["bin/rails", "generate", "scaffold", "Post", "title:string"] in mock_commands.commands
        assert mock_commands.commands[-1] == ["git", "commit", "-a", "-m", "Initial commit"]


class TestProjectNames:
    def test_hyphenated_project_directory(self, make_rails_project):
        root = make_rails_project("blog-api")
        config = Config(project_root=root, interactive=False)
        mutator = ProjectMutator(config, ContextCollector(config).collect([]))

        ActivitiesPlan().apply(mutator)

        database = (root / "config/database.yml").read_text(encoding="utf-8")
        assert (
            "database: blog-api_development\n"
            "  username: <%= ENV['BLOG_API_DATABASE_USERNAME'] %>\n"
        ) in database
        assert (root / ".env.test").read_text(encoding="utf-8").startswith(
            "export BLOG_API_DATABASE_USERNAME=postgres\n"
        )
