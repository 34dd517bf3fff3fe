"""Tests for configuration loading and validation"""

import textwrap
import unittest

import pytest

from shipyard.api.exceptions import ConfigError
from shipyard.constants import DeploymentStrategy
from shipyard.models.application import ApplicationKind
from shipyard.models.config import ShipyardConfig
from shipyard.services.config_service import ConfigService

CONFIG_YAML = textwrap.dedent("""\
    state_file: state/deployments.json

    servers:
      web-1:
        host: 10.0.0.5
        username: deploy
        private_key_path: ~/.ssh/id_ed25519
      here:
        local: true

    git_providers:
      github:
        type: github
        access_token: ${SHIPYARD_TEST_TOKEN}

    applications:
      shop:
        server: web-1
        repository: git@github.com:acme/shop.git
        type: laravel
        deploy_path: /var/www/shop
        releases_to_keep: 3
        git_provider: github
        environment:
          APP_ENV: production
          APP_DEBUG: false
      docs:
        server: here
        repository: https://github.com/acme/docs
        strategy: in_place
        branch: gh-pages
""")


def base_config(**app_overrides):
    application = {"server": "web-1", "repository": "acme/shop"}
    application.update(app_overrides)
    return {
        "servers": {"web-1": {"host": "10.0.0.5"}},
        "applications": {"shop": application},
    }


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("SHIPYARD_TEST_TOKEN", "ghp_secret")
    path = tmp_path / "shipyard.yaml"
    path.write_text(CONFIG_YAML)
    return path


def test_load_config_file(config_file, tmp_path):
    config = ConfigService(config_file).load_config()

    assert config.state_file == str(tmp_path / "state" / "deployments.json")
    assert config.servers["here"].is_local
    assert config.servers["web-1"].username == "deploy"
    assert config.git_providers["github"].access_token == "ghp_secret"

    shop = config.get_application("shop")
    assert shop.kind == ApplicationKind.LARAVEL
    assert shop.uses_atomic_deployments
    assert shop.releases_to_keep == 3
    assert shop.git_provider is config.git_providers["github"]
    assert shop.environment == {"APP_ENV": "production", "APP_DEBUG": "False"}

    docs = config.get_application("docs")
    assert docs.strategy == DeploymentStrategy.IN_PLACE
    assert docs.kind == ApplicationKind.STATIC
    assert docs.branch == "gh-pages"
    assert docs.deploy_path == "/var/www/shipyard/docs"


def test_config_path_from_environment(config_file, monkeypatch):
    monkeypatch.setenv("SHIPYARD_CONFIG", str(config_file))
    assert ConfigService().config_path == config_file


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        ConfigService(tmp_path / "absent.yaml").load_config()


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("servers: [unclosed\n")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        ConfigService(path).load_config()


class TestConfigValidation(unittest.TestCase):
    """Test cases for ShipyardConfig.from_dict"""

    def assertRejected(self, data, fragment):
        with self.assertRaises(ConfigError) as ctx:
            ShipyardConfig.from_dict(data)
        self.assertIn(fragment, str(ctx.exception))

    def test_empty_document_is_valid(self):
        config = ShipyardConfig.from_dict(None)
        self.assertEqual(config.applications, {})

    def test_root_must_be_mapping(self):
        self.assertRejected(["not", "a", "mapping"], "root must be a mapping")

    def test_unknown_server(self):
        self.assertRejected(base_config(server="db-9"), "unknown server")

    def test_unknown_git_provider(self):
        self.assertRejected(base_config(git_provider="gitea"), "unknown git provider")

    def test_missing_repository(self):
        self.assertRejected(base_config(repository=""), "has no repository")

    def test_invalid_type(self):
        self.assertRejected(base_config(type="django"), "invalid type 'django'")

    def test_invalid_strategy(self):
        self.assertRejected(base_config(strategy="blue_green"), "invalid strategy")

    def test_releases_to_keep_bounds(self):
        self.assertRejected(base_config(releases_to_keep=0), "at least 1")
        self.assertRejected(base_config(releases_to_keep="many"), "must be an integer")

    def test_environment_must_be_mapping(self):
        self.assertRejected(base_config(environment=["A=1"]), "environment must be a mapping")

    def test_provider_requires_credentials(self):
        data = base_config()
        data["git_providers"] = {"github": {"type": "github"}}
        self.assertRejected(data, "needs either private_key or access_token")

    def test_provider_type_checked(self):
        data = base_config()
        data["git_providers"] = {"svn": {"type": "subversion", "access_token": "t"}}
        self.assertRejected(data, "invalid type")

    def test_unknown_application_lists_known(self):
        config = ShipyardConfig.from_dict(base_config())
        with self.assertRaises(ConfigError) as ctx:
            config.get_application("blog")
        self.assertIn("configured: shop", str(ctx.exception))
