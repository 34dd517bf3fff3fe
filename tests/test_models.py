"""Tests for application, deployment and git provider models"""

import unittest

from shipyard.constants import DeploymentStatus, DeploymentStrategy, GitProviderType
from shipyard.models.application import Application, ApplicationKind
from shipyard.models.deployment import Deployment
from shipyard.models.git_provider import GitProvider
from shipyard.models.server import Server
from shipyard.utils.template_utils import render_env_file, substitute_variables


def make_app(**kwargs) -> Application:
    kwargs.setdefault("name", "My Shop")
    kwargs.setdefault("server", Server(name="web-1", host="10.0.0.5"))
    kwargs.setdefault("repository_url", "git@github.com:acme/shop.git")
    return Application(**kwargs)


class TestApplicationKind(unittest.TestCase):
    """Test cases for kind profiles"""

    def test_laravel_is_stateful(self):
        profile = ApplicationKind.LARAVEL.profile
        self.assertTrue(profile.stateful)
        self.assertIn("storage/app", profile.shared_paths)
        self.assertIn(".env", profile.shared_paths)
        self.assertEqual(profile.writable_paths, ("storage", "bootstrap/cache"))

    def test_stateless_kinds(self):
        for kind in (ApplicationKind.NODEJS, ApplicationKind.STATIC):
            with self.subTest(kind=kind):
                self.assertFalse(kind.profile.stateful)
                self.assertEqual(kind.profile.shared_paths, ())


class TestApplication(unittest.TestCase):
    """Test cases for Application"""

    def test_default_deploy_path_uses_slug(self):
        app = make_app()
        self.assertEqual(app.slug, "my-shop")
        self.assertEqual(app.deploy_path, "/var/www/shipyard/my-shop")

    def test_layout_paths(self):
        app = make_app(deploy_path="/srv/shop/")
        self.assertEqual(app.releases_path, "/srv/shop/releases")
        self.assertEqual(app.shared_path, "/srv/shop/shared")
        self.assertEqual(app.current_path, "/srv/shop/current")
        self.assertEqual(app.release_path("20250101000000000000"),
                         "/srv/shop/releases/20250101000000000000")

    def test_document_root_and_logs(self):
        atomic = make_app(kind=ApplicationKind.LARAVEL, deploy_path="/srv/shop")
        self.assertEqual(atomic.document_root, "/srv/shop/current/public")
        self.assertEqual(atomic.logs_path, "/srv/shop/shared/storage/logs")

        legacy = make_app(kind=ApplicationKind.LARAVEL, deploy_path="/srv/shop",
                          strategy=DeploymentStrategy.IN_PLACE)
        self.assertEqual(legacy.document_root, "/srv/shop/public")
        self.assertEqual(legacy.logs_path, "/srv/shop/storage/logs")

        self.assertIsNone(make_app(kind=ApplicationKind.NODEJS).logs_path)

    def test_shared_path_override(self):
        app = make_app(kind=ApplicationKind.LARAVEL, shared_paths=["uploads"])
        self.assertEqual(app.effective_shared_paths, ["uploads"])
        self.assertEqual(app.effective_writable_paths, ["storage", "bootstrap/cache"])

    def test_stateless_app_with_shared_override_becomes_stateful(self):
        app = make_app(kind=ApplicationKind.STATIC, shared_paths=["media"])
        self.assertTrue(app.is_stateful)

    def test_resolve_custom_script(self):
        app = make_app(
            branch="release/2.x",
            node_version="20",
            domain="shop.example.com",
            deploy_script="cd $DEPLOY_PATH\necho ${BRANCH} $APP_NAME $DOMAIN $NODE_VERSION $HOME\n",
        )
        script = app.resolve_deploy_script("/srv/r1")
        self.assertEqual(script, "cd /srv/r1\necho release/2.x my-shop shop.example.com 20 $HOME\n")

    def test_default_script_depends_on_strategy(self):
        atomic = make_app(kind=ApplicationKind.LARAVEL).resolve_deploy_script("/srv/r1")
        legacy = make_app(kind=ApplicationKind.LARAVEL,
                          strategy=DeploymentStrategy.IN_PLACE).resolve_deploy_script("/srv/app")

        self.assertIn("cd /srv/r1", atomic)
        self.assertNotIn("git pull", atomic)
        self.assertIn("storage:link", atomic)
        self.assertIn("git pull origin main", legacy)

    def test_post_rollback_commands(self):
        laravel = make_app(kind=ApplicationKind.LARAVEL, deploy_path="/srv/shop")
        self.assertEqual(laravel.post_rollback_commands()[0],
                         "cd /srv/shop/current && php artisan optimize:clear")
        self.assertEqual(make_app(kind=ApplicationKind.NODEJS).post_rollback_commands(),
                         ["pm2 restart my-shop"])
        self.assertEqual(make_app(kind=ApplicationKind.STATIC).post_rollback_commands(), [])


class TestTemplateUtils(unittest.TestCase):
    """Test cases for script substitution and env rendering"""

    def test_whole_identifier_only(self):
        result = substitute_variables("$BRANCH $BRANCH_NAME ${BRANCH}x", {"BRANCH": "main"})
        self.assertEqual(result, "main $BRANCH_NAME mainx")

    def test_unknown_dollar_expressions_untouched(self):
        script = 'echo "$1" $$ $HOME ${PATH}'
        self.assertEqual(substitute_variables(script, {"BRANCH": "main"}), script)

    def test_render_env_quotes_when_needed(self):
        content = render_env_file({
            "APP_ENV": "production",
            "APP_NAME": "My Shop",
            "SECRET": 'a"b#c',
            "EMPTY": "",
        })
        self.assertEqual(content.splitlines(), [
            "APP_ENV=production",
            'APP_NAME="My Shop"',
            'SECRET="a\\"b#c"',
            "EMPTY=",
        ])


class TestDeployment(unittest.TestCase):
    """Test cases for Deployment"""

    def test_log_lines_are_timestamped(self):
        deployment = Deployment(application="shop")
        deployment.append_log("Cloning repository...")
        self.assertRegex(deployment.log, r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] Cloning repository\.\.\.\n$")

    def test_subscribers_receive_lines_and_completion(self):
        deployment = Deployment(application="shop", id=7)
        events = []
        unsubscribe = deployment.subscribe(events.append)

        deployment.append_log("one")
        deployment.mark_running()
        deployment.mark_success()
        unsubscribe()
        deployment.append_log("two")

        self.assertEqual(len(events), 2)
        self.assertIn("one", events[0].line)
        self.assertTrue(events[1].finished)
        self.assertEqual(events[1].status, DeploymentStatus.SUCCESS)
        self.assertFalse(deployment.is_active)

    def test_failing_listener_does_not_break_logging(self):
        deployment = Deployment(application="shop")

        def broken(event):
            raise RuntimeError("boom")

        deployment.subscribe(broken)
        deployment.append_log("still logged")
        self.assertIn("still logged", deployment.log)

    def test_dict_round_trip_keeps_timestamps(self):
        deployment = Deployment(application="shop", id=3, release_id="20250101000000000000")
        deployment.mark_running()
        deployment.mark_failed()

        restored = Deployment.from_dict(deployment.to_dict())
        self.assertEqual(restored.status, DeploymentStatus.FAILED)
        self.assertEqual(restored.started_at, deployment.started_at)
        self.assertEqual(restored.release_id, "20250101000000000000")
        self.assertIsNotNone(restored.duration)


class TestGitProvider(unittest.TestCase):
    """Test cases for GitProvider"""

    def test_parse_repository_path(self):
        cases = {
            "git@github.com:acme/shop.git": "acme/shop",
            "https://gitlab.com/group/sub/app.git": "group/sub/app",
            "https://github.com/acme/shop": "acme/shop",
            "acme/shop": "acme/shop",
            "not a url": None,
        }
        for url, expected in cases.items():
            with self.subTest(url=url):
                self.assertEqual(GitProvider.parse_repository_path(url), expected)

    def test_urls_use_custom_host(self):
        provider = GitProvider(name="gl", type=GitProviderType.GITLAB,
                               host="git.acme.io", access_token="t")
        self.assertEqual(provider.clean_https_url("git@gitlab.com:acme/shop.git"),
                         "https://git.acme.io/acme/shop.git")
        self.assertEqual(provider.ssh_url("acme/shop"), "git@git.acme.io:acme/shop.git")

    def test_remote_url_prefers_ssh_key(self):
        provider = GitProvider(name="gh", type=GitProviderType.GITHUB,
                               private_key="KEY", access_token="t")
        self.assertEqual(provider.remote_url("https://github.com/acme/shop.git"),
                         "git@github.com:acme/shop.git")

    def test_credentials_per_type(self):
        self.assertEqual(
            GitProvider(name="a", type=GitProviderType.GITLAB, access_token="t").credentials(),
            ("oauth2", "t"))
        self.assertEqual(
            GitProvider(name="b", type=GitProviderType.GITHUB, access_token="t").credentials(),
            ("x-access-token", "t"))
        self.assertEqual(
            GitProvider(name="c", type=GitProviderType.BITBUCKET, access_token="t",
                        username="jo").credentials(),
            ("jo", "t"))

    def test_normalized_private_key(self):
        provider = GitProvider(name="gh", type=GitProviderType.GITHUB,
                               private_key="-----BEGIN-----\r\nabc\r\n-----END-----\r\n\r\n")
        self.assertEqual(provider.normalized_private_key(), "-----BEGIN-----\nabc\n-----END-----\n")
