"""Shared fixtures for shipyard tests.

Engine tests run real shell commands against a temporary directory through
``LocalExecutor``; only ``git clone`` is served from a local fixture tree.
"""

import shlex
from pathlib import Path

import pytest

from shipyard.constants import DeploymentStrategy
from shipyard.core.release_manager import ReleaseManager
from shipyard.core.script_runner import ScriptRunner
from shipyard.executors.local import LocalExecutor
from shipyard.models.application import Application, ApplicationKind
from shipyard.models.deployment import Deployment
from shipyard.models.server import Server
from shipyard.services.deployment_service import DeploymentOrchestrator
from shipyard.services.rollback_service import RollbackManager
from shipyard.storage.memory import MemoryDeploymentStore

SIMPLE_SCRIPT = """# Build
cd $DEPLOY_PATH
echo "built $APP_NAME from $BRANCH" > BUILD
"""


class FakeCloneExecutor(LocalExecutor):
    """Local executor that serves ``git clone -b BRANCH SOURCE DEST`` by copying SOURCE"""

    async def _do_execute(self, command, timeout):
        if command.startswith("git clone "):
            parts = shlex.split(command)
            source, dest = parts[4], parts[5]
            command = (
                f"test -d {shlex.quote(source)} || {{ echo 'fatal: repository {source} not found'; exit 128; }}; "
                f"mkdir -p {shlex.quote(dest)} && cp -R {shlex.quote(source)}/. {shlex.quote(dest)}/"
            )
        return await super()._do_execute(command, timeout)


class FakeExecutorFactory:
    """Executor factory counting created executors"""

    def __init__(self):
        self.created = []

    def create(self, server):
        executor = FakeCloneExecutor(server)
        self.created.append(executor)
        return executor


@pytest.fixture
def source_repo(tmp_path) -> Path:
    """A checked-out application tree standing in for the repository"""
    repo = tmp_path / "repo"
    (repo / "storage" / "app").mkdir(parents=True)
    (repo / "storage" / "app" / "from-git.txt").write_text("tracked\n")
    (repo / "bootstrap" / "cache").mkdir(parents=True)
    (repo / "public").mkdir()
    (repo / "public" / "index.html").write_text("<h1>hello</h1>\n")
    (repo / "README.md").write_text("# app\n")
    return repo


@pytest.fixture
def server() -> Server:
    return Server(name="local", is_local=True)


@pytest.fixture
def make_app(tmp_path, server, source_repo):
    """Factory for applications deployed under the temporary directory"""

    def _make(name="shop", kind=ApplicationKind.LARAVEL, **kwargs):
        kwargs.setdefault("deploy_script", SIMPLE_SCRIPT)
        kwargs.setdefault("deploy_path", str(tmp_path / "srv" / name))
        kwargs.setdefault("repository_url", str(source_repo))
        return Application(name=name, server=server, kind=kind, **kwargs)

    return _make


@pytest.fixture
def store() -> MemoryDeploymentStore:
    return MemoryDeploymentStore()


@pytest.fixture
def executor_factory() -> FakeExecutorFactory:
    return FakeExecutorFactory()


@pytest.fixture
def release_manager(tmp_path) -> ReleaseManager:
    return ReleaseManager(ScriptRunner(tmp_dir=str(tmp_path / "tmp")))


@pytest.fixture
def orchestrator(store, executor_factory, release_manager) -> DeploymentOrchestrator:
    return DeploymentOrchestrator(
        store, executor_factory, release_manager, release_manager.script_runner)


@pytest.fixture
def rollback_manager(store, executor_factory, release_manager) -> RollbackManager:
    return RollbackManager(store, executor_factory, release_manager)


@pytest.fixture
def new_deployment(store):
    """Create a pending deployment record"""

    async def _new(application, **kwargs):
        return await store.create(Deployment(application=application.name, **kwargs))

    return _new


def current_target(application) -> str:
    """Resolved path of ``current``, or empty string when it does not resolve"""
    current = Path(application.current_path)
    if not current.exists():
        return ""
    return str(current.resolve())


def release_names(application):
    releases = Path(application.releases_path)
    if not releases.is_dir():
        return []
    return sorted(p.name for p in releases.iterdir())


def in_place(make_app, **kwargs):
    return make_app(strategy=DeploymentStrategy.IN_PLACE, **kwargs)
