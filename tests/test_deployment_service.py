"""Tests for DeploymentOrchestrator running real shell steps locally"""

import asyncio
from pathlib import Path

import pytest

from conftest import FakeCloneExecutor, FakeExecutorFactory, current_target, in_place, release_names
from shipyard.api.exceptions import (
    CloneError,
    DeploymentCancelledError,
    ScriptError,
    TransportError,
)
from shipyard.constants import ApplicationStatus, DeploymentStatus, DeploymentStrategy
from shipyard.executors.local import LocalExecutor
from shipyard.models.application import ApplicationKind
from shipyard.utils.async_utils import run_async


def deploy(orchestrator, new_deployment, app, **kwargs):
    async def scenario():
        deployment = await new_deployment(app, **kwargs)
        return await orchestrator.run(deployment, app)

    return run_async(scenario())


def deploy_expecting(error_class, orchestrator, new_deployment, app, cancel=False):
    """Run a deployment that must fail; returns the failed record"""

    async def scenario():
        deployment = await new_deployment(app)
        event = asyncio.Event()
        if cancel:
            event.set()
        with pytest.raises(error_class):
            await orchestrator.run(deployment, app, cancel_event=event)
        return deployment

    return run_async(scenario())


class UnreachableExecutor(LocalExecutor):
    async def _do_connect(self) -> None:
        raise TransportError(f"Cannot connect to {self.server.display_name}: connection refused")


class UnreachableFactory(FakeExecutorFactory):
    def create(self, server):
        executor = UnreachableExecutor(server)
        self.created.append(executor)
        return executor


class NoUploadExecutor(FakeCloneExecutor):
    async def _do_upload(self, content, remote_path):
        return False


class NoUploadFactory(FakeExecutorFactory):
    def create(self, server):
        executor = NoUploadExecutor(server)
        self.created.append(executor)
        return executor


def test_first_atomic_deployment(make_app, orchestrator, new_deployment, store):
    app = make_app(environment={"APP_ENV": "production"})

    deployment = deploy(orchestrator, new_deployment, app, commit_hash="abc123")

    assert deployment.status == DeploymentStatus.SUCCESS
    assert deployment.is_active
    assert deployment.started_at is not None and deployment.finished_at is not None
    assert current_target(app) == str(Path(deployment.release_path).resolve())
    assert release_names(app) == [deployment.release_id]
    assert Path(deployment.release_path, "BUILD").read_text().strip() == "built shop from main"
    assert Path(app.shared_path, ".env").read_text() == "APP_ENV=production\n"
    assert Path(deployment.release_path, ".env").is_symlink()
    assert "Deployment completed successfully!" in deployment.log
    assert run_async(store.application_status(app.name)) == ApplicationStatus.ACTIVE
    assert app.status == ApplicationStatus.ACTIVE


def test_log_order_follows_pipeline(make_app, orchestrator, new_deployment):
    deployment = deploy(orchestrator, new_deployment, make_app())
    log = deployment.log

    markers = [
        "Initializing atomic deployment structure...",
        "Creating release:",
        "Cloning repository...",
        "Linking shared paths...",
        "Running deployment script...",
        "> cd ",
        "Release activated:",
        "Cleaning up old releases",
        "Deployment completed successfully!",
    ]
    positions = [log.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_retention_keeps_newest_releases(make_app, orchestrator, new_deployment, store):
    app = make_app(releases_to_keep=5)

    deployments = [deploy(orchestrator, new_deployment, app) for _ in range(6)]

    expected = sorted(d.release_id for d in deployments[1:])
    assert release_names(app) == expected
    assert current_target(app) == str(Path(deployments[-1].release_path).resolve())

    records = run_async(store.list_for_application(app.name))
    assert [d for d in records if d.is_active] == [deployments[-1]]
    assert all(d.status == DeploymentStatus.SUCCESS for d in records)


def test_release_ids_strictly_increase(make_app, orchestrator, new_deployment):
    app = make_app(name="site", kind=ApplicationKind.STATIC)
    ids = [deploy(orchestrator, new_deployment, app).release_id for _ in range(3)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_script_failure_leaves_current_untouched(make_app, orchestrator, new_deployment, store):
    app = make_app()
    good = deploy(orchestrator, new_deployment, app)

    app.deploy_script = "cd $DEPLOY_PATH\necho compiling assets\nexit 1\n"
    failed = deploy_expecting(ScriptError, orchestrator, new_deployment, app)

    assert failed.status == DeploymentStatus.FAILED
    assert not failed.is_active
    assert failed.finished_at is not None
    assert "compiling assets" in failed.log
    assert "ERROR: Deployment script failed with exit code: 1" in failed.log
    assert current_target(app) == str(Path(good.release_path).resolve())
    # The failed release stays on disk until retention removes it
    assert failed.release_id in release_names(app)
    assert run_async(store.application_status(app.name)) == ApplicationStatus.FAILED
    assert run_async(store.active_deployment(app.name)).id == good.id


def test_script_timeout_is_reported(make_app, orchestrator, new_deployment, monkeypatch):
    monkeypatch.setattr("shipyard.core.script_runner.SCRIPT_TIMEOUT", 1)
    app = make_app(deploy_script="sleep 5\n")

    failed = deploy_expecting(ScriptError, orchestrator, new_deployment, app)

    assert "Command timed out." in failed.log
    assert "exit code: 124" in failed.log
    assert current_target(app) == ""


def test_clone_failure(make_app, orchestrator, new_deployment, tmp_path):
    app = make_app(repository_url=str(tmp_path / "missing-repo"))

    failed = deploy_expecting(CloneError, orchestrator, new_deployment, app)

    assert failed.status == DeploymentStatus.FAILED
    assert "ERROR: Git clone failed" in failed.log
    assert current_target(app) == ""


def test_unreachable_host(make_app, store, release_manager, new_deployment):
    from shipyard.services.deployment_service import DeploymentOrchestrator

    factory = UnreachableFactory()
    orchestrator = DeploymentOrchestrator(store, factory, release_manager)
    app = make_app()

    failed = deploy_expecting(TransportError, orchestrator, new_deployment, app)

    assert failed.status == DeploymentStatus.FAILED
    assert "Could not talk to local (local)." in failed.log
    assert "ERROR: Cannot connect" in failed.log
    assert not factory.created[0].is_connected


def test_cancellation_before_activation(make_app, orchestrator, new_deployment):
    app = make_app()

    failed = deploy_expecting(DeploymentCancelledError, orchestrator, new_deployment, app, cancel=True)

    assert failed.status == DeploymentStatus.FAILED
    assert "current release unchanged" in failed.log
    assert failed.release_id is None
    assert not Path(app.current_path).exists()


def test_executor_disconnected_on_every_path(make_app, orchestrator, new_deployment, executor_factory):
    app = make_app()
    deploy(orchestrator, new_deployment, app)
    app.deploy_script = "exit 2\n"
    deploy_expecting(ScriptError, orchestrator, new_deployment, app)

    assert len(executor_factory.created) == 2
    assert not any(executor.is_connected for executor in executor_factory.created)


def test_static_env_file_lands_in_release(make_app, orchestrator, new_deployment):
    app = make_app(name="site", kind=ApplicationKind.STATIC, environment={"API_URL": "https://api"})

    deployment = deploy(orchestrator, new_deployment, app)

    assert Path(deployment.release_path, ".env").read_text() == "API_URL=https://api\n"
    assert not Path(app.shared_path).exists()


def test_run_creates_record_when_missing(make_app, orchestrator, store):
    from shipyard.models.deployment import Deployment

    app = make_app(name="site", kind=ApplicationKind.STATIC)
    deployment = Deployment(application=app.name)

    run_async(orchestrator.run(deployment, app))

    assert deployment.id is not None
    assert run_async(store.get(deployment.id)) is deployment


def test_in_place_first_deployment_clones(make_app, orchestrator, new_deployment):
    app = in_place(make_app, name="legacy", kind=ApplicationKind.STATIC)

    deployment = deploy(orchestrator, new_deployment, app)

    assert deployment.status == DeploymentStatus.SUCCESS
    assert deployment.release_path is None
    assert not deployment.working_tree_dirty
    assert Path(app.deploy_path, "README.md").is_file()
    assert Path(app.deploy_path, "BUILD").is_file()
    assert not Path(app.releases_path).exists()
    assert not Path(app.current_path).exists()


def test_in_place_script_failure_flags_dirty_tree(make_app, orchestrator, new_deployment):
    app = in_place(make_app, name="legacy", kind=ApplicationKind.STATIC,
                   deploy_script="cd $DEPLOY_PATH\ntouch half-done\nexit 1\n")

    failed = deploy_expecting(ScriptError, orchestrator, new_deployment, app)

    assert failed.status == DeploymentStatus.FAILED
    assert failed.working_tree_dirty
    assert "partially updated" in failed.log
    assert Path(app.deploy_path, "half-done").exists()


def test_in_place_clone_failure_is_not_dirty(make_app, orchestrator, new_deployment, tmp_path):
    app = in_place(make_app, name="legacy", repository_url=str(tmp_path / "nowhere"))

    failed = deploy_expecting(CloneError, orchestrator, new_deployment, app)

    assert not failed.working_tree_dirty


def test_unlinkable_shared_path_leaves_current_untouched(make_app, orchestrator, new_deployment, store):
    app = make_app()
    good = deploy(orchestrator, new_deployment, app)

    # README.md is a file in the clone, so nothing can be linked beneath it
    app.shared_paths = ["README.md/uploads", "storage/app", "storage/logs"]
    failed = deploy_expecting(ScriptError, orchestrator, new_deployment, app)

    log = failed.log
    assert "Failed to link README.md/uploads" in log
    assert "Linked: storage/app" in log
    assert "Linked: storage/logs" in log
    assert log.index("Failed to link README.md/uploads") < log.index("Linked: storage/logs")
    assert "ERROR: Failed to link shared paths: README.md/uploads" in log
    assert "Running deployment script..." not in log
    assert current_target(app) == str(Path(good.release_path).resolve())
    assert run_async(store.active_deployment(app.name)).id == good.id


def test_env_upload_failure_leaves_current_untouched(make_app, store, release_manager, new_deployment):
    from shipyard.services.deployment_service import DeploymentOrchestrator

    app = make_app(environment={"APP_ENV": "production"})
    good = deploy(DeploymentOrchestrator(store, FakeExecutorFactory(), release_manager),
                  new_deployment, app)

    orchestrator = DeploymentOrchestrator(store, NoUploadFactory(), release_manager)
    failed = deploy_expecting(TransportError, orchestrator, new_deployment, app)

    assert failed.status == DeploymentStatus.FAILED
    assert "ERROR: Failed to upload .env" in failed.log
    assert "Linking shared paths..." not in failed.log
    assert current_target(app) == str(Path(good.release_path).resolve())
    assert run_async(store.active_deployment(app.name)).id == good.id


def test_shared_path_added_later_is_created(make_app, orchestrator, new_deployment):
    app = make_app()
    deploy(orchestrator, new_deployment, app)

    app.shared_paths = ["storage/app", "public/uploads"]
    deployment = deploy(orchestrator, new_deployment, app)

    uploads = Path(deployment.release_path, "public", "uploads")
    assert Path(app.shared_path, "public", "uploads").is_dir()
    assert uploads.is_symlink()
    assert uploads.resolve() == Path(app.shared_path, "public", "uploads").resolve()


def test_in_place_success_is_never_marked_active(make_app, orchestrator, new_deployment, store):
    app = make_app(name="site", kind=ApplicationKind.STATIC)
    atomic = deploy(orchestrator, new_deployment, app)

    app.strategy = DeploymentStrategy.IN_PLACE
    app.deploy_path = str(Path(app.deploy_path).with_name("site-in-place"))
    deployment = deploy(orchestrator, new_deployment, app)

    assert deployment.status == DeploymentStatus.SUCCESS
    assert not deployment.is_active
    assert atomic.is_active
    assert run_async(store.active_deployment(app.name)).id == atomic.id
