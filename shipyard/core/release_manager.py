# shipyard/core/release_manager.py
"""Release directory management for atomic deployments.

Layout owned by this module::

    <base>/releases/<release_id>/
    <base>/shared/<shared_subpath>
    <base>/current -> <base>/releases/<release_id>

``current`` is only ever changed by :meth:`ReleaseManager.activate_release`,
through a rename of a freshly created link over it.
"""

import logging
from typing import List, Optional

from ..api.exceptions import (
    ActivationError,
    CloneError,
    ReleaseNotFoundError,
    ScriptError,
    TransportError,
)
from ..constants import CLONE_TIMEOUT, PROBE_TIMEOUT, TASK_TIMEOUT, WEB_SERVER_USER, WRITABLE_MODE
from ..executors.base import RemoteExecutor
from ..models.application import Application
from ..models.deployment import Deployment
from ..models.release import ReleaseId, ReleaseIdGenerator
from ..models.result import step
from ..utils.formatting import pluralize
from ..utils.shell import best_effort, join, quote, remote_basename, remote_dirname
from .git_commands import clone_command, clone_script
from .script_runner import ScriptRunner

logger = logging.getLogger(__name__)


class ReleaseManager:
    """Creates, links, activates and prunes releases on a server.

    Every method takes the connected executor explicitly; no connection
    state is kept between calls. Steps return a ``StepResult``; probes
    return ``False``/``None``/``[]`` when the server cannot answer.
    """

    def __init__(self,
                 script_runner: Optional[ScriptRunner] = None,
                 id_generator: Optional[ReleaseIdGenerator] = None):
        self.script_runner = script_runner or ScriptRunner()
        self.id_generator = id_generator or ReleaseIdGenerator()

    # Steps

    @step
    async def initialize_structure(self,
                                   executor: RemoteExecutor,
                                   application: Application,
                                   deployment: Deployment) -> None:
        """Create ``releases/`` and, for stateful kinds, ``shared/`` with its subdirectories"""
        deployment.append_log("Initializing atomic deployment structure...")

        await self._run(executor, f"mkdir -p {quote(application.releases_path)}",
                        "Failed to create releases directory")

        if application.is_stateful:
            directories = [application.shared_path] + [
                f"{application.shared_path}/{path}"
                for path in application.effective_shared_paths
                if path != application.secrets_file
            ]
            await self._run(executor, f"mkdir -p {join(directories)}",
                            "Failed to create shared directories")
            deployment.append_log("Created shared directories.")

        deployment.append_log("Atomic deployment structure initialized.")

    @step
    async def create_release(self,
                             executor: RemoteExecutor,
                             application: Application,
                             deployment: Deployment) -> str:
        """
        Allocate a release id and clone the branch into ``releases/<id>``

        Returns:
            Absolute release path
        """
        existing = await self.list_releases(executor, application)
        release_id = self.id_generator.next(after=existing[0] if existing else None)
        release_path = application.release_path(release_id)

        deployment.release_id = str(release_id)
        deployment.release_path = release_path
        deployment.append_log(f"Creating release: {release_id}")

        await self.clone_repository(executor, application, deployment, release_path)
        return release_path

    async def clone_repository(self,
                               executor: RemoteExecutor,
                               application: Application,
                               deployment: Deployment,
                               target_path: str) -> None:
        """
        Clone the application's branch into ``target_path``

        Raises:
            CloneError: If git exits non-zero or times out
        """
        deployment.append_log("Cloning repository...")
        logger.info(f"Cloning {application.repository_url}@{application.branch} into {target_path}")

        if application.git_provider:
            script = clone_script(application.git_provider, application.repository_url,
                                  application.branch, target_path)
            script_path = self.script_runner.temp_path("git-clone", application)
            result = await self.script_runner.run_script(executor, script, script_path, CLONE_TIMEOUT)
        else:
            result = await executor.execute(
                clone_command(application.repository_url, application.branch, target_path),
                CLONE_TIMEOUT)

        deployment.append_output(result.output)

        if not result.success:
            raise CloneError(result.output.strip(), result.exit_code)

        deployment.append_log("Repository cloned successfully.")

    @step
    async def upload_env_file(self,
                              executor: RemoteExecutor,
                              application: Application,
                              deployment: Deployment,
                              target_path: str) -> Optional[str]:
        """
        Write the rendered ``.env``

        Stateful atomic applications keep it in ``shared/``; everything else
        gets it in ``target_path``.

        Returns:
            Path written, or None when there are no environment variables
        """
        if not application.has_environment:
            deployment.append_log("No environment variables to upload.")
            return None

        deployment.append_log(f"Uploading {application.secrets_file} file...")

        if application.uses_atomic_deployments and application.is_stateful:
            env_path = f"{application.shared_path}/{application.secrets_file}"
        else:
            env_path = f"{target_path}/{application.secrets_file}"

        if not await executor.upload_content(application.render_env(), env_path):
            raise TransportError(f"Failed to upload {application.secrets_file} to {env_path}")

        deployment.append_log(f"{application.secrets_file} file uploaded successfully.")
        return env_path

    @step
    async def link_shared_paths(self,
                                executor: RemoteExecutor,
                                application: Application,
                                deployment: Deployment,
                                release_path: str) -> List[str]:
        """
        Replace each shared subpath in the release with a link into ``shared/``

        Every subpath is attempted; the step fails afterwards if any of them
        could not be linked. Running it twice yields the same links.

        Returns:
            Subpaths linked
        """
        if not application.is_stateful:
            return []

        deployment.append_log("Linking shared paths...")
        linked = []
        failed = []

        for path in application.effective_shared_paths:
            target = f"{release_path}/{path}"
            source = f"{application.shared_path}/{path}"
            command = (
                f"rm -rf {quote(target)}"
                f" && mkdir -p {quote(remote_dirname(target))}"
                f" && ln -nfs {quote(source)} {quote(target)}"
            )
            result = await executor.execute(command, TASK_TIMEOUT)
            if result.success:
                linked.append(path)
                deployment.append_log(f"  Linked: {path}")
            else:
                failed.append(path)
                deployment.append_log(f"  Failed to link {path}: {result.output.strip()}")

        if failed:
            raise ScriptError(f"Failed to link shared paths: {', '.join(failed)}")

        deployment.append_log("Shared paths linked successfully.")
        return linked

    @step
    async def set_permissions(self,
                              executor: RemoteExecutor,
                              application: Application,
                              deployment: Deployment,
                              target_path: str) -> None:
        """Best-effort ownership and mode fix on writable paths (and ``shared/`` for atomic)"""
        if not application.is_stateful:
            return

        deployment.append_log("Setting permissions on writable paths...")

        paths = [f"{target_path}/{p}" for p in application.effective_writable_paths]
        if application.uses_atomic_deployments:
            paths.append(application.shared_path)

        for path in paths:
            await executor.execute(
                best_effort(f"chown -R {WEB_SERVER_USER}:{WEB_SERVER_USER} {quote(path)}"), TASK_TIMEOUT)
            await executor.execute(
                best_effort(f"chmod -R {WRITABLE_MODE} {quote(path)}"), TASK_TIMEOUT)

        deployment.append_log("Permissions set successfully.")

    @step
    async def activate_release(self,
                               executor: RemoteExecutor,
                               application: Application,
                               deployment: Deployment,
                               release_path: str) -> str:
        """
        Point ``current`` at ``release_path`` in one rename

        A temporary link is created beside ``current`` and renamed over it, so
        ``current`` is never missing and never half-written.
        """
        deployment.append_log("Activating release...")

        current = application.current_path
        temp_link = f"{current}.tmp"
        result = await executor.execute(
            f"ln -sfn {quote(release_path)} {quote(temp_link)}"
            f" && mv -Tf {quote(temp_link)} {quote(current)}",
            TASK_TIMEOUT)

        if not result.success:
            await executor.execute(f"rm -f {quote(temp_link)}", PROBE_TIMEOUT)
            raise ActivationError(result.output.strip(), result.exit_code)

        logger.info(f"{application.name}: current -> {release_path}")
        deployment.append_log(f"Release activated: {release_path}")
        deployment.append_log("Current symlink now points to the new release.")
        return release_path

    @step
    async def cleanup_old_releases(self,
                                   executor: RemoteExecutor,
                                   application: Application,
                                   deployment: Deployment) -> List[str]:
        """
        Delete all but the newest ``releases_to_keep`` releases

        Status of the deployments behind a release does not matter. The
        release ``current`` resolves to is never deleted. Deletion failures
        are logged and do not fail the step.

        Returns:
            Release ids removed
        """
        keep = application.releases_to_keep
        deployment.append_log(f"Cleaning up old releases (keeping last {keep})...")

        releases = await self.list_releases(executor, application)
        if not releases:
            deployment.append_log("No releases to clean up.")
            return []

        candidates = releases[keep:]
        if not candidates:
            deployment.append_log("All releases within limit. No cleanup needed.")
            return []

        current = await self.get_current_release_path(executor, application)
        protected = remote_basename(current) if current else None

        removed = []
        for release_id in candidates:
            name = str(release_id)
            if name == protected:
                deployment.append_log(f"  Kept: {name} (current release)")
                continue
            result = await executor.execute(
                f"rm -rf {quote(application.release_path(name))}", TASK_TIMEOUT)
            if result.success:
                removed.append(name)
                deployment.append_log(f"  Removed: {name}")
            else:
                logger.warning(f"Failed to remove release {name}: {result.output.strip()}")
                deployment.append_log(f"  WARNING: could not remove {name}: {result.output.strip()}")

        deployment.append_log(
            f"Cleanup completed. Removed {pluralize(len(removed), 'old release')}.")
        return removed

    @step
    async def verify_release(self,
                             executor: RemoteExecutor,
                             application: Application,
                             release_path: str) -> str:
        """Fail with ReleaseNotFoundError unless the release directory exists"""
        if not await self._directory_exists(executor, release_path):
            raise ReleaseNotFoundError(release_path)
        return release_path

    # Probes

    async def is_initialized(self, executor: RemoteExecutor, application: Application) -> bool:
        if not await self._directory_exists(executor, application.releases_path):
            return False
        if application.is_stateful:
            return await self._directory_exists(executor, application.shared_path)
        return True

    async def release_exists(self,
                             executor: RemoteExecutor,
                             application: Application,
                             release_id: str) -> bool:
        return await self._directory_exists(executor, application.release_path(release_id))

    async def get_current_release_path(self,
                                       executor: RemoteExecutor,
                                       application: Application) -> Optional[str]:
        """Fully resolved target of ``current``, or None if it does not resolve"""
        try:
            result = await executor.execute(
                f"readlink -e {quote(application.current_path)} 2>/dev/null", PROBE_TIMEOUT)
        except TransportError as e:
            logger.debug(f"Cannot resolve current for {application.name}: {e}")
            return None

        path = result.output.strip()
        if result.success and path:
            return path
        return None

    async def list_releases(self,
                            executor: RemoteExecutor,
                            application: Application) -> List[ReleaseId]:
        """Release ids present under ``releases/``, newest first

        Directories whose name is not a release id are ignored.
        """
        try:
            result = await executor.execute(
                f"ls -1d {quote(application.releases_path)}/*/ 2>/dev/null", PROBE_TIMEOUT)
        except TransportError as e:
            logger.debug(f"Cannot list releases for {application.name}: {e}")
            return []

        if not result.success:
            return []

        releases = []
        for line in result.output.splitlines():
            release_id = ReleaseId.try_parse(remote_basename(line.strip()))
            if release_id is not None:
                releases.append(release_id)
        return ReleaseId.newest_first(releases)

    # Helpers

    async def _directory_exists(self, executor: RemoteExecutor, path: str) -> bool:
        try:
            result = await executor.execute(f"test -d {quote(path)} && echo exists", PROBE_TIMEOUT)
        except TransportError as e:
            logger.debug(f"Cannot probe {path}: {e}")
            return False
        return result.success and "exists" in result.output

    async def _run(self, executor: RemoteExecutor, command: str, message: str,
                   timeout: int = TASK_TIMEOUT) -> None:
        result = await executor.execute(command, timeout)
        if not result.success:
            raise ScriptError(f"{message}: {result.output.strip()}", result.exit_code, result.output)
