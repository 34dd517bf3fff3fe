# shipyard/models/application.py
"""Application models"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..constants import (
    ApplicationStatus,
    CURRENT_LINK_NAME,
    DEFAULT_DEPLOY_ROOT,
    DEFAULT_RELEASES_TO_KEEP,
    DeploymentStrategy,
    RELEASES_DIR,
    SECRETS_FILE,
    SHARED_DIR,
)
from ..templates import default_deploy_script
from ..utils.formatting import slugify
from ..utils.template_utils import render_env_file, substitute_variables
from .git_provider import GitProvider
from .server import Server


@dataclass(frozen=True)
class KindProfile:
    """Behaviour attached to an application kind"""

    shared_paths: Tuple[str, ...] = ()
    writable_paths: Tuple[str, ...] = ()
    post_rollback_commands: Tuple[str, ...] = ()
    document_root: str = ""
    logs_dir: Optional[str] = None
    secrets_file: str = SECRETS_FILE

    @property
    def stateful(self) -> bool:
        """Stateful kinds keep data under shared/ across releases"""
        return bool(self.shared_paths)


_LARAVEL = KindProfile(
    shared_paths=(
        "storage/app",
        "storage/logs",
        "storage/framework/cache",
        "storage/framework/sessions",
        "storage/framework/views",
        SECRETS_FILE,
    ),
    writable_paths=("storage", "bootstrap/cache"),
    post_rollback_commands=(
        "cd $CURRENT_PATH && php artisan optimize:clear",
        "cd $CURRENT_PATH && php artisan optimize",
        "cd $CURRENT_PATH && php artisan queue:restart",
    ),
    document_root="public",
    logs_dir="storage/logs",
)

_NODEJS = KindProfile(
    post_rollback_commands=("pm2 restart $APP_NAME",),
    document_root="dist",
)

_STATIC = KindProfile(document_root="dist")


class ApplicationKind(Enum):
    LARAVEL = "laravel"
    NODEJS = "nodejs"
    STATIC = "static"

    @property
    def profile(self) -> KindProfile:
        return _PROFILES[self]


_PROFILES = {
    ApplicationKind.LARAVEL: _LARAVEL,
    ApplicationKind.NODEJS: _NODEJS,
    ApplicationKind.STATIC: _STATIC,
}


@dataclass
class Application:
    """A deployment target: one repository branch on one server.

    Exactly one ``current`` symlink belongs to an application; only ``status``
    is mutated by the release engine.
    """

    name: str
    server: Server
    repository_url: str
    branch: str = "main"
    kind: ApplicationKind = ApplicationKind.STATIC
    deploy_path: Optional[str] = None
    strategy: DeploymentStrategy = DeploymentStrategy.ATOMIC
    releases_to_keep: int = DEFAULT_RELEASES_TO_KEEP
    deploy_script: Optional[str] = None
    node_version: Optional[str] = None
    domain: Optional[str] = None
    git_provider: Optional[GitProvider] = None
    environment: Dict[str, str] = field(default_factory=dict)
    shared_paths: Optional[List[str]] = None
    writable_paths: Optional[List[str]] = None
    status: ApplicationStatus = ApplicationStatus.IDLE

    def __post_init__(self):
        if not self.deploy_path:
            self.deploy_path = f"{DEFAULT_DEPLOY_ROOT}/{self.slug}"
        self.deploy_path = self.deploy_path.rstrip("/") or "/"

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def profile(self) -> KindProfile:
        return self.kind.profile

    @property
    def uses_atomic_deployments(self) -> bool:
        return self.strategy == DeploymentStrategy.ATOMIC

    @property
    def is_stateful(self) -> bool:
        return bool(self.effective_shared_paths)

    # Remote layout

    @property
    def base_path(self) -> str:
        return self.deploy_path

    @property
    def releases_path(self) -> str:
        return f"{self.base_path}/{RELEASES_DIR}"

    @property
    def shared_path(self) -> str:
        return f"{self.base_path}/{SHARED_DIR}"

    @property
    def current_path(self) -> str:
        return f"{self.base_path}/{CURRENT_LINK_NAME}"

    def release_path(self, release_id: Any) -> str:
        return f"{self.releases_path}/{release_id}"

    @property
    def live_path(self) -> str:
        """Directory that serves traffic: ``current`` or the in-place tree"""
        if self.uses_atomic_deployments:
            return self.current_path
        return self.base_path

    @property
    def document_root(self) -> str:
        root = self.profile.document_root
        return f"{self.live_path}/{root}" if root else self.live_path

    @property
    def logs_path(self) -> Optional[str]:
        logs_dir = self.profile.logs_dir
        if not logs_dir:
            return None
        if self.uses_atomic_deployments:
            return f"{self.shared_path}/{logs_dir}"
        return f"{self.base_path}/{logs_dir}"

    @property
    def effective_shared_paths(self) -> List[str]:
        if self.shared_paths is not None:
            return list(self.shared_paths)
        return list(self.profile.shared_paths)

    @property
    def effective_writable_paths(self) -> List[str]:
        if self.writable_paths is not None:
            return list(self.writable_paths)
        return list(self.profile.writable_paths)

    @property
    def secrets_file(self) -> str:
        return self.profile.secrets_file

    # Script and secrets rendering

    def script_variables(self, target_path: str) -> Dict[str, str]:
        return {
            "DEPLOY_PATH": target_path,
            "BRANCH": self.branch,
            "APP_NAME": self.slug,
            "DOMAIN": self.domain or "",
            "NODE_VERSION": self.node_version or "",
        }

    def resolve_deploy_script(self, target_path: str) -> str:
        """
        Deploy script with variables substituted

        Args:
            target_path: Release directory (atomic) or deploy path (in-place)

        Returns:
            Script text ready for upload
        """
        script = self.deploy_script or default_deploy_script(
            self.kind.value, self.uses_atomic_deployments)
        return substitute_variables(script, self.script_variables(target_path))

    def render_env(self) -> str:
        return render_env_file(self.environment)

    @property
    def has_environment(self) -> bool:
        return bool(self.environment)

    def post_rollback_commands(self) -> List[str]:
        variables = {"CURRENT_PATH": self.current_path, "APP_NAME": self.slug}
        return [substitute_variables(c, variables) for c in self.profile.post_rollback_commands]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "name": self.name,
            "server": self.server.name,
            "repository": self.repository_url,
            "branch": self.branch,
            "type": self.kind.value,
            "deploy_path": self.deploy_path,
            "strategy": self.strategy.value,
            "releases_to_keep": self.releases_to_keep,
            "git_provider": self.git_provider.name if self.git_provider else None,
            "status": self.status.value,
        }
