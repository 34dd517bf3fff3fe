"""Configuration models"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..api.exceptions import ConfigError
from ..constants import DEFAULT_RELEASES_TO_KEEP, DEFAULT_STATE_FILE, DeploymentStrategy
from .application import Application, ApplicationKind
from .git_provider import GitProvider
from .server import Server


def _mapping(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


@dataclass
class ShipyardConfig:
    """Servers, git providers and applications from the configuration file"""

    servers: Dict[str, Server] = field(default_factory=dict)
    git_providers: Dict[str, GitProvider] = field(default_factory=dict)
    applications: Dict[str, Application] = field(default_factory=dict)
    state_file: str = DEFAULT_STATE_FILE

    def get_application(self, name: str) -> Application:
        """
        Look up an application by name

        Raises:
            ConfigError: If no such application is configured
        """
        application = self.applications.get(name)
        if application is None:
            known = ", ".join(sorted(self.applications)) or "none"
            raise ConfigError(f"Unknown application '{name}' (configured: {known})")
        return application

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ShipyardConfig':
        """
        Build and validate a configuration

        Raises:
            ConfigError: On unknown references or invalid values
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping")

        servers = {}
        for name, item in _mapping(data, "servers").items():
            servers[name] = Server.from_dict(name, item or {})

        providers = {}
        for name, item in _mapping(data, "git_providers").items():
            item = item or {}
            try:
                provider = GitProvider.from_dict(name, item)
            except (KeyError, ValueError):
                raise ConfigError(f"Git provider '{name}' has missing or invalid type: {item.get('type')!r}")
            if not provider.private_key and not provider.access_token:
                raise ConfigError(f"Git provider '{name}' needs either private_key or access_token")
            providers[name] = provider

        applications = {}
        for name, item in _mapping(data, "applications").items():
            applications[name] = _build_application(name, item or {}, servers, providers)

        return cls(
            servers=servers,
            git_providers=providers,
            applications=applications,
            state_file=data.get("state_file") or DEFAULT_STATE_FILE,
        )


def _build_application(name: str,
                       data: Dict[str, Any],
                       servers: Dict[str, Server],
                       providers: Dict[str, GitProvider]) -> Application:
    server_name = data.get("server")
    if server_name not in servers:
        raise ConfigError(f"Application '{name}' references unknown server: {server_name!r}")

    provider = None
    provider_name = data.get("git_provider")
    if provider_name:
        if provider_name not in providers:
            raise ConfigError(f"Application '{name}' references unknown git provider: {provider_name!r}")
        provider = providers[provider_name]

    repository = data.get("repository")
    if not repository:
        raise ConfigError(f"Application '{name}' has no repository")

    try:
        kind = ApplicationKind(data.get("type", ApplicationKind.STATIC.value))
    except ValueError:
        valid = ", ".join(k.value for k in ApplicationKind)
        raise ConfigError(f"Application '{name}' has invalid type {data.get('type')!r} (expected one of: {valid})")

    try:
        strategy = DeploymentStrategy(data.get("strategy", DeploymentStrategy.ATOMIC.value))
    except ValueError:
        raise ConfigError(f"Application '{name}' has invalid strategy {data.get('strategy')!r}")

    try:
        releases_to_keep = int(data.get("releases_to_keep", DEFAULT_RELEASES_TO_KEEP))
    except (TypeError, ValueError):
        raise ConfigError(f"Application '{name}' releases_to_keep must be an integer")
    if releases_to_keep < 1:
        raise ConfigError(f"Application '{name}' releases_to_keep must be at least 1")

    environment = data.get("environment") or {}
    if not isinstance(environment, dict):
        raise ConfigError(f"Application '{name}' environment must be a mapping")

    node_version = data.get("node_version")
    return Application(
        name=name,
        server=servers[server_name],
        repository_url=repository,
        branch=str(data.get("branch", "main")),
        kind=kind,
        deploy_path=data.get("deploy_path"),
        strategy=strategy,
        releases_to_keep=releases_to_keep,
        deploy_script=data.get("deploy_script"),
        node_version=str(node_version) if node_version is not None else None,
        domain=data.get("domain"),
        git_provider=provider,
        environment={str(k): "" if v is None else str(v) for k, v in environment.items()},
        shared_paths=data.get("shared_paths"),
        writable_paths=data.get("writable_paths"),
    )
