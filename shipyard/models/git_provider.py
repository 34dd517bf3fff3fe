"""Git hosting provider credentials"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..constants import GitProviderType

_SSH_URL = re.compile(r"^git@[^:]+:(.+?)(?:\.git)?$")
_HTTPS_URL = re.compile(r"^https?://[^/]+/(.+?)(?:\.git)?$")
_SHORT_PATH = re.compile(r"^[\w\-.]+/[\w\-.]+$")

_DEFAULT_HOSTS = {
    GitProviderType.GITHUB: "github.com",
    GitProviderType.GITLAB: "gitlab.com",
    GitProviderType.BITBUCKET: "bitbucket.org",
}


@dataclass
class GitProvider:
    """Authentication used to clone private repositories.

    Either ``private_key`` (SSH) or ``access_token`` (HTTPS) is set; the SSH
    key takes precedence when both are present.
    """

    name: str
    type: GitProviderType
    host: Optional[str] = None
    private_key: Optional[str] = None
    access_token: Optional[str] = None
    username: Optional[str] = None

    @property
    def default_host(self) -> str:
        return _DEFAULT_HOSTS.get(self.type, "")

    @property
    def effective_host(self) -> str:
        return self.host or self.default_host

    @property
    def uses_ssh_key(self) -> bool:
        return bool(self.private_key)

    def credentials(self) -> Tuple[str, str]:
        """Username/password pair for HTTPS git operations"""
        if self.type == GitProviderType.GITLAB:
            return "oauth2", self.access_token or ""
        if self.type == GitProviderType.GITHUB:
            return "x-access-token", self.access_token or ""
        if self.type == GitProviderType.BITBUCKET:
            return self.username or "x-token-auth", self.access_token or ""
        return "", self.access_token or ""

    def normalized_private_key(self) -> str:
        """Private key with LF line endings and a single trailing newline"""
        key = (self.private_key or "").replace("\r\n", "\n").replace("\r", "\n")
        return key.strip() + "\n"

    @staticmethod
    def parse_repository_path(repo_url: str) -> Optional[str]:
        """Extract ``owner/repo`` from SSH, HTTPS or short repository references"""
        for pattern in (_SSH_URL, _HTTPS_URL):
            match = pattern.match(repo_url)
            if match:
                return _strip_git_suffix(match.group(1))

        if _SHORT_PATH.match(repo_url):
            return _strip_git_suffix(repo_url)

        return None

    def ssh_url(self, repo_url: str) -> str:
        path = self.parse_repository_path(repo_url)
        if not path:
            return repo_url
        return f"git@{self.effective_host}:{path}.git"

    def clean_https_url(self, repo_url: str) -> str:
        """HTTPS url without embedded credentials"""
        path = self.parse_repository_path(repo_url)
        if not path:
            return repo_url
        return f"https://{self.effective_host}/{path}.git"

    def remote_url(self, repo_url: str) -> str:
        """Url matching the configured authentication method"""
        if self.uses_ssh_key:
            return self.ssh_url(repo_url)
        return self.clean_https_url(repo_url)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting secrets"""
        data = {
            "type": self.type.value,
            "auth": "ssh_key" if self.uses_ssh_key else "access_token",
        }
        if self.host:
            data["host"] = self.host
        if self.username:
            data["username"] = self.username
        return data

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'GitProvider':
        """Create from dictionary

        Raises:
            ValueError: If the provider type is unknown
        """
        return cls(
            name=name,
            type=GitProviderType(data["type"]),
            host=data.get("host"),
            private_key=data.get("private_key"),
            access_token=data.get("access_token"),
            username=data.get("username"),
        )


def _strip_git_suffix(path: str) -> str:
    return path[:-4] if path.endswith(".git") else path
