"""Remote host model"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class Server:
    """A host applications are deployed to"""

    name: str
    host: str = "localhost"
    port: int = 22
    username: str = "root"
    private_key: Optional[str] = None
    private_key_path: Optional[str] = None
    is_local: bool = False
    connect_timeout: int = 30

    def load_private_key(self) -> Optional[str]:
        """Return the private key text, reading it from disk when configured by path"""
        if self.private_key:
            return self.private_key
        if self.private_key_path:
            return Path(self.private_key_path).expanduser().read_text()
        return None

    @property
    def display_name(self) -> str:
        if self.is_local:
            return f"{self.name} (local)"
        return f"{self.name} ({self.username}@{self.host}:{self.port})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting key material"""
        data = {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "local": self.is_local,
        }
        if self.private_key_path:
            data["private_key_path"] = self.private_key_path
        return data

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'Server':
        """Create from dictionary"""
        return cls(
            name=name,
            host=data.get("host", "localhost"),
            port=int(data.get("port", 22)),
            username=data.get("username", "root"),
            private_key=data.get("private_key"),
            private_key_path=data.get("private_key_path"),
            is_local=bool(data.get("local", False)),
            connect_timeout=int(data.get("connect_timeout", 30)),
        )
