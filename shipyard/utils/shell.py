"""Shell command construction helpers"""

import posixpath
import shlex
from typing import Iterable


def quote(value: str) -> str:
    return shlex.quote(str(value))


def join(parts: Iterable[str]) -> str:
    """Quote and join command arguments"""
    return " ".join(quote(p) for p in parts)


def remote_dirname(path: str) -> str:
    return posixpath.dirname(path.rstrip("/"))


def remote_basename(path: str) -> str:
    return posixpath.basename(path.rstrip("/"))


def best_effort(command: str) -> str:
    """Run with non-interactive sudo, fall back to the plain command, never fail"""
    return f"sudo -n {command} 2>/dev/null || {command} 2>/dev/null || true"
