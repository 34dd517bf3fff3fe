# shipyard/core/git_commands.py
"""Shell scripts for authenticated git operations"""

from typing import Optional

from ..models.git_provider import GitProvider
from ..utils.shell import quote

_SSH_SETUP = """# Temporary SSH key and wrapper for git
_SSH_KEY_FILE=$(mktemp)
cat > "$_SSH_KEY_FILE" << 'SSH_KEY_EOF'
{private_key}SSH_KEY_EOF
chmod 600 "$_SSH_KEY_FILE"

_SSH_WRAPPER=$(mktemp)
cat > "$_SSH_WRAPPER" << WRAPPER_EOF
#!/bin/bash
exec ssh -i "$_SSH_KEY_FILE" -o StrictHostKeyChecking=no -o UserKnownHostsFile=/dev/null -o BatchMode=yes "\\$@"
WRAPPER_EOF
chmod +x "$_SSH_WRAPPER"
"""

_ASKPASS_SETUP = """# Temporary askpass helper for git
_ASKPASS_SCRIPT=$(mktemp)
cat > "$_ASKPASS_SCRIPT" << 'ASKPASS_EOF'
#!/bin/bash
case "$1" in
    *Username*|*username*) echo {username} ;;
    *Password*|*password*) echo {password} ;;
esac
ASKPASS_EOF
chmod +x "$_ASKPASS_SCRIPT"
"""


def _credential_setup(provider: GitProvider) -> str:
    if provider.uses_ssh_key:
        return _SSH_SETUP.format(private_key=provider.normalized_private_key())
    username, password = provider.credentials()
    return _ASKPASS_SETUP.format(username=quote(username), password=quote(password))


def _credential_env(provider: GitProvider) -> str:
    if provider.uses_ssh_key:
        return 'GIT_SSH="$_SSH_WRAPPER"'
    return 'GIT_ASKPASS="$_ASKPASS_SCRIPT" GIT_TERMINAL_PROMPT=0'


def _credential_cleanup(provider: GitProvider) -> str:
    if provider.uses_ssh_key:
        return 'rm -f "$_SSH_KEY_FILE" "$_SSH_WRAPPER"'
    return 'rm -f "$_ASKPASS_SCRIPT"'


def clone_command(repository_url: str, branch: str, target_path: str) -> str:
    """Direct clone relying on credentials already present on the host"""
    return f"git clone -b {quote(branch)} {quote(repository_url)} {quote(target_path)} 2>&1"


def clone_script(provider: GitProvider, repository_url: str, branch: str, target_path: str) -> str:
    """
    Standalone bash script cloning with the provider's credentials

    The temporary credential files are removed and the clone's exit status is
    returned.
    """
    url = provider.remote_url(repository_url)
    return (
        "#!/bin/bash\n\n"
        + _credential_setup(provider)
        + "\n"
        + f"{_credential_env(provider)} git clone -b {quote(branch)} {quote(url)} {quote(target_path)}\n"
        + "_CLONE_STATUS=$?\n\n"
        + _credential_cleanup(provider) + "\n\n"
        + "exit $_CLONE_STATUS\n"
    )


def set_remote_url_command(provider: GitProvider, repository_url: str, path: str) -> str:
    """Point ``origin`` at the url matching the provider's authentication"""
    url = provider.remote_url(repository_url)
    return f"cd {quote(path)} && git remote set-url origin {quote(url)}"


def wrap_script_with_credentials(provider: Optional[GitProvider], script: str) -> str:
    """
    Prefix a deploy script with credential setup so its git commands authenticate

    The credential files are removed by an EXIT trap.
    """
    if provider is None:
        return script

    if provider.uses_ssh_key:
        export = 'export GIT_SSH="$_SSH_WRAPPER"'
    else:
        export = 'export GIT_ASKPASS="$_ASKPASS_SCRIPT"\nexport GIT_TERMINAL_PROMPT=0'

    return (
        "#!/bin/bash\n\n"
        + _credential_setup(provider)
        + export + "\n\n"
        + "_cleanup_git_credentials() {\n"
        + f"    {_credential_cleanup(provider)}\n"
        + "}\n"
        + "trap _cleanup_git_credentials EXIT\n\n"
        + "# Deploy script\n"
        + script
    )
