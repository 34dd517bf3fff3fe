"""Script variable substitution utilities"""

import re
from typing import Dict, Mapping


def substitute_variables(script: str, variables: Mapping[str, str]) -> str:
    """
    Replace ``$NAME`` and ``${NAME}`` placeholders for the given names only

    Any other ``$`` expression (shell variables, ``$1``, ``$$``) is left
    untouched, and a placeholder only matches the whole identifier, so
    ``$BRANCH_NAME`` is not affected by ``BRANCH``.

    Args:
        script: Script text
        variables: Placeholder name to replacement text

    Returns:
        Script with placeholders replaced
    """
    if not variables:
        return script

    names = "|".join(re.escape(name) for name in sorted(variables, key=len, reverse=True))
    pattern = re.compile(r"\$(?:\{(" + names + r")\}|(" + names + r")(?![A-Za-z0-9_]))")

    def _replace(match: "re.Match") -> str:
        name = match.group(1) or match.group(2)
        return str(variables[name])

    return pattern.sub(_replace, script)


def render_env_file(environment: Dict[str, str]) -> str:
    """
    Render KEY=value lines for a dotenv file

    Values containing whitespace or ``#`` are double quoted with quotes and
    backslashes escaped.
    """
    lines = []
    for key, value in environment.items():
        value = "" if value is None else str(value)
        if re.search(r"[\s#]", value):
            escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("'", "\\'")
            value = f'"{escaped}"'
        lines.append(f"{key}={value}\n")
    return "".join(lines)
