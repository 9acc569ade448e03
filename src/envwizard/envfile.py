"""Reading and updating dotenv files.

Updates preserve comments, blank lines and unrelated keys. Existing keys
are rewritten in place; new keys are appended.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

_LINE = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=(.*)$")
_NEEDS_QUOTES = re.compile(r"[\s#\"']")
_ESCAPE = re.compile(r"\\(.)")

# Template markers for an unset value, matched case-insensitively
PLACEHOLDER_SENTINELS = ("YOUR_", "_HERE")


def is_placeholder(value: str) -> bool:
    """Check whether a value is a template sentinel such as YOUR_TOKEN_HERE or your_token."""
    upper = value.upper()
    return any(sentinel in upper for sentinel in PLACEHOLDER_SENTINELS)


def _parse_value(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        inner = value[1:-1]
        return _ESCAPE.sub(r"\1", inner) if value[0] == '"' else inner
    # Strip inline comments
    if " #" in value:
        value = value.split(" #", 1)[0].rstrip()
    return value


def format_value(value: str) -> str:
    """Quote a value only when it contains whitespace, '#' or quotes."""
    if value and _NEEDS_QUOTES.search(value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def parse_env_text(text: str) -> dict[str, str]:
    """Parse dotenv content into a dict."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        match = _LINE.match(line)
        if match:
            values[match.group(1)] = _parse_value(match.group(2))
    return values


def load_env_file(path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        path: Path to the env file

    Returns:
        Dict of variables; empty if the file is missing or unreadable
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        logger.warning("env_file_unreadable", path=str(path), error=str(e))
        return {}
    return parse_env_text(text)


def update_env_text(text: str, values: dict[str, str]) -> str:
    """Apply values to dotenv content.

    Existing ``KEY=`` lines are replaced in place, everything else is kept
    verbatim, and keys not yet present are appended in the given order.

    Args:
        text: Current file content (may be empty)
        values: Variables to set

    Returns:
        New content, newline-terminated
    """
    remaining = dict(values)
    lines = text.splitlines()
    out: list[str] = []
    for line in lines:
        match = _LINE.match(line)
        if match and not line.lstrip().startswith("#") and match.group(1) in remaining:
            name = match.group(1)
            out.append(f"{name}={format_value(remaining.pop(name))}")
        else:
            out.append(line)

    if remaining:
        if out and out[-1].strip():
            out.append("")
        for name, value in remaining.items():
            out.append(f"{name}={format_value(value)}")

    return "\n".join(out) + "\n" if out else ""


class EnvFileManager:
    """Manage one dotenv file."""

    def __init__(self, env_file_path: Path):
        self.env_file_path = env_file_path

    def load(self) -> dict[str, str]:
        return load_env_file(self.env_file_path)

    def update(self, values: dict[str, str], seed: Path | None = None) -> Path:
        """Set variables, keeping unrelated content.

        Args:
            values: Variables to set
            seed: File whose content starts a new env file (e.g. .env.example)

        Returns:
            Path to the written file
        """
        if self.env_file_path.exists():
            text = self.env_file_path.read_text(encoding="utf-8")
        elif seed is not None and seed.exists():
            text = seed.read_text(encoding="utf-8")
            logger.info("env_file_seeded", seed=str(seed))
        else:
            text = ""

        self.env_file_path.parent.mkdir(parents=True, exist_ok=True)
        self.env_file_path.write_text(update_env_text(text, values), encoding="utf-8")
        logger.info("env_file_written", path=str(self.env_file_path), keys=sorted(values))
        return self.env_file_path


def placeholder_keys(path: Path) -> list[str]:
    """Keys in an example file whose values are empty or look like placeholders."""
    keys = []
    for name, value in load_env_file(path).items():
        if not value or is_placeholder(value):
            keys.append(name)
    return keys
