"""MCP server template loading.

The template lists every server the project knows about. Placeholder env
values (containing ``YOUR_`` or ``_HERE``) mark the credentials a server
needs. Keys other than the known ones are carried through untouched.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import structlog

from ..envfile import is_placeholder
from ..errors import TemplateError

logger = structlog.get_logger(__name__)

TEMPLATE_SEARCH_PATHS = (
    Path(".mcp.template.json"),
    Path(".claude") / "templates" / "mcp.template.json",
)
BUNDLED_TEMPLATE = "mcp.template.json"

SERVER_CATEGORIES: dict[str, dict[str, Any]] = {
    "essential": {
        "name": "Essential",
        "description": "Core functionality",
        "servers": ["filesystem", "github", "slack"],
    },
    "database": {
        "name": "Database & Backend",
        "description": "Database and backend services",
        "servers": ["supabase"],
    },
    "deployment": {
        "name": "Deployment & Infrastructure",
        "description": "Deployment and cloud services",
        "servers": [
            "render",
            "cloudflare-docs",
            "cloudflare-workers-builds",
            "cloudflare-workers-bindings",
            "cloudflare-observability",
        ],
    },
    "development": {
        "name": "Development Tools",
        "description": "Code assistance and documentation",
        "servers": ["memory", "context7", "magic-ui"],
    },
}

# Always enabled; not offered for toggling
REQUIRED_SERVERS = ("filesystem", "slack", "supabase")

DEFAULT_ENABLED = ("filesystem", "github", "slack", "supabase", "context7", "magic-ui", "memory")

# Servers whose URL carries an identifier: {server: {query param: variable}}
ENDPOINT_PARAMS: dict[str, dict[str, str]] = {
    "supabase": {"project_ref": "SUPABASE_PROJECT_REF"},
}

RECOMMENDED_MARKER = "⭐ RECOMMENDED"

_KNOWN_KEYS = ("type", "command", "args", "env", "url", "disabled", "description")


@dataclass
class ServerTemplateEntry:
    """One server definition from the template."""

    name: str
    type: str = "stdio"
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None
    disabled: bool = False
    description: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> ServerTemplateEntry:
        if not isinstance(data, dict):
            raise TemplateError(f"Server '{name}' must be an object")
        server_type = data.get("type") or ("http" if data.get("url") and not data.get("command") else "stdio")
        env = data.get("env") or {}
        args = data.get("args") or []
        if not isinstance(env, dict) or not isinstance(args, list):
            raise TemplateError(f"Server '{name}' has malformed env or args")
        return cls(
            name=name,
            type=server_type,
            command=data.get("command"),
            args=[str(a) for a in args],
            env={str(k): str(v) for k, v in env.items()},
            url=data.get("url"),
            disabled=bool(data.get("disabled", False)),
            description=data.get("description"),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize in a fixed key order."""
        out: dict[str, Any] = {"type": self.type}
        if self.command is not None:
            out["command"] = self.command
            out["args"] = list(self.args)
            out["env"] = dict(self.env)
        elif self.args:
            out["args"] = list(self.args)
        if self.url is not None:
            out["url"] = self.url
        if self.command is None and self.env:
            out["env"] = dict(self.env)
        if self.description is not None:
            out["description"] = self.description
        for key, value in self.extra.items():
            out[key] = copy.deepcopy(value)
        out["disabled"] = self.disabled
        return out

    @property
    def recommended(self) -> bool:
        return bool(self.description and RECOMMENDED_MARKER in self.description)


@dataclass
class McpTemplate:
    """Parsed template, in file order."""

    servers: dict[str, ServerTemplateEntry]
    source: str = ""

    def names(self) -> list[str]:
        return list(self.servers)


@dataclass
class TemplateLoadResult:
    """Template or the reason it could not be loaded."""

    template: McpTemplate | None = None
    path: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.template is not None


def required_env_vars(entry: ServerTemplateEntry) -> list[str]:
    """Env keys whose template values are placeholders."""
    return [name for name, value in entry.env.items() if is_placeholder(value)]


def required_vars(entry: ServerTemplateEntry) -> list[str]:
    """All variables a server needs: env placeholders plus endpoint identifiers."""
    names = required_env_vars(entry)
    if entry.type == "http":
        for variable in ENDPOINT_PARAMS.get(entry.name, {}).values():
            if variable not in names:
                names.append(variable)
    return names


def parse_template(text: str, source: str = "") -> McpTemplate:
    """Parse template JSON.

    Raises:
        TemplateError: Invalid JSON or structure
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise TemplateError(f"Failed to parse template: {e}", path=source) from e
    servers = data.get("mcpServers") if isinstance(data, dict) else None
    if not isinstance(servers, dict):
        raise TemplateError("Template has no 'mcpServers' object", path=source)
    return McpTemplate(
        servers={name: ServerTemplateEntry.from_dict(name, cfg) for name, cfg in servers.items()},
        source=source,
    )


def find_template(project_dir: Path, explicit_path: Path | None = None) -> Path | None:
    """Locate the project's template file, if it has one."""
    if explicit_path is not None:
        return explicit_path if explicit_path.is_absolute() else project_dir / explicit_path
    for relative in TEMPLATE_SEARCH_PATHS:
        candidate = project_dir / relative
        if candidate.exists():
            return candidate
    return None


def load_template(project_dir: Path, explicit_path: Path | None = None) -> TemplateLoadResult:
    """Load the MCP template.

    Search order: explicit path, ``.mcp.template.json``,
    ``.claude/templates/mcp.template.json``, then the bundled template.

    Args:
        project_dir: Project directory
        explicit_path: Template given on the command line or in config

    Returns:
        TemplateLoadResult; errors are reported, never raised
    """
    path = find_template(project_dir, explicit_path)
    try:
        if path is None:
            bundled = resources.files("envwizard.mcp").joinpath("data").joinpath(BUNDLED_TEMPLATE)
            text = bundled.read_text(encoding="utf-8")
            source = "bundled"
        else:
            text = path.read_text(encoding="utf-8")
            source = str(path)
        template = parse_template(text, source)
    except OSError as e:
        logger.warning("template_unreadable", path=str(path), error=str(e))
        return TemplateLoadResult(path=str(path), error=f"Cannot read template: {e}")
    except TemplateError as e:
        logger.warning("template_invalid", path=e.path, error=e.message)
        return TemplateLoadResult(path=e.path, error=str(e))

    logger.info("template_loaded", source=source, servers=len(template.servers))
    return TemplateLoadResult(template=template, path=source)
