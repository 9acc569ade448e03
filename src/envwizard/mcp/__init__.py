"""MCP server registry: template, selection and compilation."""

from .compiler import compile_registry, serialize_registry
from .selection import default_enabled, select_servers
from .template import McpTemplate, ServerTemplateEntry, load_template, required_vars

__all__ = [
    "McpTemplate",
    "ServerTemplateEntry",
    "compile_registry",
    "default_enabled",
    "load_template",
    "required_vars",
    "select_servers",
    "serialize_registry",
]
