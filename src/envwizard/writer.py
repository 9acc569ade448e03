"""All file output of the wizard.

Writes happen only after every prompt has been answered. Each artifact is
written independently: a failure is reported in its FileWriteResult and
the remaining artifacts are still attempted. Nothing is rolled back.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from . import console
from .envfile import EnvFileManager
from .mcp.compiler import serialize_registry
from .project import PackageJsonAction, ProjectPlan, merge_package_json, new_package_json

logger = structlog.get_logger(__name__)

ENV_EXAMPLE = ".env.example"

GITIGNORE_BLOCKS: list[tuple[str, list[str]]] = [
    ("# Generated by envwizard - contains secrets", [".env", ".env.local", ".mcp.json"]),
    ("# Local settings", [".claude/settings.local.json"]),
    ("# Build outputs", ["dist/", "build/", "coverage/"]),
    ("# Dependencies", ["node_modules/"]),
    ("# Supabase", ["supabase/.branches/", "supabase/.temp/", ".supabase/"]),
]


@dataclass
class FileWriteResult:
    """Outcome of writing one artifact."""

    path: str
    written: bool = False
    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ConfigWriter:
    """Write generated artifacts into the project directory."""

    def __init__(self, project_dir: Path, registry_file: str = ".mcp.json", env_file: str = ".env"):
        self.project_dir = project_dir
        self.registry_path = project_dir / registry_file
        self.env_path = project_dir / env_file

    def _fail(self, path: Path, error: OSError) -> FileWriteResult:
        logger.error("write_failed", path=str(path), error=str(error))
        console.log(f"Failed to write {path.name}: {error}", "error")
        return FileWriteResult(path=str(path), error=str(error))

    def write_registry(self, registry: dict[str, Any]) -> FileWriteResult:
        """Write the compiled server registry; overwrites in full."""
        try:
            self.registry_path.write_text(serialize_registry(registry), encoding="utf-8")
        except OSError as e:
            return self._fail(self.registry_path, e)
        console.log(f"Created {self.registry_path.name}", "success")
        return FileWriteResult(path=str(self.registry_path), written=True)

    def write_env(self, values: Mapping[str, str]) -> FileWriteResult:
        """Set variables in the env file, seeding a new file from .env.example.

        Existing keys are updated in place; comments and unrelated keys stay.
        """
        seed = self.project_dir / ENV_EXAMPLE
        existed = self.env_path.exists()
        try:
            EnvFileManager(self.env_path).update(dict(values), seed=seed)
        except OSError as e:
            return self._fail(self.env_path, e)
        action = "Updated" if existed else "Created"
        console.log(f"{action} {self.env_path.name} ({len(values)} variables)", "success")
        return FileWriteResult(path=str(self.env_path), written=True, created=sorted(values))

    def update_gitignore(self) -> FileWriteResult:
        """Append missing ignore entries; never rewrites existing lines."""
        path = self.project_dir / ".gitignore"
        try:
            content = path.read_text(encoding="utf-8") if path.exists() else ""
        except OSError as e:
            return self._fail(path, e)

        present = {line.strip() for line in content.splitlines()}
        lines: list[str] = []
        added: list[str] = []
        for comment, entries in GITIGNORE_BLOCKS:
            missing = [e for e in entries if e not in present]
            if not missing:
                continue
            lines.extend(["", comment, *missing])
            added.extend(missing)

        if not added:
            console.log(".gitignore already configured correctly", "success")
            return FileWriteResult(path=str(path), skipped=[e for _, block in GITIGNORE_BLOCKS for e in block])

        prefix = "" if not content or content.endswith("\n") else "\n"
        if not content:
            lines = lines[1:]
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(prefix + "\n".join(lines) + "\n")
        except OSError as e:
            return self._fail(path, e)
        console.log("Added secret files to .gitignore", "success")
        return FileWriteResult(path=str(path), written=True, created=added)

    def create_directories(self, directories: dict[str, dict[str, str]]) -> FileWriteResult:
        """Create missing directories with their placeholder files."""
        result = FileWriteResult(path=str(self.project_dir))
        for name, placeholders in directories.items():
            path = self.project_dir / name
            if path.exists():
                result.skipped.append(name)
                continue
            try:
                path.mkdir(parents=True)
                for filename, content in placeholders.items():
                    (path / filename).write_text(content, encoding="utf-8")
            except OSError as e:
                failed = self._fail(path, e)
                result.error = failed.error
                continue
            result.created.append(name)
            result.written = True
            console.log(f"Created {name}/ directory", "success")
        return result

    def create_config_files(self, files: dict[str, str]) -> FileWriteResult:
        """Create dev config files that do not exist yet."""
        result = FileWriteResult(path=str(self.project_dir))
        for name, content in files.items():
            path = self.project_dir / name
            if path.exists():
                result.skipped.append(name)
                continue
            try:
                path.write_text(content, encoding="utf-8")
            except OSError as e:
                result.error = self._fail(path, e).error
                continue
            result.created.append(name)
            result.written = True
            console.log(f"Created {name}", "success")
        return result

    def apply_package_json(self, plan: ProjectPlan) -> FileWriteResult:
        """Create, merge or replace package.json according to the plan."""
        path = self.project_dir / "package.json"
        action = plan.package_json
        if action is PackageJsonAction.SKIP:
            return FileWriteResult(path=str(path), skipped=["package.json"])

        try:
            if action is PackageJsonAction.MERGE:
                existing = json.loads(path.read_text(encoding="utf-8"))
                data = merge_package_json(existing)
            else:
                if action is PackageJsonAction.REPLACE and path.exists():
                    shutil.copy2(path, self.project_dir / "package.json.backup")
                    console.log("Backed up existing package.json to package.json.backup", "info")
                data = new_package_json(plan.project_name)
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        except json.JSONDecodeError as e:
            logger.error("package_json_invalid", path=str(path), error=str(e))
            console.log(f"Cannot merge package.json: {e}", "error")
            return FileWriteResult(path=str(path), error=f"Invalid package.json: {e}")
        except OSError as e:
            return self._fail(path, e)

        console.log(f"package.json: {action.value}", "success")
        return FileWriteResult(path=str(path), written=True, created=["package.json"])
