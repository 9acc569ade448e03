"""Project scaffolding decisions and dependency installation.

The planner only asks questions; the ConfigWriter applies the plan after
every prompt has been answered.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from . import console
from .process import ProcessRunner
from .prompter import PromptChoice, Prompter

logger = structlog.get_logger(__name__)

PACKAGE_JSON_TEMPLATE: dict[str, Any] = {
    "name": "envwizard-project",
    "version": "1.0.0",
    "description": "Project configured with envwizard",
    "type": "module",
    "scripts": {
        "dev": 'echo "Add your dev server command here"',
        "build": "tsc --build",
        "start": "node dist/index.js",
        "format": 'prettier --write "**/*.{ts,tsx,js,jsx,json,css,scss,md}"',
        "format:check": 'prettier --check "**/*.{ts,tsx,js,jsx,json,css,scss,md}"',
        "lint": "eslint . --ext .ts,.tsx,.js,.jsx",
        "lint:fix": "eslint . --ext .ts,.tsx,.js,.jsx --fix",
        "typecheck": "tsc --noEmit",
        "test": "vitest run",
        "test:watch": "vitest",
        "test:coverage": "vitest run --coverage",
        "test:e2e": "playwright test",
        "check": "npm run format:check && npm run lint && npm run typecheck",
        "fix": "npm run format && npm run lint:fix",
        "audit": "npm audit",
        "deps:check": "depcheck",
        "deps:unused": "ts-prune",
    },
    "devDependencies": {
        "typescript": "^5.3.0",
        "@types/node": "^20.10.0",
        "prettier": "^3.2.0",
        "eslint": "^8.56.0",
        "@typescript-eslint/parser": "^6.21.0",
        "@typescript-eslint/eslint-plugin": "^6.21.0",
        "eslint-config-prettier": "^9.1.0",
        "eslint-plugin-prettier": "^5.1.0",
        "vitest": "^1.2.0",
        "@vitest/coverage-v8": "^1.2.0",
        "@playwright/test": "^1.41.0",
        "depcheck": "^1.4.7",
        "ts-prune": "^0.10.3",
    },
    "dependencies": {},
    "engines": {"node": ">=18.0.0"},
}

# Directory -> placeholder files created inside it when the directory is new
DIRECTORIES: dict[str, dict[str, str]] = {
    "src": {"index.ts": "// Entry point for your application\nexport {};\n"},
}

_ESLINT = {
    "root": True,
    "env": {"browser": True, "es2022": True, "node": True},
    "extends": [
        "eslint:recommended",
        "plugin:@typescript-eslint/recommended",
        "plugin:prettier/recommended",
    ],
    "parser": "@typescript-eslint/parser",
    "parserOptions": {"ecmaVersion": "latest", "sourceType": "module"},
    "plugins": ["@typescript-eslint"],
    "rules": {
        "@typescript-eslint/no-unused-vars": ["warn", {"argsIgnorePattern": "^_"}],
        "@typescript-eslint/no-explicit-any": "warn",
        "no-console": "warn",
    },
    "ignorePatterns": ["dist/", "node_modules/", "coverage/", "*.config.js"],
}

_PRETTIER = {
    "semi": True,
    "singleQuote": True,
    "tabWidth": 2,
    "trailingComma": "es5",
    "printWidth": 100,
    "bracketSpacing": True,
    "arrowParens": "avoid",
}

_PRETTIER_IGNORE = """\
# Dependencies
node_modules/

# Build outputs
dist/
build/
coverage/

# Lock files
package-lock.json
yarn.lock
pnpm-lock.yaml

# Generated files
*.min.js
*.min.css
"""

_TSCONFIG = {
    "compilerOptions": {
        "target": "ES2022",
        "module": "NodeNext",
        "moduleResolution": "NodeNext",
        "lib": ["ES2022"],
        "outDir": "./dist",
        "rootDir": "./src",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
        "resolveJsonModule": True,
        "declaration": True,
        "declarationMap": True,
        "sourceMap": True,
    },
    "include": ["src/**/*"],
    "exclude": ["node_modules", "dist", "coverage"],
}


def _json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


# Created only when missing
CONFIG_FILES: dict[str, str] = {
    ".eslintrc.json": _json(_ESLINT),
    ".prettierrc": _json(_PRETTIER),
    ".prettierignore": _PRETTIER_IGNORE,
    "tsconfig.json": _json(_TSCONFIG),
}


class PackageJsonAction(Enum):
    CREATE = "create"
    MERGE = "merge"
    REPLACE = "replace"
    SKIP = "skip"


@dataclass
class ProjectPlan:
    """What to scaffold in the project directory."""

    package_json: PackageJsonAction = PackageJsonAction.SKIP
    project_name: str | None = None
    directories: dict[str, dict[str, str]] = field(default_factory=lambda: dict(DIRECTORIES))
    config_files: dict[str, str] = field(default_factory=lambda: dict(CONFIG_FILES))


def default_project_name(project_dir: Path) -> str:
    return re.sub(r"\s+", "-", project_dir.resolve().name.lower()) or PACKAGE_JSON_TEMPLATE["name"]


def plan_project(prompter: Prompter, project_dir: Path) -> ProjectPlan:
    """Ask how package.json should be handled.

    Args:
        prompter: User input
        project_dir: Project directory

    Returns:
        ProjectPlan for the writer
    """
    console.subheader("Package.json Setup")
    plan = ProjectPlan()

    if (project_dir / "package.json").exists():
        console.log("Existing package.json found", "info")
        answer = prompter.ask_choice(
            "How should package.json be handled?",
            [
                PromptChoice("merge", "Merge", "add missing scripts and devDependencies"),
                PromptChoice("skip", "Skip", "keep existing package.json unchanged"),
                PromptChoice("replace", "Replace", "back up and create a new package.json"),
            ],
            default="merge",
        )
        plan.package_json = PackageJsonAction(answer)
        if plan.package_json is PackageJsonAction.REPLACE:
            plan.project_name = prompter.ask_text("Project name", default=default_project_name(project_dir))
        return plan

    if prompter.ask_yes_no("No package.json found. Create one with the development toolchain?", default=True):
        plan.package_json = PackageJsonAction.CREATE
        plan.project_name = prompter.ask_text("Project name", default=default_project_name(project_dir))
    else:
        console.log("Skipping package.json creation", "info")
    return plan


def merge_package_json(existing: dict[str, Any]) -> dict[str, Any]:
    """Add missing scripts, devDependencies and engines; existing values win."""
    merged = dict(existing)
    merged["devDependencies"] = {
        **PACKAGE_JSON_TEMPLATE["devDependencies"],
        **(existing.get("devDependencies") or {}),
    }
    scripts = dict(existing.get("scripts") or {})
    for name, command in PACKAGE_JSON_TEMPLATE["scripts"].items():
        scripts.setdefault(name, command)
    merged["scripts"] = scripts
    if not merged.get("engines"):
        merged["engines"] = dict(PACKAGE_JSON_TEMPLATE["engines"])
    return merged


def new_package_json(name: str | None) -> dict[str, Any]:
    data = json.loads(json.dumps(PACKAGE_JSON_TEMPLATE))
    if name:
        data["name"] = name
    return data


@dataclass
class DependencyResult:
    """Outcome of the dependency install step."""

    installed: bool = False
    package_manager: str | None = None
    error: str | None = None
    skipped: bool = False


def will_have_package_json(plan: ProjectPlan, project_dir: Path) -> bool:
    if plan.package_json is PackageJsonAction.SKIP:
        return (project_dir / "package.json").exists()
    return True


def choose_package_manager(
    prompter: Prompter,
    plan: ProjectPlan,
    project_dir: Path,
    package_managers: dict[str, bool],
) -> str | None:
    """Ask whether to install dependencies after writing, and with what.

    Asked before any file is written so a cancelled prompt leaves the
    project untouched.

    Returns:
        The chosen package manager, or None to skip the install
    """
    if not will_have_package_json(plan, project_dir):
        return None
    available = [pm for pm, present in package_managers.items() if present]
    if not available:
        return None
    if not prompter.ask_yes_no("Install npm dependencies after setup?", default=True):
        console.log('Skipping dependency installation. Run "npm install" later.', "info")
        return None
    if len(available) == 1:
        return available[0]
    return prompter.ask_choice(
        "Which package manager do you want to use?",
        [PromptChoice(p, p) for p in available],
        default=available[0],
    )


def install_dependencies(runner: ProcessRunner, project_dir: Path, package_manager: str | None) -> DependencyResult:
    """Run ``<pm> install`` as an interactive child process."""
    if package_manager is None:
        return DependencyResult(skipped=True)

    console.subheader("Installing Dependencies")
    console.log(f"Installing dependencies with {package_manager}...", "info")
    console.dim("  (This may take a minute)")
    result = runner.interactive([package_manager, "install"], cwd=project_dir)
    if result.ok:
        console.log("Dependencies installed successfully", "success")
        return DependencyResult(installed=True, package_manager=package_manager)

    console.log(f"Failed to install dependencies: {result.failure_message}", "error")
    console.log(f'Run "{package_manager} install" manually to complete setup', "warning")
    return DependencyResult(package_manager=package_manager, error=result.failure_message)
