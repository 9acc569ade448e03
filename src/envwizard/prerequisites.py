"""Prerequisite checks.

Read-only checks of the OS version, memory and the developer tools the
project needs. Safe to run repeatedly; the wizard re-runs the check once
after an auto-install pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from .installers import AUTO_INSTALLABLE, MANUAL_INSTRUCTIONS
from .platform_info import PlatformInfo
from .probes import ProbeService

logger = structlog.get_logger(__name__)

MIN_NODE_MAJOR = 18
MIN_RAM_GB = 4
MIN_OS_VERSIONS: dict[str, str] = {"mac": "13.0", "linux": "20.04", "windows": "10.0"}

JS_PACKAGE_MANAGERS = ("npm", "pnpm", "yarn", "bun")

ALPINE_LIBS = "apk add libgcc libstdc++ ripgrep"


@dataclass
class ToolStatus:
    """Detection result for one tool."""

    name: str
    installed: bool
    version: str | None = None
    required: bool = True
    compatible: bool = True


@dataclass
class PrerequisiteIssue:
    """A failed or degraded check.

    ``tool`` is set when the tool can be installed automatically.
    """

    message: str
    instructions: str = ""
    tool: str | None = None


@dataclass
class PrerequisiteResult:
    """Overall prerequisite outcome."""

    passed: bool
    issues: list[PrerequisiteIssue] = field(default_factory=list)
    warnings: list[PrerequisiteIssue] = field(default_factory=list)
    tools: dict[str, ToolStatus] = field(default_factory=dict)
    package_managers: dict[str, bool] = field(default_factory=dict)

    @property
    def installable_tools(self) -> list[str]:
        return [i.tool for i in self.issues if i.tool]


def compare_versions(version: str, minimum: str) -> int:
    """Compare dotted versions numerically.

    Returns:
        -1, 0 or 1 as version is below, equal to or above minimum
    """

    def parts(v: str) -> list[int]:
        out = []
        for piece in v.split("."):
            digits = "".join(ch for ch in piece if ch.isdigit())
            out.append(int(digits) if digits else 0)
        return out

    a, b = parts(version), parts(minimum)
    length = max(len(a), len(b))
    a += [0] * (length - len(a))
    b += [0] * (length - len(b))
    return (a > b) - (a < b)


class PrerequisiteChecker:
    """Check the machine against the project's requirements."""

    def __init__(self, probes: ProbeService):
        self.probes = probes

    def _tool(self, name: str, required: bool = True, flag: str = "--version") -> ToolStatus:
        version = self.probes.command_version(name, flag)
        installed = version is not None or self.probes.command_exists(name)
        return ToolStatus(name=name, installed=installed, version=version, required=required)

    @staticmethod
    def _missing(tool: str, label: str) -> PrerequisiteIssue:
        return PrerequisiteIssue(
            message=f"{label} is not installed",
            instructions=MANUAL_INSTRUCTIONS.get(tool, ""),
            tool=tool if tool in AUTO_INSTALLABLE else None,
        )

    def _check_os(self, platform: PlatformInfo, result: PrerequisiteResult) -> None:
        minimum = MIN_OS_VERSIONS[platform.os]
        if platform.os_version == "unknown":
            result.warnings.append(
                PrerequisiteIssue(f"Could not determine {platform.display_name} version")
            )
            return
        # The Linux minimum is an Ubuntu release number
        if platform.is_linux and platform.linux_distro not in ("ubuntu", "pop"):
            return
        if compare_versions(platform.os_version, minimum) < 0:
            result.issues.append(
                PrerequisiteIssue(
                    message=f"{platform.display_name} {platform.os_version} is below the minimum {minimum}",
                    instructions=f"Upgrade to {platform.display_name} {minimum} or newer",
                )
            )

    def check(self, platform: PlatformInfo) -> PrerequisiteResult:
        """Run all prerequisite checks.

        Args:
            platform: Detected platform

        Returns:
            PrerequisiteResult; ``passed`` is False when any issue was found
        """
        result = PrerequisiteResult(passed=True)
        for warning in platform.warnings:
            result.warnings.append(PrerequisiteIssue(warning))

        self._check_os(platform, result)

        if platform.ram_gb and platform.ram_gb < MIN_RAM_GB:
            result.warnings.append(
                PrerequisiteIssue(f"Only {platform.ram_gb}GB RAM detected ({MIN_RAM_GB}GB recommended)")
            )

        git = self._tool("git")
        result.tools["git"] = git
        if not git.installed:
            result.issues.append(self._missing("git", "Git"))

        node = self._tool("node")
        result.tools["node"] = node
        if not node.installed:
            result.issues.append(self._missing("node", f"Node.js {MIN_NODE_MAJOR}+"))
        elif node.version and compare_versions(node.version, str(MIN_NODE_MAJOR)) < 0:
            node.compatible = False
            result.issues.append(
                PrerequisiteIssue(
                    message=f"Node.js {node.version} is incompatible (requires {MIN_NODE_MAJOR}+)",
                    instructions=MANUAL_INSTRUCTIONS["node"],
                )
            )

        npm = self._tool("npm")
        result.tools["npm"] = npm
        if not npm.installed:
            result.issues.append(self._missing("npm", "npm"))

        if platform.is_windows:
            bash = self.probes.command_exists("bash")
            wsl = self.probes.command_exists("wsl")
            result.tools["bash"] = ToolStatus("bash", installed=bash or wsl)
            if not (bash or wsl):
                result.issues.append(
                    PrerequisiteIssue(
                        message="Git Bash or WSL is required on Windows",
                        instructions=MANUAL_INSTRUCTIONS["bash"],
                    )
                )
        else:
            curl = self._tool("curl")
            result.tools["curl"] = curl
            if not curl.installed:
                result.issues.append(self._missing("curl", "curl"))

        rg = self._tool("rg", required=False)
        result.tools["rg"] = rg
        if not rg.installed:
            result.warnings.append(
                PrerequisiteIssue(
                    message="ripgrep (rg) is recommended but not installed",
                    instructions=MANUAL_INSTRUCTIONS["rg"],
                    tool="rg",
                )
            )

        if platform.is_alpine:
            result.warnings.append(
                PrerequisiteIssue(
                    message="Alpine Linux needs extra libraries",
                    instructions=ALPINE_LIBS,
                )
            )

        result.package_managers = {"npm": npm.installed}
        for pm in JS_PACKAGE_MANAGERS[1:]:
            status = self._tool(pm, required=False)
            result.tools[pm] = status
            result.package_managers[pm] = status.installed

        result.passed = not result.issues
        logger.info(
            "prerequisites_checked",
            passed=result.passed,
            issues=len(result.issues),
            warnings=len(result.warnings),
        )
        return result
