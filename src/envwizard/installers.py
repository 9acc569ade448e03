"""Tool installation commands per platform.

Installers are vendor package managers run as interactive child
processes; the wizard only observes their exit status.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from .platform_info import PlatformInfo
from .process import ProcessResult, ProcessRunner

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InstallCommand:
    """One way of installing a tool."""

    args: tuple[str, ...]
    requires: str  # package manager that must be present

    def display(self) -> str:
        return " ".join(self.args)


def _cmd(requires: str, *args: str) -> InstallCommand:
    return InstallCommand(args=args, requires=requires)


# Candidates in order of preference, keyed by tool then platform key
# ("mac", "windows", "debian", "rhel", "alpine", "linux")
INSTALL_COMMANDS: dict[str, dict[str, list[InstallCommand]]] = {
    "git": {
        "mac": [_cmd("brew", "brew", "install", "git"), _cmd("xcode-select", "xcode-select", "--install")],
        "windows": [_cmd("winget", "winget", "install", "--id", "Git.Git", "-e", "--source", "winget")],
        "debian": [_cmd("apt-get", "sudo", "apt-get", "install", "-y", "git")],
        "rhel": [_cmd("dnf", "sudo", "dnf", "install", "-y", "git")],
        "alpine": [_cmd("apk", "sudo", "apk", "add", "git")],
    },
    "curl": {
        "mac": [_cmd("brew", "brew", "install", "curl")],
        "debian": [_cmd("apt-get", "sudo", "apt-get", "install", "-y", "curl")],
        "rhel": [_cmd("dnf", "sudo", "dnf", "install", "-y", "curl")],
        "alpine": [_cmd("apk", "sudo", "apk", "add", "curl")],
    },
    "rg": {
        "mac": [_cmd("brew", "brew", "install", "ripgrep")],
        "windows": [_cmd("winget", "winget", "install", "BurntSushi.ripgrep.MSVC")],
        "debian": [_cmd("apt-get", "sudo", "apt-get", "install", "-y", "ripgrep")],
        "rhel": [_cmd("dnf", "sudo", "dnf", "install", "-y", "ripgrep")],
        "alpine": [_cmd("apk", "sudo", "apk", "add", "ripgrep")],
    },
    "gh": {
        "mac": [_cmd("brew", "brew", "install", "gh")],
        "windows": [_cmd("winget", "winget", "install", "--id", "GitHub.cli", "-e")],
        "debian": [_cmd("apt-get", "sudo", "apt-get", "install", "-y", "gh")],
        "rhel": [_cmd("dnf", "sudo", "dnf", "install", "-y", "gh")],
        "linux": [_cmd("brew", "brew", "install", "gh")],
    },
    "supabase": {
        "mac": [_cmd("brew", "brew", "install", "supabase/tap/supabase")],
        "windows": [
            _cmd("scoop", "scoop", "install", "supabase"),
            _cmd("npm", "npm", "install", "-g", "supabase"),
        ],
        "linux": [
            _cmd("brew", "brew", "install", "supabase/tap/supabase"),
            _cmd("npm", "npm", "install", "-g", "supabase"),
        ],
    },
}

# Shown when no automatic command applies
MANUAL_INSTRUCTIONS: dict[str, str] = {
    "git": "Install Git from https://git-scm.com/downloads",
    "node": "Install Node.js 18+ from https://nodejs.org/ (or use nvm: https://github.com/nvm-sh/nvm)",
    "npm": "npm ships with Node.js: https://nodejs.org/",
    "curl": "Install curl with your system package manager",
    "rg": "Install ripgrep: https://github.com/BurntSushi/ripgrep#installation",
    "gh": "Install the GitHub CLI: https://cli.github.com/",
    "supabase": "Install the Supabase CLI: https://supabase.com/docs/guides/cli",
    "bash": "Install Git for Windows (includes Git Bash) or enable WSL: wsl --install",
}

# Tools the prerequisite auto-install pass may install
AUTO_INSTALLABLE = ("git", "curl", "rg")


def _platform_keys(platform: PlatformInfo) -> list[str]:
    if platform.is_mac:
        return ["mac"]
    if platform.is_windows:
        return ["windows"]
    keys = []
    if platform.is_debian:
        keys.append("debian")
    elif platform.is_rhel:
        keys.append("rhel")
    elif platform.is_alpine:
        keys.append("alpine")
    keys.append("linux")
    return keys


class Installer:
    """Install developer tools with the platform's package manager."""

    def __init__(self, runner: ProcessRunner, platform: PlatformInfo):
        self.runner = runner
        self.platform = platform

    def _available(self, command: InstallCommand) -> bool:
        if self.platform.has_package_manager(command.requires):
            return True
        # npm and xcode-select are not system package managers
        return self.runner.which(command.requires) is not None

    def candidates(self, tool: str) -> list[InstallCommand]:
        """Install commands for the tool on this platform, in preference order."""
        by_platform = INSTALL_COMMANDS.get(tool, {})
        for key in _platform_keys(self.platform):
            if key in by_platform:
                return list(by_platform[key])
        return []

    def command_for(self, tool: str) -> InstallCommand | None:
        """First install command whose package manager is available."""
        for command in self.candidates(tool):
            if self._available(command):
                return command
        return None

    def can_install(self, tool: str) -> bool:
        return self.command_for(tool) is not None

    def instructions(self, tool: str) -> str:
        """Human-readable install instructions for a tool."""
        lines = [f"  {c.display()}" for c in self.candidates(tool)]
        manual = MANUAL_INSTRUCTIONS.get(tool)
        if manual:
            lines.append(f"  {manual}" if lines else manual)
        return "\n".join(lines) if lines else f"Install {tool} manually"

    def install(self, tool: str) -> ProcessResult:
        """Run the installer for a tool.

        Returns:
            ProcessResult of the installer, or an error result when no
            command is available on this platform.
        """
        command = self.command_for(tool)
        if command is None:
            return ProcessResult(exit_code=None, error=f"No automatic installer for {tool} on this platform")
        logger.info("install_tool", tool=tool, command=command.display())
        return self.runner.interactive(list(command.args))
