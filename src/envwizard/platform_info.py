"""Platform detection.

Identifies the OS family, shell, and which system package managers are
available. Nothing here changes the system; every probe that fails yields
"unknown" instead of an error.
"""

from __future__ import annotations

import os
import platform
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

OSFamily = Literal["windows", "mac", "linux"]

# System installers used by the auto-install paths
SYSTEM_PACKAGE_MANAGERS = ("brew", "apt-get", "dnf", "apk", "winget", "scoop", "choco")

DEBIAN_FAMILY = ("debian", "ubuntu", "linuxmint", "pop")
RHEL_FAMILY = ("rhel", "centos", "fedora", "rocky", "almalinux")

_DISPLAY_NAMES: dict[str, str] = {"windows": "Windows", "mac": "macOS", "linux": "Linux"}


@dataclass(frozen=True)
class PlatformInfo:
    """Host platform facts, computed once at startup."""

    os: OSFamily
    shell: str
    arch: str = "unknown"
    os_version: str = "unknown"
    ram_gb: int = 0
    linux_distro: str | None = None
    is_wsl: bool = False
    package_managers: dict[str, bool] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def is_mac(self) -> bool:
        return self.os == "mac"

    @property
    def is_linux(self) -> bool:
        return self.os == "linux"

    @property
    def is_debian(self) -> bool:
        return self.linux_distro in DEBIAN_FAMILY

    @property
    def is_rhel(self) -> bool:
        return self.linux_distro in RHEL_FAMILY

    @property
    def is_alpine(self) -> bool:
        return self.linux_distro == "alpine"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self.os]

    def has_package_manager(self, name: str) -> bool:
        return self.package_managers.get(name, False)


def _os_family(system: str) -> tuple[OSFamily, str | None]:
    system = system.lower()
    if system == "windows" or system.startswith(("cygwin", "msys", "mingw")):
        return "windows", None
    if system == "darwin":
        return "mac", None
    if system == "linux":
        return "linux", None
    return "linux", f"Unrecognized operating system '{system or 'unknown'}'; using Linux defaults"


def _read_os_release() -> str:
    try:
        return Path("/etc/os-release").read_text(encoding="utf-8")
    except OSError:
        return ""


def _run_quiet(args: list[str]) -> str | None:
    try:
        result = subprocess.run(args, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def _os_version(family: OSFamily) -> str:
    if family == "mac":
        return _run_quiet(["sw_vers", "-productVersion"]) or platform.mac_ver()[0] or "unknown"
    if family == "linux":
        content = _read_os_release()
        match = re.search(r'^VERSION_ID="?([^"\n]+)"?', content, re.MULTILINE)
        if match:
            return match.group(1)
        return _run_quiet(["lsb_release", "-rs"]) or "unknown"
    # Windows reports e.g. "10.0.22631"; keep major.minor
    version = platform.version()
    parts = version.split(".")
    return ".".join(parts[:2]) if len(parts) >= 2 else "unknown"


def _linux_distro() -> str:
    content = _read_os_release()
    match = re.search(r"^ID=[\"']?([\w-]+)[\"']?", content, re.MULTILINE)
    if match:
        return match.group(1).lower()
    distro = _run_quiet(["lsb_release", "-is"])
    return distro.lower() if distro else "unknown"


def _is_wsl() -> bool:
    if os.environ.get("WSL_DISTRO_NAME"):
        return True
    try:
        version = Path("/proc/version").read_text(encoding="utf-8").lower()
    except OSError:
        return False
    return "microsoft" in version or "wsl" in version


def _ram_gb() -> int:
    try:
        pages = os.sysconf("SC_PHYS_PAGES")
        page_size = os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        # Not available on Windows
        return 0
    return round(pages * page_size / (1024**3))


def _shell(family: OSFamily) -> str:
    if family == "windows":
        return os.environ.get("COMSPEC", "cmd.exe")
    return os.environ.get("SHELL", "/bin/sh")


def detect_platform() -> PlatformInfo:
    """Detect the host platform.

    Returns:
        PlatformInfo; an unknown OS falls back to Linux defaults with a
        warning instead of failing.
    """
    family, warning = _os_family(platform.system())
    distro = _linux_distro() if family == "linux" else None

    return PlatformInfo(
        os=family,
        shell=_shell(family),
        arch=platform.machine() or "unknown",
        os_version=_os_version(family),
        ram_gb=_ram_gb(),
        linux_distro=distro,
        is_wsl=family == "linux" and _is_wsl(),
        package_managers={pm: shutil.which(pm) is not None for pm in SYSTEM_PACKAGE_MANAGERS},
        warnings=(warning,) if warning else (),
    )
