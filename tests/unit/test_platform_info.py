"""Unit tests for platform detection."""

from __future__ import annotations

from unittest.mock import patch

from envwizard.platform_info import PlatformInfo, _os_family, detect_platform


class TestOsFamily:
    """Tests for OS family mapping."""

    def test_known_systems(self):
        assert _os_family("Windows") == ("windows", None)
        assert _os_family("Darwin") == ("mac", None)
        assert _os_family("Linux") == ("linux", None)
        assert _os_family("MINGW64_NT-10.0")[0] == "windows"

    def test_unknown_system_falls_back_to_linux(self):
        family, warning = _os_family("SunOS")
        assert family == "linux"
        assert "sunos" in warning


class TestPlatformInfo:
    """Tests for PlatformInfo properties."""

    def test_distro_families(self):
        assert PlatformInfo(os="linux", shell="sh", linux_distro="pop").is_debian
        assert PlatformInfo(os="linux", shell="sh", linux_distro="rocky").is_rhel
        assert PlatformInfo(os="linux", shell="sh", linux_distro="alpine").is_alpine

    def test_display_name(self):
        assert PlatformInfo(os="mac", shell="zsh").display_name == "macOS"


class TestDetectPlatform:
    """Tests for detect_platform."""

    def test_detect_linux(self):
        os_release = 'NAME="Ubuntu"\nID=ubuntu\nVERSION_ID="22.04"\n'

        def which(name):
            return "/usr/bin/apt-get" if name == "apt-get" else None

        with patch("platform.system", return_value="Linux"):
            with patch("platform.machine", return_value="x86_64"):
                with patch("envwizard.platform_info._read_os_release", return_value=os_release):
                    with patch("envwizard.platform_info._is_wsl", return_value=False):
                        with patch("shutil.which", side_effect=which):
                            info = detect_platform()

        assert info.os == "linux"
        assert info.linux_distro == "ubuntu"
        assert info.os_version == "22.04"
        assert info.has_package_manager("apt-get")
        assert not info.has_package_manager("brew")
        assert info.warnings == ()

    def test_detect_unknown_os(self):
        with patch("platform.system", return_value="Plan9"):
            with patch("envwizard.platform_info._read_os_release", return_value=""):
                with patch("envwizard.platform_info._run_quiet", return_value=None):
                    with patch("envwizard.platform_info._is_wsl", return_value=False):
                        info = detect_platform()

        assert info.os == "linux"
        assert info.linux_distro == "unknown"
        assert info.os_version == "unknown"
        assert len(info.warnings) == 1
