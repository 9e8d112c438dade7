"""Host platform capabilities.

Platform-conditional behavior (executable suffix, encoder choice, path
rules) reads a PlatformInfo that is detected once and passed in, so tests
can exercise every platform from any host.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Literal

SystemName = Literal["windows", "macos", "linux"]


@dataclass(frozen=True)
class PlatformInfo:
    """Capabilities of the host operating system."""

    system: SystemName
    """Normalized operating system family."""

    frozen: bool = False
    """True when running from a frozen (bundled) build."""

    @property
    def is_windows(self) -> bool:
        return self.system == "windows"

    @property
    def is_macos(self) -> bool:
        return self.system == "macos"

    @property
    def exe_suffix(self) -> str:
        """Suffix appended to executable names on this platform."""
        return ".exe" if self.is_windows else ""

    def executable_name(self, name: str) -> str:
        """Return name with the platform executable suffix, if missing."""
        suffix = self.exe_suffix
        if suffix and not name.lower().endswith(suffix):
            return name + suffix
        return name


def detect_platform() -> PlatformInfo:
    """Detect the current host platform."""
    if sys.platform.startswith("win"):
        system: SystemName = "windows"
    elif sys.platform == "darwin":
        system = "macos"
    else:
        system = "linux"
    return PlatformInfo(system=system, frozen=bool(getattr(sys, "frozen", False)))
