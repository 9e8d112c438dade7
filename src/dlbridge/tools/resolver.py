"""Location of external tool executables.

Tools are looked up in the bundled resource directory of the running build
first, then in the development ``bin`` directory at the project root.
Resolved paths are cached for the lifetime of the resolver.
"""

from __future__ import annotations

import logging
import shutil
import sys
import threading
from pathlib import Path

from dlbridge.config.models import ToolPathsConfig
from dlbridge.tools.platform import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)

# Project root holding the development bin/ directory (src/dlbridge/tools/..)
PROJECT_ROOT = Path(__file__).resolve().parents[3]

BIN_DIR_NAME = "bin"


def is_valid_tool_path(path: Path) -> bool:
    """Return True if path is a regular file inside a directory named bin."""
    return path.is_file() and path.parent.name == BIN_DIR_NAME


class ToolPathResolver:
    """Resolve logical tool names to executable paths.

    Thread-safe: several invocations may resolve concurrently. The cache
    only ever grows; a tool moved while the process runs keeps its
    previously resolved path.

    Example:
        resolver = ToolPathResolver(config.tools)
        path = resolver.resolve("N_m3u8DL-RE")
    """

    def __init__(
        self,
        config: ToolPathsConfig | None = None,
        platform: PlatformInfo | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            config: Tool path configuration (defaults when None).
            platform: Host platform (detected when None).
        """
        self.config = config or ToolPathsConfig()
        self.platform = platform or detect_platform()
        self._cache: dict[str, Path] = {}
        self._lock = threading.Lock()

    def bundled_bin_dir(self) -> Path | None:
        """Bin directory shipped with the running build, if any."""
        bundle_root = getattr(sys, "_MEIPASS", None)
        if self.platform.frozen and bundle_root:
            return Path(bundle_root) / BIN_DIR_NAME
        if self.config.resource_dir is not None:
            return self.config.resource_dir / BIN_DIR_NAME
        return None

    def dev_bin_dir(self) -> Path:
        """Development bin directory."""
        if self.config.dev_bin_dir is not None:
            return self.config.dev_bin_dir
        return PROJECT_ROOT / BIN_DIR_NAME

    def candidates(self, name: str) -> list[Path]:
        """Candidate paths for name, in lookup order."""
        paths: list[Path] = []
        bundled = self.bundled_bin_dir()
        if bundled is not None:
            paths.append(bundled / self.platform.executable_name(name))
        paths.append(self.dev_bin_dir() / self.platform.executable_name(name))
        return paths

    def resolve(self, name: str) -> Path:
        """Resolve a tool name to an executable path.

        Returns the first valid candidate and caches it. When no candidate
        validates, a warning is logged and the best-known path (the first
        existing candidate, else the development path) is returned uncached.
        """
        with self._lock:
            cached = self._cache.get(name)
        if cached is not None:
            return cached

        candidates = self.candidates(name)
        for path in candidates:
            if is_valid_tool_path(path):
                with self._lock:
                    self._cache.setdefault(name, path)
                logger.debug("Resolved %s to %s", name, path)
                return path

        best = next((p for p in candidates if p.exists()), candidates[-1])
        logger.warning(
            "Tool %s not found in a bin directory, using %s",
            name,
            best,
            extra={"candidates": [str(p) for p in candidates]},
        )
        return best

    def resolve_or_bare(self, name: str) -> str:
        """Resolve name, or return the bare name for a PATH lookup.

        Used for the transcoder, which is usually installed system-wide.
        """
        path = self.resolve(name)
        if path.exists():
            return str(path)
        logger.debug("No local %s, falling back to PATH", name)
        return name

    def check_available(self, name: str) -> bool:
        """Return True if the tool exists locally or on PATH."""
        if self.resolve(name).exists():
            return True
        return shutil.which(name) is not None

