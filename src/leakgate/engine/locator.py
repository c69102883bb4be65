"""TruffleHog binary discovery.

The engine may be bundled by an editor extension, installed by a package
manager, or absent. Resolution walks an ordered list of providers and the
first one that yields an existing executable wins:

1. Explicit override path from an environment variable (``TRUFFLEHOG_PATH``)
2. Binary bundled in the editor extension's global storage (per platform)
3. System installation on ``PATH``

A bundled copy is preferred over a system one so every developer runs the
same pinned version.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from leakgate.config import GateConfig

logger = logging.getLogger(__name__)

SOURCE_OVERRIDE = "override"
SOURCE_BUNDLED = "bundled"
SOURCE_SYSTEM = "system"


class EngineNotFoundError(Exception):
    """TruffleHog binary not found in any location."""

    pass


@dataclass(frozen=True)
class EngineHandle:
    """A resolved scanning engine executable.

    Attributes:
        path: Path to the executable.
        source: Which provider found it (override, bundled or system).
    """

    path: Path
    source: str

    def __str__(self) -> str:
        return str(self.path)


def engine_binary_name(base_name: str = "trufflehog") -> str:
    """Return the platform-specific executable name."""
    return f"{base_name}.exe" if platform.system() == "Windows" else base_name


class EngineProvider(ABC):
    """One ranked source of an engine executable."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return provider identifier."""

    @abstractmethod
    def try_resolve(self) -> EngineHandle | None:
        """Return a handle if this source has a usable engine, else None."""


class EnvOverrideProvider(EngineProvider):
    """Explicit binary path from an environment variable.

    A value that does not point at an existing file is ignored so resolution
    falls through to the next provider.
    """

    def __init__(
        self, env_var: str = "TRUFFLEHOG_PATH", environ: Mapping[str, str] | None = None
    ) -> None:
        self.env_var = env_var
        self._environ = environ

    @property
    def name(self) -> str:
        return SOURCE_OVERRIDE

    def try_resolve(self) -> EngineHandle | None:
        environ = self._environ if self._environ is not None else os.environ
        value = environ.get(self.env_var)
        if not value:
            return None

        path = Path(value).expanduser()
        if not path.is_file():
            logger.debug("%s=%s is not a file, skipping override", self.env_var, value)
            return None
        return EngineHandle(path=path, source=SOURCE_OVERRIDE)


class BundledBinaryProvider(EngineProvider):
    """Engine shipped inside an editor extension's global storage.

    Only the storage root for the current platform is searched. The extension's
    ``bin`` directory is walked recursively and the first match (in sorted
    order) is taken.
    """

    # Relative to the user's home directory, except Windows which uses APPDATA.
    STORAGE_ROOTS: ClassVar[dict[str, tuple[str, ...]]] = {
        "Darwin": ("Library", "Application Support", "Code", "User", "globalStorage"),
        "Linux": (".config", "Code", "User", "globalStorage"),
        "Windows": ("Code", "User", "globalStorage"),
    }

    def __init__(
        self,
        extension_id: str = "hardik2801.gokwik-linting-vscode",
        binary_name: str = "trufflehog",
        home: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.extension_id = extension_id
        self.binary_name = binary_name
        self._home = home
        self._environ = environ

    @property
    def name(self) -> str:
        return SOURCE_BUNDLED

    def storage_root(self) -> Path | None:
        """Return the editor global-storage directory for this platform."""
        system = platform.system()
        parts = self.STORAGE_ROOTS.get(system)
        if parts is None:
            return None

        if system == "Windows":
            environ = self._environ if self._environ is not None else os.environ
            appdata = environ.get("APPDATA")
            if not appdata:
                return None
            return Path(appdata).joinpath(*parts)

        home = self._home or Path.home()
        return home.joinpath(*parts)

    def search_dir(self) -> Path | None:
        """Return the extension's bin directory, or None if unsupported."""
        root = self.storage_root()
        if root is None:
            return None
        return root / self.extension_id / "bin"

    def try_resolve(self) -> EngineHandle | None:
        search_dir = self.search_dir()
        if search_dir is None or not search_dir.is_dir():
            return None

        target = engine_binary_name(self.binary_name)
        try:
            matches = sorted(p for p in search_dir.rglob(target) if p.is_file())
        except OSError as e:
            logger.debug("Could not search %s: %s", search_dir, e)
            return None

        if not matches:
            return None
        return EngineHandle(path=matches[0], source=SOURCE_BUNDLED)


class SystemPathProvider(EngineProvider):
    """Engine installed system-wide and discoverable on PATH."""

    def __init__(self, binary_name: str = "trufflehog") -> None:
        self.binary_name = binary_name

    @property
    def name(self) -> str:
        return SOURCE_SYSTEM

    def try_resolve(self) -> EngineHandle | None:
        found = shutil.which(self.binary_name)
        if not found:
            return None
        return EngineHandle(path=Path(found), source=SOURCE_SYSTEM)


class EngineLocator:
    """Resolve exactly one engine from an ordered list of providers.

    Example:
        locator = EngineLocator.from_config(GateConfig())
        handle = locator.locate()
        if handle is None:
            print(INSTALL_INSTRUCTIONS)
    """

    def __init__(self, providers: Sequence[EngineProvider]) -> None:
        self.providers = list(providers)

    @classmethod
    def from_config(cls, config: GateConfig) -> EngineLocator:
        """Build the default override -> bundled -> system chain."""
        return cls(
            [
                EnvOverrideProvider(env_var=config.engine_path_env),
                BundledBinaryProvider(
                    extension_id=config.bundle_extension_id,
                    binary_name=config.binary_name,
                ),
                SystemPathProvider(binary_name=config.binary_name),
            ]
        )

    def locate(self) -> EngineHandle | None:
        """Return the first handle any provider resolves, or None."""
        for provider in self.providers:
            handle = provider.try_resolve()
            if handle is not None:
                logger.debug("Engine resolved by %s provider: %s", provider.name, handle.path)
                return handle
        return None

    def require(self) -> EngineHandle:
        """Like ``locate()`` but raise when nothing is found.

        Raises:
            EngineNotFoundError: If no provider yields an engine.
        """
        handle = self.locate()
        if handle is None:
            tried = ", ".join(p.name for p in self.providers)
            raise EngineNotFoundError(f"trufflehog not found (tried: {tried})")
        return handle

    def describe_candidates(self) -> list[tuple[str, EngineHandle | None]]:
        """Resolve every provider independently, for diagnostics."""
        return [(provider.name, provider.try_resolve()) for provider in self.providers]
