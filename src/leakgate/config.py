"""Configuration loading for leakgate.

Settings live either in a ``leakgate.toml`` file or in the
``[tool.leakgate]`` table of ``pyproject.toml``:

    [tool.leakgate]
    engine_path_env = "TRUFFLEHOG_PATH"
    bundle_extension_id = "hardik2801.gokwik-linting-vscode"
    since_commit = "HEAD"
    timeout = 300
    block_on_unparsed = true
    strategies = ["per-file", "verified", "diff"]
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "leakgate.toml"
PYPROJECT_FILENAME = "pyproject.toml"

STRATEGY_PER_FILE = "per-file"
STRATEGY_VERIFIED = "verified"
STRATEGY_DIFF = "diff"
ALL_STRATEGIES: tuple[str, ...] = (STRATEGY_PER_FILE, STRATEGY_VERIFIED, STRATEGY_DIFF)


class ConfigNotFoundError(Exception):
    """Configuration file not found."""

    pass


@dataclass
class GateConfig:
    """Configuration for the commit gate.

    Attributes:
        engine_path_env: Environment variable naming an explicit engine binary.
        bundle_extension_id: Editor extension whose storage may bundle the engine.
        binary_name: Engine executable name (``.exe`` is added on Windows).
        since_commit: Commit reference passed to ``--since-commit``.
        timeout: Per-invocation engine timeout in seconds.
        block_on_unparsed: Treat output that mentions a secret but cannot be
            parsed as a blocking finding.
        excerpt_length: Number of secret characters shown in reports.
        strategies: Enabled strategies; they always run in the fixed order
            per-file, verified, diff.
    """

    engine_path_env: str = "TRUFFLEHOG_PATH"
    bundle_extension_id: str = "hardik2801.gokwik-linting-vscode"
    binary_name: str = "trufflehog"
    since_commit: str = "HEAD"
    timeout: int = 300
    block_on_unparsed: bool = True
    excerpt_length: int = 50
    strategies: list[str] = field(default_factory=lambda: list(ALL_STRATEGIES))

    @classmethod
    def from_dict(cls, config: dict) -> GateConfig:
        """Create config from a dictionary (e.g., the ``[tool.leakgate]`` table).

        Unknown keys are ignored and invalid values fall back to defaults.

        Args:
            config: Dictionary with gate configuration.

        Returns:
            GateConfig instance.
        """
        defaults = cls()

        strategies = config.get("strategies", defaults.strategies)
        if isinstance(strategies, str):
            strategies = [strategies]
        unknown = [s for s in strategies if s not in ALL_STRATEGIES]
        if unknown:
            logger.warning("Ignoring unknown strategies: %s", ", ".join(unknown))
        strategies = [s for s in ALL_STRATEGIES if s in strategies]

        timeout = config.get("timeout", defaults.timeout)
        if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
            logger.warning("Invalid timeout %r, using %d", timeout, defaults.timeout)
            timeout = defaults.timeout

        excerpt_length = config.get("excerpt_length", defaults.excerpt_length)
        if (
            not isinstance(excerpt_length, int)
            or isinstance(excerpt_length, bool)
            or excerpt_length <= 0
        ):
            logger.warning(
                "Invalid excerpt_length %r, using %d",
                excerpt_length,
                defaults.excerpt_length,
            )
            excerpt_length = defaults.excerpt_length

        block_on_unparsed = config.get("block_on_unparsed", defaults.block_on_unparsed)
        if not isinstance(block_on_unparsed, bool):
            logger.warning(
                "Invalid block_on_unparsed %r, using %s",
                block_on_unparsed,
                defaults.block_on_unparsed,
            )
            block_on_unparsed = defaults.block_on_unparsed

        return cls(
            engine_path_env=str(config.get("engine_path_env", defaults.engine_path_env)),
            bundle_extension_id=str(
                config.get("bundle_extension_id", defaults.bundle_extension_id)
            ),
            binary_name=str(config.get("binary_name", defaults.binary_name)),
            since_commit=str(config.get("since_commit", defaults.since_commit)),
            timeout=timeout,
            block_on_unparsed=block_on_unparsed,
            excerpt_length=excerpt_length,
            strategies=strategies,
        )


def find_config(start_dir: Path | None = None) -> Path | None:
    """Find ``leakgate.toml`` or a ``pyproject.toml`` with ``[tool.leakgate]``.

    Walks from ``start_dir`` (default: cwd) up to the filesystem root.

    Returns:
        Path to the first matching file, or None.
    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

        pyproject = current / PYPROJECT_FILENAME
        if pyproject.is_file():
            try:
                data = tomllib.loads(pyproject.read_text())
            except (tomllib.TOMLDecodeError, OSError):
                data = {}
            if "leakgate" in data.get("tool", {}):
                return pyproject

        if current == current.parent:
            return None
        current = current.parent


def load_config(path: Path | None = None) -> GateConfig:
    """Load gate configuration.

    Args:
        path: Explicit config file. When None, ``find_config()`` is used and
            defaults are returned if nothing is found.

    Returns:
        GateConfig instance.

    Raises:
        ConfigNotFoundError: If an explicit path does not exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    if path is None:
        path = find_config()
        if path is None:
            return GateConfig()
    elif not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    if path.name == PYPROJECT_FILENAME:
        data = data.get("tool", {}).get("leakgate", {})

    logger.debug("Loaded configuration from %s", path)
    return GateConfig.from_dict(data)
