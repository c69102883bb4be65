"""Pre-commit hook integration for leakgate."""

from __future__ import annotations

import copy
from pathlib import Path

import yaml

HOOK_ID = "leakgate-secrets"

# Pre-commit hook configuration template
HOOK_CONFIG = """# leakgate pre-commit hook
# Add this to your .pre-commit-config.yaml

repos:
  - repo: local
    hooks:
      - id: leakgate-secrets
        name: Check staged changes for secrets
        entry: leakgate check
        language: system
        pass_filenames: false
        always_run: true
        stages: [pre-commit]
        description: Blocks commits that contain secrets (requires trufflehog)
"""

HOOK_ENTRY = {
    "repo": "local",
    "hooks": [
        {
            "id": HOOK_ID,
            "name": "Check staged changes for secrets",
            "entry": "leakgate check",
            "language": "system",
            "pass_filenames": False,
            "always_run": True,
            "stages": ["pre-commit"],
        },
    ],
}


def get_hook_config() -> str:
    """Get the pre-commit hook configuration as YAML string."""
    return HOOK_CONFIG


def find_precommit_config(start_dir: Path | None = None) -> Path | None:
    """Find .pre-commit-config.yaml in the current or parent directories.

    Args:
        start_dir: Starting directory (defaults to cwd)

    Returns:
        Path to config file or None if not found
    """
    current = (start_dir or Path.cwd()).resolve()

    while current != current.parent:
        config_path = current / ".pre-commit-config.yaml"
        if config_path.exists():
            return config_path
        current = current.parent

    return None


def _load(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    return yaml.safe_load(config_path.read_text()) or {}


def _local_hooks(config: dict) -> list[dict]:
    hooks: list[dict] = []
    for repo in config.get("repos", []):
        if repo.get("repo") == "local":
            hooks.extend(repo.get("hooks", []))
    return hooks


def is_hook_installed(config_path: Path | None = None) -> bool:
    """Return True if the leakgate hook is present in the pre-commit config."""
    if config_path is None:
        config_path = find_precommit_config()
    if config_path is None:
        return False
    return any(hook.get("id") == HOOK_ID for hook in _local_hooks(_load(config_path)))


def install_hooks(
    config_path: Path | None = None,
    create_if_missing: bool = True,
) -> bool:
    """Install the leakgate hook into .pre-commit-config.yaml.

    Args:
        config_path: Path to pre-commit config (auto-detected if None)
        create_if_missing: Create config file if it doesn't exist

    Returns:
        True if the hook was added, False if it was already present

    Raises:
        FileNotFoundError: If config not found and create_if_missing=False
    """
    if config_path is None:
        config_path = find_precommit_config()

    if config_path is None:
        if not create_if_missing:
            raise FileNotFoundError(
                ".pre-commit-config.yaml not found. "
                "Run from repository root or specify --config path."
            )
        config_path = Path.cwd() / ".pre-commit-config.yaml"

    config = _load(config_path)
    config.setdefault("repos", [])

    if any(hook.get("id") == HOOK_ID for hook in _local_hooks(config)):
        return False

    local_repo = next((r for r in config["repos"] if r.get("repo") == "local"), None)
    if local_repo is not None:
        local_repo.setdefault("hooks", []).extend(copy.deepcopy(HOOK_ENTRY["hooks"]))
    else:
        config["repos"].append(copy.deepcopy(HOOK_ENTRY))

    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    return True


def uninstall_hooks(config_path: Path | None = None) -> bool:
    """Remove the leakgate hook from .pre-commit-config.yaml.

    Returns:
        True if the hook was removed
    """
    if config_path is None:
        config_path = find_precommit_config()

    if config_path is None or not config_path.exists():
        return False

    config = _load(config_path)
    modified = False

    for repo in config.get("repos", []):
        if repo.get("repo") == "local":
            hooks = repo.get("hooks", [])
            kept = [hook for hook in hooks if hook.get("id") != HOOK_ID]
            if len(kept) != len(hooks):
                repo["hooks"] = kept
                modified = True

    if modified:
        # Remove empty local repos
        config["repos"] = [
            repo for repo in config["repos"]
            if not (repo.get("repo") == "local" and not repo.get("hooks"))
        ]
        with open(config_path, "w") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    return modified
