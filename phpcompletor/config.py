"""
Workspace configuration.

Read from `.phpcompletor.yml` in the workspace root, for example:

    file_extensions: [php, inc]
    exclude_dirs: [vendor, node_modules]
    max_suggestions: 200
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from phpcompletor.exceptions import ConfigError

CONFIG_FILENAME = ".phpcompletor.yml"

DEFAULT_EXCLUDE_DIRS = frozenset(
    {".git", "node_modules", "vendor", "__pycache__", "venv", ".phpcompletor"}
)


@dataclass
class CompletorConfig:
    """Settings that shape a completion request."""

    file_extensions: tuple[str, ...] = ("php",)
    exclude_dirs: frozenset[str] = field(default_factory=lambda: DEFAULT_EXCLUDE_DIRS)
    max_suggestions: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> CompletorConfig:
        config = cls()

        extensions = data.get("file_extensions")
        if extensions is not None:
            if not isinstance(extensions, list) or not all(isinstance(e, str) for e in extensions):
                raise ConfigError("file_extensions must be a list of strings")
            config.file_extensions = tuple(e.lstrip(".").lower() for e in extensions)

        exclude_dirs = data.get("exclude_dirs")
        if exclude_dirs is not None:
            if not isinstance(exclude_dirs, list):
                raise ConfigError("exclude_dirs must be a list")
            config.exclude_dirs = frozenset(str(d) for d in exclude_dirs)

        max_suggestions = data.get("max_suggestions")
        if max_suggestions is not None:
            if not isinstance(max_suggestions, int) or max_suggestions < 1:
                raise ConfigError("max_suggestions must be a positive integer")
            config.max_suggestions = max_suggestions

        return config


def load_config(workspace_root: Path) -> CompletorConfig:
    """
    Load the configuration for a workspace.

    Returns the defaults when no configuration file exists.

    Raises:
        ConfigError: if the file exists but cannot be parsed
    """
    config_file = workspace_root / CONFIG_FILENAME
    if not config_file.is_file():
        return CompletorConfig()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read {config_file}: {e}") from e

    if data is None:
        return CompletorConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    return CompletorConfig.from_dict(data)
