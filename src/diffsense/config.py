"""Switcher configuration loader.

Supports .diffsense/switcher.toml or .diffsense/switcher.yaml files for
customizing the remote, temporary branch prefix and cleanliness policy.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml


CONFIG_DIR = ".diffsense"
TOML_NAME = "switcher.toml"
YAML_NAME = "switcher.yaml"

ENV_REMOTE = "DIFFSENSE_REMOTE"
ENV_BRANCH_PREFIX = "DIFFSENSE_BRANCH_PREFIX"

DEFAULT_MAX_OUTPUT_BYTES = 50 * 1024 * 1024


@dataclass(frozen=True)
class SwitcherConfig:
    """Settings for the temporary checkout protocol."""

    remote: str = "origin"
    branch_prefix: str = "diffsense-temp"
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    refuse_untracked: bool = False
    git_binary: str = "git"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SwitcherConfig:
        """Parse and validate config dict into SwitcherConfig."""
        section = data.get("switcher", data)
        if not isinstance(section, dict):
            raise TypeError("switcher section must be a table")

        defaults = cls()
        remote = str(section.get("remote", defaults.remote)).strip()
        prefix = str(section.get("branch_prefix", defaults.branch_prefix)).strip().strip("-")
        max_output = int(section.get("max_output_bytes", defaults.max_output_bytes))
        if not remote:
            raise ValueError("remote must not be empty")
        if not prefix:
            raise ValueError("branch_prefix must not be empty")
        if max_output <= 0:
            raise ValueError("max_output_bytes must be positive")

        return cls(
            remote=remote,
            branch_prefix=prefix,
            max_output_bytes=max_output,
            refuse_untracked=bool(section.get("refuse_untracked", defaults.refuse_untracked)),
            git_binary=str(section.get("git_binary", defaults.git_binary)),
        )


def load_switcher_config(repo_root: Path, *, apply_env: bool = True) -> SwitcherConfig:
    """Load switcher configuration for a repository.

    Priority order:
    1. .diffsense/switcher.toml (preferred)
    2. .diffsense/switcher.yaml (fallback)
    3. built-in defaults

    ``DIFFSENSE_REMOTE`` and ``DIFFSENSE_BRANCH_PREFIX`` override file values
    when ``apply_env`` is set.

    Raises:
        RuntimeError: If a config file is malformed or invalid
    """
    config_dir = repo_root / CONFIG_DIR
    config = SwitcherConfig()

    toml_path = config_dir / TOML_NAME
    yaml_path = config_dir / YAML_NAME
    if toml_path.exists():
        try:
            with open(toml_path, "rb") as f:
                data = tomllib.load(f)
            config = SwitcherConfig.from_dict(data)
        except tomllib.TOMLDecodeError as e:
            raise RuntimeError(f"Malformed TOML config at {toml_path}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Invalid config structure in {toml_path}: {e}") from e
    elif yaml_path.exists():
        try:
            with open(yaml_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise TypeError("top-level YAML value must be a mapping")
            config = SwitcherConfig.from_dict(data)
        except yaml.YAMLError as e:
            raise RuntimeError(f"Malformed YAML config at {yaml_path}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Invalid config structure in {yaml_path}: {e}") from e

    if apply_env:
        config = _apply_env_overrides(config)
    return config


def _apply_env_overrides(config: SwitcherConfig) -> SwitcherConfig:
    remote = os.getenv(ENV_REMOTE, "").strip()
    prefix = os.getenv(ENV_BRANCH_PREFIX, "").strip().strip("-")
    if remote:
        config = replace(config, remote=remote)
    if prefix:
        config = replace(config, branch_prefix=prefix)
    return config
