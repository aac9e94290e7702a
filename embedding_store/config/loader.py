from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict


DEFAULT_CONFIG_PATH = Path("config.toml")
CONFIG_PATH_ENV = "EMBEDDING_STORE_CONFIG"


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Return ``path``, else ``$EMBEDDING_STORE_CONFIG``, else ./config.toml."""
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Read the TOML config file.

    A missing file yields an empty dict so settings fall back to environment
    variables.
    """
    target = resolve_config_path(path)
    if not target.is_file():
        return {}

    with target.open("rb") as handle:
        return tomllib.load(handle)


def section(raw: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Return the nested table at ``keys`` (e.g. ``embedding_store.milvus``) or ``{}``."""
    node: Any = raw or {}
    for key in keys:
        node = node.get(key, {}) if isinstance(node, dict) else {}
    return node if isinstance(node, dict) else {}


__all__ = ["load_raw_config", "resolve_config_path", "section", "DEFAULT_CONFIG_PATH", "CONFIG_PATH_ENV"]
