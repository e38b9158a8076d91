"""
Configuration loader for PixelKit.

Reads `pixelkit_config.yaml` (or the file named by PIXELKIT_CONFIG) and
applies PIXELKIT_* environment overrides on top, e.g.
PIXELKIT_RETOUCH_HISTORY_LIMIT=50 sets `retouch.history_limit`.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "pixelkit_config.yaml"
ENV_PREFIX = "PIXELKIT_"
CONFIG_PATH_ENV = "PIXELKIT_CONFIG"


def resolve_env_key(config: Mapping[str, Any], tokens: List[str]) -> List[str]:
    """
    Map underscore-separated tokens onto an existing key path.

    Key names may themselves contain underscores, so at every level the
    longest run of tokens naming an existing key wins:
    ["kernels", "edge", "threshold"] -> ["kernels", "edge_threshold"].
    An empty list means the tokens name no existing key.
    """
    if not tokens:
        return []
    for end in range(len(tokens), 0, -1):
        key = '_'.join(tokens[:end])
        if key not in config:
            continue
        if end == len(tokens):
            return [key]
        if isinstance(config[key], dict):
            rest = resolve_env_key(config[key], tokens[end:])
            if rest:
                return [key] + rest
    return []


def coerce_like(current: Any, raw: str) -> Any:
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(current, bool):
        return raw.strip().lower() in ('true', '1', 'yes', 'on')
    for kind in (int, float):
        if isinstance(current, kind):
            try:
                return kind(raw)
            except ValueError:
                return raw
    return raw


def apply_env_overrides(config: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Return a copy of `config` with PIXELKIT_* variables applied to existing keys."""
    merged = copy.deepcopy(config)
    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX) or name == CONFIG_PATH_ENV:
            continue
        path = resolve_env_key(merged, name[len(ENV_PREFIX):].lower().split('_'))
        if not path:
            continue
        parent = merged
        for key in path[:-1]:
            parent = parent[key]
        if isinstance(parent[path[-1]], dict):
            continue
        parent[path[-1]] = coerce_like(parent[path[-1]], raw)
    return merged


class ConfigLoader:
    """Parsed configuration with dot-notation access."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
        self._config: Dict[str, Any] = {}
        self.reload()

    def reload(self):
        """Re-read the file and the environment."""
        if not self.path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.path}")
        with open(self.path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.path}")
        self._config = apply_env_overrides(data, os.environ)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Value at a dot-notation key.

        Example:
            >>> get_config().get("retouch.history_limit")
            20
        """
        current: Any = self._config
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def get_section(self, section: str) -> Dict[str, Any]:
        """Whole section as a dict, empty when missing."""
        value = self.get(section)
        return value if isinstance(value, dict) else {}


_loader: Optional[ConfigLoader] = None


def get_config() -> ConfigLoader:
    """Process-wide configuration, loaded on first use."""
    global _loader
    if _loader is None:
        _loader = ConfigLoader()
    return _loader


def reload_config() -> ConfigLoader:
    """
    Load the configuration again.

    The file location is resolved anew, so a changed PIXELKIT_CONFIG takes
    effect together with any new PIXELKIT_* overrides.
    """
    global _loader
    _loader = ConfigLoader()
    return _loader
