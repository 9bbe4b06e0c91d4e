"""
Configuration for ghtree.

Settings are layered: built-in defaults, then an optional YAML file,
then environment variables, then explicit command-line overrides.
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml


logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.github.com/graphql"
DEFAULT_MAX_CONCURRENCY = 8
DEFAULT_TIMEOUT = 30.0

CONFIG_KEYS = ("endpoint", "token", "max_concurrency", "timeout")


def default_config_path() -> Optional[Path]:
    """~/.ghtree/config.yaml, or None when the home directory can't be resolved."""
    try:
        return Path.home() / ".ghtree" / "config.yaml"
    except RuntimeError:
        logger.debug("Home directory not resolvable; skipping default config file")
        return None


def _parse_max_concurrency(value: Any, source: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid max_concurrency from {source}: {value!r}")
    if parsed < 0:
        raise ValueError(f"Invalid max_concurrency from {source}: must be >= 0, got {parsed}")
    return parsed


def _parse_timeout(value: Any, source: str) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid timeout from {source}: {value!r}")
    if parsed <= 0:
        raise ValueError(f"Invalid timeout from {source}: must be > 0, got {parsed}")
    return parsed


def load_config_file(config_path: Path) -> Dict[str, Any]:
    """
    Load settings from a YAML config file.

    Args:
        config_path: Path to the YAML file

    Returns:
        Dict of recognised settings

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a mapping or has unknown keys
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ValueError(f"Invalid config in {config_path}: must be a YAML dict")

    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise ValueError(f"Unknown keys in {config_path}: {', '.join(unknown)}")

    return data


class FetchConfig:
    """Connection and concurrency settings for a fetch."""

    def __init__(self, config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Load configuration.

        Args:
            config_path: Explicit YAML file (default: $GHTREE_CONFIG, then ~/.ghtree/config.yaml if present)
            environ: Environment mapping (default: os.environ)
        """
        env = os.environ if environ is None else environ

        self.endpoint: str = DEFAULT_ENDPOINT
        self.token: Optional[str] = None
        self.max_concurrency: int = DEFAULT_MAX_CONCURRENCY
        self.timeout: float = DEFAULT_TIMEOUT

        # YAML file layer
        if config_path is None and env.get("GHTREE_CONFIG"):
            config_path = Path(env["GHTREE_CONFIG"]).expanduser()
        if config_path is None:
            default_path = default_config_path()
            if default_path is not None and default_path.exists():
                config_path = default_path

        self.config_path = config_path
        if config_path is not None:
            file_settings = load_config_file(Path(config_path))
            self._apply(file_settings, source=str(config_path))

        # Environment layer
        env_settings: Dict[str, Any] = {}
        if env.get("GHTREE_ENDPOINT"):
            env_settings["endpoint"] = env["GHTREE_ENDPOINT"]
        if env.get("GITHUB_TOKEN"):
            env_settings["token"] = env["GITHUB_TOKEN"]
        if env.get("GHTREE_MAX_CONCURRENCY"):
            env_settings["max_concurrency"] = env["GHTREE_MAX_CONCURRENCY"]
        if env.get("GHTREE_TIMEOUT"):
            env_settings["timeout"] = env["GHTREE_TIMEOUT"]
        self._apply(env_settings, source="environment")

    def _apply(self, settings: Mapping[str, Any], source: str) -> None:
        if settings.get("endpoint") is not None:
            self.endpoint = str(settings["endpoint"])
        if settings.get("token") is not None:
            self.token = str(settings["token"])
        if settings.get("max_concurrency") is not None:
            self.max_concurrency = _parse_max_concurrency(settings["max_concurrency"], source)
        if settings.get("timeout") is not None:
            self.timeout = _parse_timeout(settings["timeout"], source)

    def apply_overrides(self, **overrides: Any) -> 'FetchConfig':
        """Apply explicit overrides (e.g. CLI flags); None values are ignored."""
        unknown = sorted(set(overrides) - set(CONFIG_KEYS))
        if unknown:
            raise ValueError(f"Unknown config overrides: {', '.join(unknown)}")
        self._apply(overrides, source="command line")
        return self

    def __repr__(self) -> str:
        token = "set" if self.token else "unset"
        return (
            f"FetchConfig(endpoint={self.endpoint!r}, token={token}, "
            f"max_concurrency={self.max_concurrency}, timeout={self.timeout})"
        )


def get_config(config_path: Optional[Path] = None) -> FetchConfig:
    """Get fetch configuration from the file and environment."""
    config = FetchConfig(config_path=config_path)
    logger.debug(f"Loaded {config!r}")
    return config
