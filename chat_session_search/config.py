"""Configuration for chat-session-search.

Settings live in a small YAML file (default
``~/.config/chat-session-search/config.yaml``)::

    storage_root: ~/.config/Code - Insiders/User/workspaceStorage
    max_workers: 8
    default_limit: 50

Environment variables override the file, and command line options override
both.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

import yaml

from .workspace import DESCRIPTOR_NAME, SESSION_EXTENSION, SESSIONS_DIR_NAME

DEFAULT_CONFIG_PATH = Path("~/.config/chat-session-search/config.yaml").expanduser()
DEFAULT_MAX_WORKERS = 8
DEFAULT_LIMIT = 50

ENV_STORAGE_ROOT = "CHAT_SESSION_SEARCH_STORAGE_ROOT"
ENV_MAX_WORKERS = "CHAT_SESSION_SEARCH_MAX_WORKERS"
ENV_LIMIT = "CHAT_SESSION_SEARCH_LIMIT"


def _int_setting(data: dict, key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key} must be an integer, got {value!r}") from e


# ---------------------------------------------------------------------------
# SearchConfig dataclass
# ---------------------------------------------------------------------------


@dataclass
class SearchConfig:
    """Settings shared by every command."""

    storage_root: Path | None = None  # None = platform default
    max_workers: int = DEFAULT_MAX_WORKERS
    default_limit: int = DEFAULT_LIMIT
    sessions_dir_name: str = SESSIONS_DIR_NAME
    descriptor_name: str = DESCRIPTOR_NAME
    session_extension: str = SESSION_EXTENSION

    def __post_init__(self) -> None:
        if self.storage_root is not None:
            self.storage_root = Path(self.storage_root).expanduser()
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.default_limit < 1:
            raise ValueError(f"default_limit must be at least 1, got {self.default_limit}")

    def to_dict(self) -> dict:
        """Serialize to dict for YAML storage."""
        result: dict = {
            "max_workers": self.max_workers,
            "default_limit": self.default_limit,
            "sessions_dir_name": self.sessions_dir_name,
            "descriptor_name": self.descriptor_name,
            "session_extension": self.session_extension,
        }
        if self.storage_root is not None:
            result["storage_root"] = str(self.storage_root)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> SearchConfig:
        """Deserialize from dict. Missing keys take their defaults.

        Raises:
            ValueError: If a value has the wrong type or is out of range.
        """
        storage_root = data.get("storage_root")
        if storage_root is not None and not isinstance(storage_root, (str, Path)):
            raise ValueError(f"storage_root must be a path string, got {storage_root!r}")
        return cls(
            storage_root=Path(storage_root) if storage_root else None,
            max_workers=_int_setting(data, "max_workers", DEFAULT_MAX_WORKERS),
            default_limit=_int_setting(data, "default_limit", DEFAULT_LIMIT),
            sessions_dir_name=data.get("sessions_dir_name", SESSIONS_DIR_NAME),
            descriptor_name=data.get("descriptor_name", DESCRIPTOR_NAME),
            session_extension=data.get("session_extension", SESSION_EXTENSION),
        )


def apply_env_overrides(config: SearchConfig, environ: dict[str, str] | None = None) -> SearchConfig:
    """Return a copy of config with environment variable overrides applied.

    Raises:
        ValueError: If a numeric override is not a positive integer.
    """
    environ = os.environ if environ is None else environ
    data = config.to_dict()

    if environ.get(ENV_STORAGE_ROOT):
        data["storage_root"] = environ[ENV_STORAGE_ROOT]
    for key, env_name in (("max_workers", ENV_MAX_WORKERS), ("default_limit", ENV_LIMIT)):
        if environ.get(env_name):
            try:
                data[key] = int(environ[env_name])
            except ValueError as e:
                raise ValueError(f"{env_name} must be an integer: {environ[env_name]!r}") from e

    return SearchConfig.from_dict(data)


# ---------------------------------------------------------------------------
# ConfigManager
# ---------------------------------------------------------------------------


class ConfigManager:
    """Loads and saves SearchConfig from a YAML file.

    Saves use an atomic write (temp file + rename) so a crash never leaves a
    truncated config behind.
    """

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """Initialize with path to the YAML configuration file.

        Args:
            config_path: Path to the YAML configuration file.
        """
        self._config_path = config_path

    @property
    def config_path(self) -> Path:
        """Return the configuration file path."""
        return self._config_path

    def load(self) -> SearchConfig:
        """Load the configuration.

        Returns:
            SearchConfig from the file, or defaults if the file is missing
            or empty.

        Raises:
            ValueError: If the file does not contain a YAML mapping, or a
                value is out of range.
        """
        if not self._config_path.exists():
            return SearchConfig()

        with open(self._config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return SearchConfig()
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {self._config_path}")

        return SearchConfig.from_dict(data)

    def save(self, config: SearchConfig) -> None:
        """Save the configuration to the YAML file.

        Args:
            config: Configuration to persist.
        """
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self._config_path.parent,
            prefix=".config_",
            suffix=".yaml.tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
            os.replace(temp_path, self._config_path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise


def load_config(
    config_path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> SearchConfig:
    """Load the config file and apply environment overrides."""
    config = ConfigManager(config_path or DEFAULT_CONFIG_PATH).load()
    return apply_env_overrides(config, environ)
