from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .errors import ConfigAlreadyExists, ConfigNotFound, InvalidConfigKey

CONFIG_FILE = ".deploy-review.json"

ENV_LOCAL = "local"
ENV_GLOBAL = "global"
ENVIRONMENTS = (ENV_LOCAL, ENV_GLOBAL)

KEY_SLACK_WEBHOOK = "slack_webhook"
KEYS = (KEY_SLACK_WEBHOOK,)


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8") or "{}")
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if k in KEYS}


def save_config(config_path: Path, config: dict) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def config_path_for(env: str, *, cwd: Optional[Path] = None, home: Optional[Path] = None) -> Path:
    if env == ENV_LOCAL:
        return (cwd or Path.cwd()) / CONFIG_FILE
    if env == ENV_GLOBAL:
        return (home or Path.home()) / CONFIG_FILE
    raise ValueError(f"unknown environment: {env!r}")


def _check_key(key: str) -> None:
    if key not in KEYS:
        raise InvalidConfigKey(f"Key must be within {list(KEYS)}, got {key!r}")


class Config:
    """One scope (local or global) of the JSON configuration file."""

    def __init__(self, env: str = ENV_LOCAL, *, cwd: Optional[Path] = None, home: Optional[Path] = None) -> None:
        self.env = env
        self.path = config_path_for(env, cwd=cwd, home=home)
        self._data: Optional[dict] = None

    def init_file(self, *, force: bool = False) -> Path:
        if self.path.exists() and not force:
            raise ConfigAlreadyExists(f"{CONFIG_FILE} already exists.")
        save_config(self.path, {})
        self._data = {}
        return self.path

    def load(self) -> dict:
        if self._data is None:
            if not self.path.exists():
                raise ConfigNotFound(f"Can't find {self.path}. Run `deploy-review init` first.")
            self._data = load_config(self.path)
        return self._data

    def get(self, key: str) -> Optional[str]:
        _check_key(key)
        if self._data is None and not self.path.exists():
            return None
        value = self.load().get(key)
        return str(value) if value else None

    def set(self, key: str, value: str) -> str:
        _check_key(key)
        data = dict(self.load())
        data[key] = value
        save_config(self.path, data)
        self._data = data
        return value

    def items(self) -> list[tuple[str, str]]:
        return sorted((k, str(v)) for k, v in self.load().items())


def lookup(key: str, *, cwd: Optional[Path] = None, home: Optional[Path] = None) -> Optional[str]:
    """Read `key` from the local config first, then from the global one."""
    for env in ENVIRONMENTS:
        value = Config(env, cwd=cwd, home=home).get(key)
        if value:
            return value
    return None
