import logging
import pathlib
from dataclasses import dataclass, field, fields
from typing import Any

import yaml

from i18nscan.exceptions import ConfigError
from i18nscan.extractor import DEFAULT_FUNC_LIST

logger = logging.getLogger(__name__)

DEFAULT_LOGGING = {
    "level": "INFO",
    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    "datefmt": "%Y-%m-%d %H:%M:%S",
}


@dataclass
class ScanConfig:
    input: list[str] = field(default_factory=lambda: ["src/**/*.{js,jsx,ts,tsx}"])
    output: str = "i18n"
    lngs: list[str] = field(default_factory=lambda: ["zh", "en"])
    default_lng: str = "zh"
    func_list: list[str] = field(default_factory=lambda: list(DEFAULT_FUNC_LIST))
    extensions: list[str] = field(default_factory=lambda: [".js", ".jsx", ".ts", ".tsx"])
    exclude_suffixes: list[str] = field(default_factory=lambda: [".d.ts"])
    resources: str | None = None
    hash_keys: bool = False
    remove_unused_keys: bool = False
    report_missing: bool = False
    fallback_lngs: dict[str, str] = field(default_factory=dict)
    read_workers: int = 1

    @property
    def target_lngs(self) -> list[str]:
        return [lng for lng in self.lngs if lng != self.default_lng]

    def accepts(self, path: str) -> bool:
        name = path.lower()
        if any(name.endswith(suffix) for suffix in self.exclude_suffixes):
            return False
        return pathlib.PurePath(name).suffix in self.extensions

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ScanConfig":
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"scan section must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for name, value in data.items():
            if name not in known:
                logger.warning(f"Ignoring unknown scan option {name!r}")
                continue
            values[name] = _check_type(name, value)
        return cls(**values)


def _check_type(name: str, value: Any) -> Any:
    if name in ("input", "lngs", "func_list", "extensions", "exclude_suffixes"):
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigError(f"{name} must be a list of strings")
    elif name == "fallback_lngs":
        if not isinstance(value, dict):
            raise ConfigError(f"{name} must be a mapping")
        value = {str(k): str(v) for k, v in value.items()}
    elif name in ("hash_keys", "remove_unused_keys", "report_missing"):
        if not isinstance(value, bool):
            raise ConfigError(f"{name} must be true or false")
    elif name == "read_workers":
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigError(f"{name} must be a positive integer")
    elif name == "resources":
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"{name} must be a path")
    elif not isinstance(value, str):
        raise ConfigError(f"{name} must be a string")
    return value


def load_config(config_folder: str) -> dict[str, Any]:
    """Read ``config.yml`` from the folder; a missing file yields an empty config."""
    config_file_path = pathlib.Path(config_folder).resolve() / "config.yml"
    try:
        with open(config_file_path, "r", encoding="utf-8") as file:
            config = yaml.safe_load(file) or {}
    except FileNotFoundError:
        logger.error(f"File not found: {config_file_path}")
        return {}

    if not isinstance(config, dict):
        raise ConfigError(f"{config_file_path} must contain a mapping")
    return config


def logging_settings(config: dict[str, Any]) -> dict[str, Any]:
    settings = dict(DEFAULT_LOGGING)
    settings.update(config.get("logging") or {})
    return settings
