import copy
import logging
import os
import pathlib
from typing import Any

import vdf
import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    "backend": {
        "default": "resx",
        "resx": {"indent": 2},
        "json": {"indent": 2, "nested_keys": True, "include_meta": True},
        "phrases": {"default_language": "en"},
    },
    "scanner": {
        "workers": 4,
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_folder: str) -> dict[str, Any]:
    """Read ``config.yml`` from ``config_folder`` over the built-in defaults.

    A missing file is not an error. A malformed one raises ``yaml.YAMLError``.
    """
    config_file_path = os.path.abspath(f"{config_folder}/config.yml")
    try:
        with open(config_file_path, "r") as file:
            loaded = yaml.safe_load(file) or {}
    except FileNotFoundError:
        logger.debug(f"{config_file_path} not found, using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(loaded, dict):
        raise yaml.YAMLError(f"{config_file_path} must contain a mapping")
    return _merge(DEFAULT_CONFIG, loaded)


def setup_logging(config: dict[str, Any]) -> None:
    logging.basicConfig(
        level=logging.getLevelName(config["logging"]["level"]),
        format=config["logging"]["format"],
        datefmt=config["logging"]["datefmt"],
    )


def load_language_names(config_folder: str) -> dict[str, str]:
    """Display names from ``languages.cfg`` (``"Languages" { "fr" "French" }``)."""
    language_cfg_path = pathlib.Path(os.path.abspath(f"{config_folder}/languages.cfg"))
    if not language_cfg_path.is_file():
        return {}
    languages_cfg = vdf.loads(language_cfg_path.read_text("utf-8"))
    return dict(languages_cfg.get("Languages", {}))
