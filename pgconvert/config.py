import logging
import os
import sys
from copy import deepcopy
from logging.handlers import RotatingFileHandler
from typing import Optional

import yaml

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULT_CONFIG = {
    "llm": {
        "api_key_env": "GEMINI_API_KEY",
        "timeout_seconds": None,
    },
    "logging": {
        "level": "INFO",
        "file": "",
        "format": DEFAULT_LOG_FORMAT,
        "max_bytes": 1024 * 1024,
        "backup_count": 3,
    },
    "output": {
        "dir": "",
    },
}

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def load_config(path: Optional[str] = None) -> dict:
    """Read a YAML config file; no path means built-in defaults."""
    if not path:
        return {}
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return normalize_sections(yaml.safe_load(f) or {})


def normalize_sections(config) -> dict:
    """Turn empty sections into ``{}`` and reject anything that is not a mapping."""
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError("configuration must be a mapping")
    for section in DEFAULT_CONFIG:
        values = config.get(section)
        if values is None:
            if section in config:
                config[section] = {}
        elif not isinstance(values, dict):
            raise ValueError(f"{section} must be a mapping")
    return config


def _expand_path(value: str) -> str:
    if not value:
        return value
    return os.path.abspath(os.path.expanduser(os.path.expandvars(value)))


def validate_config(config: dict) -> dict:
    """Fill defaults, normalize paths and reject invalid values."""
    validated = deepcopy(DEFAULT_CONFIG)
    for section, values in normalize_sections(config).items():
        if isinstance(values, dict) and isinstance(validated.get(section), dict):
            validated[section].update(values)
        else:
            validated[section] = values

    llm = validated["llm"]
    env_name = llm.get("api_key_env")
    if not isinstance(env_name, str) or not env_name.strip():
        raise ValueError("llm.api_key_env must be a non-empty string")

    timeout = llm.get("timeout_seconds")
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ValueError("llm.timeout_seconds must be a number")
        if timeout <= 0:
            raise ValueError("llm.timeout_seconds must be > 0")

    log_conf = validated["logging"]
    level = str(log_conf.get("level") or "INFO").upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {sorted(LOG_LEVELS)}")
    log_conf["level"] = level
    log_conf["file"] = _expand_path(log_conf.get("file") or "")

    validated["output"]["dir"] = _expand_path(validated["output"].get("dir") or "")
    return validated


def apply_logging_overrides(config: dict, args) -> dict:
    """CLI flags win over PGCONVERT_LOG_* environment variables, which win over the file."""
    config = normalize_sections(config)
    log_conf = config.setdefault("logging", {})

    env_level = os.environ.get("PGCONVERT_LOG_LEVEL")
    env_file = os.environ.get("PGCONVERT_LOG_FILE")
    if env_level:
        log_conf["level"] = env_level.upper()
    if env_file:
        log_conf["file"] = env_file

    if getattr(args, "log_level", None):
        log_conf["level"] = args.log_level.upper()
    if getattr(args, "log_file", None):
        log_conf["file"] = args.log_file
    return config


def _log_file_handler(log_conf: dict, log_file: str) -> RotatingFileHandler:
    os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
    return RotatingFileHandler(
        log_file,
        maxBytes=log_conf.get("max_bytes", 1024 * 1024),
        backupCount=log_conf.get("backup_count", 3),
        encoding="utf-8",
    )


def configure_logging(config: dict) -> None:
    """Send logs to stderr, and to a rotating file when ``logging.file`` is set.

    stdout is reserved for converted code so ``pgconvert convert`` output can be piped.
    """
    log_conf = config.get("logging") or {}
    level = getattr(logging, str(log_conf.get("level", "INFO")).upper(), logging.INFO)

    handlers: list = [logging.StreamHandler(sys.stderr)]
    if log_conf.get("file"):
        handlers.append(_log_file_handler(log_conf, log_conf["file"]))

    logging.basicConfig(
        level=level,
        format=log_conf.get("format", DEFAULT_LOG_FORMAT),
        handlers=handlers,
        force=True,
    )
