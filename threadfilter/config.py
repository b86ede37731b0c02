"""threadfilter settings: CLI flags, environment, then a YAML config file.

The config file is optional and lives at ``~/.threadfilter/config.yaml``
unless ``THREADFILTER_CONFIG`` points elsewhere::

    person: Alice
    mode: buffer        # or "stream"
    encoding: utf-8
"""

from __future__ import annotations

import codecs
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from threadfilter.output import MODES

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".threadfilter" / "config.yaml"
CONFIG_ENV = "THREADFILTER_CONFIG"
PERSON_ENV = "THREADFILTER_PERSON"
MODE_ENV = "THREADFILTER_MODE"

DEFAULT_MODE = "buffer"
DEFAULT_ENCODING = "utf-8"


@dataclass
class Settings:
    """Resolved settings for one run.

    ``person`` is ``None`` when no source named anyone; an empty string
    is a real value and matches every thread.
    """

    person: Optional[str] = None
    mode: str = DEFAULT_MODE
    encoding: str = DEFAULT_ENCODING


def config_path() -> Path:
    """Config file location from ``$THREADFILTER_CONFIG`` or the default."""
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the YAML config file. Missing or broken files give ``{}``."""
    path = path or config_path()
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring config file %s: %s", path, exc)
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring it", path)
        return {}
    return data


def _valid_mode(value: Any, origin: str) -> Optional[str]:
    if value is None:
        return None
    if value in MODES:
        return value
    logger.warning("Ignoring mode %r from %s; expected one of %s", value, origin, ", ".join(MODES))
    return None


def _valid_encoding(value: Any, origin: str) -> Optional[str]:
    if value is None:
        return None
    try:
        codecs.lookup(str(value))
    except LookupError:
        logger.warning("Ignoring unknown encoding %r from %s", value, origin)
        return None
    return str(value)


def resolve_settings(
    person: Optional[str] = None,
    mode: Optional[str] = None,
    encoding: Optional[str] = None,
    path: Optional[Path] = None,
) -> Settings:
    """Merge settings with priority CLI argument > environment > config file > default."""
    config = load_config(path)

    if person is None:
        person = os.environ.get(PERSON_ENV)
    if person is None and config.get("person") is not None:
        person = str(config["person"])

    mode = (
        mode
        or _valid_mode(os.environ.get(MODE_ENV), MODE_ENV)
        or _valid_mode(config.get("mode"), "config file")
        or DEFAULT_MODE
    )

    encoding = (
        encoding
        or _valid_encoding(config.get("encoding"), "config file")
        or DEFAULT_ENCODING
    )

    return Settings(person=person, mode=mode, encoding=encoding)
