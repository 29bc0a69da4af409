from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .version import VCardVersion

logger = logging.getLogger(__name__)

CONF_NAME = "vcardkit.toml"


@dataclass
class Settings:
    default_version: str | None = None
    log_level: str = "WARNING"
    keep_unknown: bool = True

    @property
    def version(self) -> VCardVersion | None:
        """Version every card is validated against; None means each card's own."""
        if self.default_version is None:
            return None
        return VCardVersion.value_of(self.default_version)


DEFAULT_CONF = """# vcardkit local config (TOML)
# default_version = "4.0" # validate every card against this version, not its own
log_level = "WARNING"
keep_unknown = true       # keep X- extension properties when reading
"""


def load_settings(conf: Path | None = None) -> Settings:
    """Read settings from a TOML file. Missing or malformed files give defaults."""
    conf = Path(conf) if conf is not None else Path.cwd() / CONF_NAME
    settings = Settings()
    if not conf.exists():
        return settings

    try:
        data: dict[str, Any] = tomllib.loads(conf.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring unreadable config %s: %s", conf, exc)
        return settings

    if "default_version" in data:
        settings.default_version = str(data["default_version"])
    settings.log_level = str(data.get("log_level", settings.log_level)).upper()
    settings.keep_unknown = bool(data.get("keep_unknown", settings.keep_unknown))

    if settings.default_version is not None and settings.version is None:
        logger.warning(
            "unknown default_version %r in %s, validating against each card's own version",
            settings.default_version, conf,
        )
        settings.default_version = None
    return settings


def write_default_config(conf: Path) -> bool:
    """Write the default config file. Returns False if one already exists."""
    conf = Path(conf)
    if conf.exists():
        return False
    conf.parent.mkdir(parents=True, exist_ok=True)
    conf.write_text(DEFAULT_CONF, encoding="utf-8")
    return True
