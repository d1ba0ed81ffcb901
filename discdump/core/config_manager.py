from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from discdump import config
from discdump.common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Options:
    """Dumping preferences consumed by the default policies and the assembler."""

    dic_quiet_mode: bool = False
    dic_paranoid_mode: bool = False
    # -1 disables the value, 0 selects the tool default
    dic_reread_count: int = 0
    dic_dvd_reread_count: int = 0
    dic_multi_sector_read: bool = False
    dic_multi_sector_read_value: int = config.DEFAULT_MULTI_SECTOR_READ_VALUE
    dic_use_cmi_flag: bool = False
    redumper_reread_count: int = 0
    enable_redump_compatibility: bool = True
    include_artifacts: bool = False


class ConfigManager:
    """Persist user options as JSON, merged over the built-in defaults."""

    def __init__(self, config_file: Path | str = config.SETTINGS_FILE):
        self.config_path = Path(config_file)
        self.values: dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load settings from disk, merged over the defaults.

        A missing file is not an error; an unreadable one is logged and
        ignored so the defaults stay usable.
        """
        self.values = {f.name: getattr(Options(), f.name) for f in fields(Options)}

        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    stored = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable settings file %s: %s", self.config_path, e)
                return
            if isinstance(stored, dict):
                self.values.update(stored)

    def save(self) -> bool:
        """Write the current settings to disk."""
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(self.values, f, indent=4, ensure_ascii=False)
            return True
        except OSError as e:
            logger.error("Could not save settings to %s: %s", self.config_path, e)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def to_options(self) -> Options:
        """Build an ``Options`` from the stored values, checking their types."""
        kwargs: dict[str, Any] = {}
        for f in fields(Options):
            value = self.values.get(f.name, getattr(Options(), f.name))
            expected = bool if f.type in ("bool", bool) else int
            # bool is an int subclass; reject it where a count is expected
            if expected is int and isinstance(value, bool) or not isinstance(value, expected):
                raise ConfigurationError(
                    f"Invalid value for option {f.name}",
                    {"value": value, "expected": expected.__name__},
                )
            kwargs[f.name] = value
        return Options(**kwargs)
