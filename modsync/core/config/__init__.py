from __future__ import annotations

from modsync.core.config.manager import ConfigManager
from modsync.core.config.models import AppConfig
from modsync.core.config.paths import ConfigFsPaths

__all__ = ["AppConfig", "ConfigFsPaths", "ConfigManager"]
