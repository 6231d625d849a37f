# src/siteinfo/managers/config_manager.py
import json
import logging
from typing import Any, Dict, Optional

from siteinfo.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Read-only access to the defaults packaged in settings.json.
    Callers override them through constructor arguments or CLI flags, never by editing the file.
    """

    def __init__(self) -> None:
        self._defaults: Dict[str, Any] = {}
        self.reset()

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """Looks up a dotted key such as 'session.time_out'; missing keys and nulls give `default`."""
        node: Any = self._defaults
        for part in key_path.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def reset(self) -> None:
        """(Re)reads settings.json; an absent or unreadable file leaves no defaults."""
        path = PathUtils.get_settings_file()
        if not path.exists():
            logger.warning("settings.json not found at %s. Using built-in defaults.", path)
            self._defaults = {}
            return
        try:
            self._defaults = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load %s: %s", path, e, exc_info=True)
            self._defaults = {}


# Shared by LoaderSettings.from_config, the batch controller and the CLI.
config_manager = ConfigManager()
