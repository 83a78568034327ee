import os
import json
from typing import Any, Dict, List

DB_PATH: str = os.path.expanduser(os.environ.get("PERMUSAGE_DB", "~/.local/share/permusage.db"))
STATE_PATH: str = os.path.expanduser(os.environ.get("PERMUSAGE_STATE", "~/.local/share/permusage_state.json"))
REFRESH_INTERVAL: int = 60_000  # ms between automatic reloads in the window

# User configuration file path
USER_CONFIG_PATH: str = os.path.expanduser("~/.config/permusage/settings.json")

# Debug mode - logs derivation and loader details
DEBUG_MODE: bool = os.environ.get("PERMUSAGE_DEBUG", "0") == "1"
DEBUG_LOG_PATH: str = os.path.expanduser("~/.local/share/permusage_debug.log")


# --- Dynamic Configuration Class ---

class Config:
    """
    Manages dynamic application settings loaded from the user's JSON file.

    This class holds settings that can be reloaded at runtime.
    """
    DEFAULT_DURATION_MINUTES: int = 24 * 60
    DEFAULT_ITEM_SEPARATOR: str = ", "
    DEFAULT_WEB_PORT: int = 5050

    def __init__(self, config_path: str = USER_CONFIG_PATH):
        self.config_path = config_path
        self._user_config: Dict[str, Any] = {}

        self.default_duration_minutes: int = self.DEFAULT_DURATION_MINUTES
        self.item_separator: str = self.DEFAULT_ITEM_SEPARATOR
        self.platform_groups: List[str] = []
        self.web_port: int = self.DEFAULT_WEB_PORT

        self.reload()

    def _load_user_config(self) -> Dict[str, Any]:
        """Load user configuration from file."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                print(f"Ignoring config {self.config_path}: expected a JSON object")
            except (json.JSONDecodeError, IOError) as e:
                print(f"Ignoring broken config {self.config_path}: {e}")
        return {}

    def reload(self) -> None:
        """
        Reload configuration from disk, updating this object's attributes.
        """
        self._user_config = self._load_user_config()

        self.default_duration_minutes = int(self._user_config.get(
            'default_duration_minutes', self.DEFAULT_DURATION_MINUTES
        ))
        self.item_separator = str(self._user_config.get(
            'item_separator', self.DEFAULT_ITEM_SEPARATOR
        ))
        self.platform_groups = [
            str(g) for g in self._user_config.get('platform_groups', [])
        ]
        self.web_port = int(self._user_config.get('web_port', self.DEFAULT_WEB_PORT))

    @property
    def default_duration_millis(self) -> int:
        return self.default_duration_minutes * 60_000


# Shared instance imported by the rest of the application.
settings = Config()
