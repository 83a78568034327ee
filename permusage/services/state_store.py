"""Persistence of the usage screen's restorable state."""
import os
import json
from typing import Any, Dict
from ..config import STATE_PATH

STATE_KEYS = ("show_system", "filter_group", "time_index", "sort", "finished_initial_load")


class StateStore:
    """Saves and restores the controller's state dict as JSON."""

    def __init__(self, path: str = STATE_PATH) -> None:
        self.path = path

    def load(self) -> Dict[str, Any]:
        """Load saved state, or {} if missing or unreadable."""
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            print(f"Ignoring unreadable state file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {key: data[key] for key in STATE_KEYS if key in data}

    def save(self, state: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump({key: state.get(key) for key in STATE_KEYS}, f, indent=2)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
