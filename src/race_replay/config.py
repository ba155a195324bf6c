import json
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "race-replay"
CONFIG_PATH = CONFIG_DIR / "race-replay.json"
LOCAL_CONFIG_PATH = Path("race-replay.json")


def load_config() -> dict:
    """Load configuration from config files.

    Merges config from global and local files:
    1. ~/.config/race-replay/race-replay.json (global, loaded first)
    2. ./race-replay.json (local, overrides global)

    Returns:
        Dict with merged config values, empty dict if no files exist.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config
