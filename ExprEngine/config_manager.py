# config_manager.py
"""Load and save engine settings stored in config.json at the project root."""
import json
from pathlib import Path

config_json = Path(__file__).resolve().parent.parent / "config.json"

DEFAULT_SETTINGS = {
    "decimal_places": 10,
    "significant_digits": None,
    "tolerance": 1e-10,
    "max_iterations": 100,
    "initial_guess": 1.0,
    "codegen": True,
    "debug": False,
}


def load_setting_value(key_value):
    """Return one setting, or every setting for key_value == "all".

    Missing or unreadable files fall back to DEFAULT_SETTINGS.
    """
    settings_dict = dict(DEFAULT_SETTINGS)
    try:
        with open(config_json, 'r', encoding='utf-8') as f:
            stored = json.load(f)
        if isinstance(stored, dict):
            settings_dict.update(stored)

    except (FileNotFoundError, json.JSONDecodeError):
        pass

    if key_value == "all":
        return settings_dict

    else:
        return settings_dict.get(key_value, 0)


def save_setting(settings_dict):
    try:
        with open(config_json, 'w', encoding='utf-8') as f:
            json.dump(settings_dict, f, indent=4)
            return settings_dict

    except (FileNotFoundError, TypeError):
        return {}
