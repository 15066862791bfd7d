import json
import os

# The balance file ships as package data next to this module.
PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_FILE_PATH = os.getenv(
    'DERBY_SIM_CONFIG', os.path.join(PACKAGE_DIR, 'configs', 'race_config.json')
)

def load_config(path=CONFIG_FILE_PATH):
    """
    Loads the race balance config file.
    Returns None when the file is missing or unreadable; callers fall back to defaults.
    """
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        return config
    except FileNotFoundError:
        print(f"Warning: Could not find config file at {path}; using built-in defaults.")
        return None
    except Exception as e:
        print(f"Warning: Could not parse config file {path}: {e}")
        return None

# Load the config ONCE when the module is first imported
BALANCE_CONFIG = load_config()

def get_config(key_path, default=None):
    """
    Safely gets a value from the loaded config using a 'dot.path'.
    Example: get_config('race.round_transition_delay_ms')
    """
    if not BALANCE_CONFIG:
        return default

    try:
        keys = key_path.split('.')
        value = BALANCE_CONFIG
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default
