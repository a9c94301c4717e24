import copy
import toml
import os
from .cli_logger import logger

CONFIG_FILE = "libsqlite.toml"

DEFAULT_CONFIG = {
    "library": {
        "name": "sqlite3",
    },
    "build": {
        "backend": "nix",
        "flake": ".",
        "attribute": "libsqlite3",
        "max_workers": 2,
        "dist_dir": "dist",
        "targets": [],
        "baked_path": "",
    },
    "package": {
        "name": "libsqlite-bin",
        "module": "libsqlite_bin",
        "version": "0.0.0",
        "description": "Prebuilt SQLite shared libraries for Linux and macOS",
        "readme": "README.md",
    },
}

def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.debug(f"Loading configuration from {config_path}")
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False

def get_build_settings(conf):
    """Merge a loaded configuration over the defaults, section by section."""
    settings = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in (conf or {}).items():
        if isinstance(values, dict) and section in settings:
            settings[section].update(values)
        else:
            settings[section] = values

    try:
        settings["build"]["max_workers"] = max(1, int(settings["build"]["max_workers"]))
    except (TypeError, ValueError):
        logger.warning(f"Invalid build.max_workers value {settings['build']['max_workers']!r}, using 2.")
        settings["build"]["max_workers"] = 2
    return settings
