"""Pre-DB bootstrap configuration. Zero imports from the rest of the app.

Stores user preferences that must be known before opening the DB (db_folder,
log_level). Config lives in ~/.budget/config.json to avoid a bootstrapping
problem.
"""
import json
import logging
import os
from pathlib import Path

CONFIG_DIR = Path.home() / ".budget"
CONFIG_FILE = CONFIG_DIR / "config.json"

logger = logging.getLogger(__name__)


def load_config(path: Path | None = None) -> dict:
    """Returns {} on missing or corrupt file."""
    path = path or CONFIG_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict, path: Path | None = None) -> None:
    """Creates the config folder if needed; atomic write via .tmp + os.replace()."""
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


def get_db_folder(path: Path | None = None) -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config(path).get("db_folder")


def set_db_folder(folder: str | None, path: Path | None = None) -> None:
    config = load_config(path)
    if folder is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = folder
    save_config(config, path)


def get_log_level(path: Path | None = None) -> int:
    """Numeric logging level from config["log_level"]; INFO when unset or unknown."""
    name = str(load_config(path).get("log_level", "INFO")).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
