#!/usr/bin/env python3
"""
Centralized path configuration for MediaStack
Resolves the config directory once so the database and logs live side by side
"""

import os
import platform
from pathlib import Path


def _resolve_config_dir() -> Path:
    """Docker (/config), MEDIASTACK_CONFIG_DIR, Windows AppData, or ./data for local runs."""
    env_dir = os.environ.get("MEDIASTACK_CONFIG_DIR")
    if env_dir:
        return Path(env_dir)

    docker_dir = Path("/config")
    if docker_dir.exists() and docker_dir.is_dir():
        return docker_dir

    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", os.path.expanduser("~"))
        return Path(appdata) / "MediaStack"

    project_root = Path(__file__).parent.parent.parent
    return project_root / "data"


CONFIG_DIR = _resolve_config_dir()
CONFIG_DIR.mkdir(parents=True, exist_ok=True)

LOG_DIR = CONFIG_DIR / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)

DB_PATH = CONFIG_DIR / "mediastack.db"
