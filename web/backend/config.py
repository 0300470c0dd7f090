#!/usr/bin/env python3
"""
Configuration management for the internal RPC application.

Reuses the core config models so the API and the CLI read the same
config.yaml; adds WEB_HOST / WEB_PORT overrides for the server itself.
"""

import os
from pathlib import Path
from functools import lru_cache

from core.config_loader import AppConfig, load_config


@lru_cache()
def get_config() -> AppConfig:
    """
    Get application configuration with caching.

    Loads from config.yaml (DATABASE_URL / REDIS_URL overrides applied by
    load_config) and applies the web server overrides.
    """
    config = load_config(str(get_project_root() / 'config.yaml'))

    if 'WEB_HOST' in os.environ:
        config.web.host = os.environ['WEB_HOST']
    if 'WEB_PORT' in os.environ:
        config.web.port = int(os.environ['WEB_PORT'])

    return config


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent
