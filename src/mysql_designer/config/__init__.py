"""Configuration management: profiles, designer settings, TOML loading.

Usage:
    >>> from mysql_designer.config import load_db_config, DatabaseProfile, DatabaseConfig
"""

from mysql_designer.config.loader import load_db_config
from mysql_designer.config.models import DatabaseConfig, DatabaseProfile, DesignerSettings

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile", "DesignerSettings"]
