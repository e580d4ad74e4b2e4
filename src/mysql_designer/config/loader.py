"""db.toml loading.

Usage:
    from mysql_designer.config.loader import load_db_config

    config = load_db_config()                     # ./db.toml
    config = load_db_config(Path("conf/db.toml"))
    policy = config.designer.policy
"""

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from mysql_designer.config.models import DatabaseConfig, DatabaseProfile, DesignerSettings

logger = logging.getLogger(__name__)


def load_db_config(config_path: Path | None = None) -> DatabaseConfig:
    """Load database configuration from TOML file.

    Args:
        config_path: Path to db.toml (default: ``db.toml`` in the current
            working directory)

    Returns:
        DatabaseConfig with all profiles and designer settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / "db.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Database config not found: {config_path}\n"
            f"Create db.toml with a [profiles.<name>] table containing a url."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = DatabaseProfile(**profile_data)

        # Parse designer settings
        designer = DesignerSettings(**data.get("designer", {}))
    except PydanticValidationError as e:
        raise ValueError(f"Invalid config in {config_path}: {e}") from e

    logger.debug("Loaded %d profiles from %s", len(profiles), config_path)
    return DatabaseConfig(profiles=profiles, designer=designer)
