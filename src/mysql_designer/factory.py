"""Database client factory.

Resolves which MySQL server to talk to and builds adapters for it:
1. Profile mode (db.toml + .db-profile): named connection profiles
2. Direct mode (``database_url=``): a single URL, bypassing profiles

Usage:
    from mysql_designer.factory import connect_and_validate, get_adapter

    result = await connect_and_validate("local")
    adapter = await get_adapter()
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from mysql_designer.adapters import AsyncMySQLAdapter, DatabaseClient
from mysql_designer.config import load_db_config
from mysql_designer.config.models import DatabaseProfile
from mysql_designer.errors import DesignerError
from mysql_designer.schema.models import ConnectionResult

logger = logging.getLogger(__name__)

# Profile lock file, resolved against the working directory at use time
_PROFILE_LOCK_NAME = ".db-profile"
_PROFILE_LOCK_FILE: Path | None = None


# ============================================================================
# Profile Lock File Operations
# ============================================================================


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


def _profile_lock_file() -> Path:
    return _PROFILE_LOCK_FILE or Path.cwd() / _PROFILE_LOCK_NAME


def read_profile_lock() -> str | None:
    """Return the profile remembered by the last successful connect, if any."""
    lock_file = _profile_lock_file()
    if lock_file.exists():
        return lock_file.read_text().strip()
    return None


def write_profile_lock(profile_name: str) -> None:
    """Remember ``profile_name`` as the active profile. Written only after a connect succeeds."""
    _profile_lock_file().write_text(profile_name)


def clear_profile_lock() -> None:
    """Forget the remembered profile."""
    lock_file = _profile_lock_file()
    if lock_file.exists():
        lock_file.unlink()


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from env var or lock file.

    Priority:
    1. ``{env_prefix}DB_PROFILE`` env var (for initial connect or CI/CD)
    2. .db-profile file (profile from a previous successful connect)
    3. Raise ProfileNotFoundError

    Args:
        env_prefix: Prefix for the env var name, e.g. ``"MYAPP_"`` reads
            ``MYAPP_DB_PROFILE``.

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get(f"{env_prefix}DB_PROFILE")
    if env_profile:
        return env_profile

    lock_profile = read_profile_lock()
    if lock_profile:
        return lock_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_prefix}DB_PROFILE=<name> mysql-designer connect\n"
        "Profiles are defined in db.toml under [profiles.<name>]."
    )


def get_active_profile(env_prefix: str = "") -> tuple[str, DatabaseProfile]:
    """Return ``(name, profile)`` for the active profile.

    Raises:
        ProfileNotFoundError: If no profile is configured
        KeyError: If the profile is not defined in db.toml
    """
    profile_name = get_active_profile_name(env_prefix)
    return profile_name, _lookup_profile(profile_name)


def _lookup_profile(profile_name: str) -> DatabaseProfile:
    profiles = load_db_config().profiles
    if profile_name not in profiles:
        raise KeyError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {', '.join(profiles)}"
        )
    return profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Return the profile URL with ``[YOUR-PASSWORD]`` replaced by the URL-encoded ``db_password``."""
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Connection
# ============================================================================


async def connect_and_validate(
    profile_name: str | None = None,
    validate_only: bool = False,
    env_prefix: str = "",
) -> ConnectionResult:
    """Connect to a profile's server and remember it as the active profile.

    Args:
        profile_name: Profile name from db.toml. If None, uses the
            ``{env_prefix}DB_PROFILE`` env var or existing .db-profile lock file.
        validate_only: If True, only check the connection without writing
            the lock file.
        env_prefix: Prefix for the profile env var.

    Returns:
        ConnectionResult with success status and server version

    Example:
        >>> result = await connect_and_validate("local")
        >>> if result.success:
        ...     print(f"Connected to {result.profile_name} ({result.server_version})")
        ... else:
        ...     print(f"Failed: {result.error}")
    """
    # Resolve profile name
    if profile_name is None:
        try:
            profile_name = get_active_profile_name(env_prefix)
        except ProfileNotFoundError as e:
            return ConnectionResult(success=False, error=str(e))

    # Load profile config
    try:
        config = load_db_config()
    except (FileNotFoundError, ValueError) as e:
        return ConnectionResult(success=False, error=str(e))

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys())
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Profile '{profile_name}' not found. Available: {available}",
        )

    adapter = AsyncMySQLAdapter(database_url=resolve_url(config.profiles[profile_name]))
    try:
        rows = await adapter.fetch_all("SELECT VERSION() AS version")
    except DesignerError as e:
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Failed to connect to database: {e}",
        )
    finally:
        await adapter.close()

    server_version = str(rows[0]["version"]) if rows else None
    logger.info("Connected to profile %s (MySQL %s)", profile_name, server_version)

    if not validate_only:
        write_profile_lock(profile_name)

    return ConnectionResult(
        success=True,
        profile_name=profile_name,
        server_version=server_version,
    )


# ============================================================================
# Database Adapter Factory
# ============================================================================


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
) -> DatabaseClient:
    """Create a database adapter.

    Each call creates a new adapter; callers own it and must ``close()`` it.

    Args:
        profile_name: Profile from db.toml. If None, the active profile is
            used.
        env_prefix: Prefix for the profile env var.
        database_url: Connect to this URL directly, ignoring profiles.

    Returns:
        AsyncMySQLAdapter instance

    Raises:
        ProfileNotFoundError: If no database configuration found
        KeyError: If the profile is not defined in db.toml
    """
    if database_url:
        return AsyncMySQLAdapter(database_url=database_url)

    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)

    return AsyncMySQLAdapter(database_url=resolve_url(_lookup_profile(profile_name)))
