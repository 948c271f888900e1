"""
Configuration Management for the table discovery engine
Loads all settings from environment variables with validation and defaults
"""
import os
import logging
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env file
load_dotenv()

logger = logging.getLogger(__name__)

VALID_STRATEGIES = ('', 'schema_first', 'scan_then_filter')
VALID_TABLE_KINDS = ('TABLE', 'VIEW', 'FOREIGN TABLE', 'MATERIALIZED VIEW', 'EXTERNAL TABLE')


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> str:
    """
    Get environment variable with validation

    Args:
        key: Environment variable name
        default: Default value if not found
        required: If True, raise error if not found

    Returns:
        Environment variable value

    Raises:
        ValueError: If required variable is missing
    """
    value = os.getenv(key, default)

    if required and not value:
        raise ValueError(f"Required environment variable '{key}' is not set")

    return value


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable"""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on')


def get_env_int(key: str, default: Optional[int] = None) -> Optional[int]:
    """Get environment variable as integer"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        logger.warning(f"Invalid integer for {key}: {value}, using default: {default}")
        return default


def get_env_list(key: str, default: Optional[List[str]] = None, separator: str = ',') -> List[str]:
    """Get list environment variable"""
    value = os.getenv(key, '')
    if not value and default:
        return default
    return [item.strip() for item in value.split(separator) if item.strip()]


# ============================================================================
# DATABASE CONFIGURATION
# ============================================================================

@dataclass
class DatabaseConfig:
    """Database connection configuration"""
    connection_string: str
    catalog: Optional[str] = None
    pool_pre_ping: bool = True
    pool_recycle: int = 3600

    @classmethod
    def from_env(cls) -> 'DatabaseConfig':
        return cls(
            connection_string=get_env('DATABASE_CONNECTION_STRING', ''),
            catalog=get_env('DATABASE_CATALOG') or None,
            pool_pre_ping=get_env_bool('DATABASE_POOL_PRE_PING', True),
            pool_recycle=get_env_int('DATABASE_POOL_RECYCLE', 3600),
        )

    def validate(self):
        """Validate configuration"""
        if not self.connection_string:
            raise ValueError("Required environment variable 'DATABASE_CONNECTION_STRING' is not set")
        if '://' not in self.connection_string:
            raise ValueError(
                f"Database connection string must be a SQLAlchemy URL "
                f"(dialect+driver://...), got: {self.connection_string[:20]}..."
            )


# ============================================================================
# FILE PATHS CONFIGURATION
# ============================================================================

@dataclass
class PathConfig:
    """File paths configuration"""
    log_dir: Path

    @classmethod
    def from_env(cls) -> 'PathConfig':
        config = cls(
            log_dir=Path(get_env('LOG_DIR', './logs')),
        )

        # Create directories if they don't exist
        config.log_dir.mkdir(parents=True, exist_ok=True)

        return config


# ============================================================================
# DISCOVERY CONFIGURATION
# ============================================================================

@dataclass
class DiscoveryConfig:
    """Discovery phase configuration"""
    # Added on top of each connector's own system schemas
    schema_exclusions: List[str]

    # '' keeps the connector's default enumeration strategy
    strategy: str = ''

    table_kinds: List[str] = None

    def __post_init__(self):
        if self.table_kinds is None:
            self.table_kinds = list(VALID_TABLE_KINDS)

    @classmethod
    def from_env(cls) -> 'DiscoveryConfig':
        return cls(
            schema_exclusions=get_env_list('SCHEMA_EXCLUSIONS', []),
            strategy=get_env('DISCOVERY_STRATEGY', '').strip().lower(),
            table_kinds=[
                kind.upper()
                for kind in get_env_list('DISCOVERY_TABLE_KINDS', list(VALID_TABLE_KINDS))
            ],
        )

    def validate(self):
        """Validate configuration"""
        if self.strategy not in VALID_STRATEGIES:
            raise ValueError(f"Invalid strategy: {self.strategy}")
        unknown = [kind for kind in self.table_kinds if kind not in VALID_TABLE_KINDS]
        if unknown:
            raise ValueError(f"Invalid table kinds: {', '.join(unknown)}")
        if not self.table_kinds:
            raise ValueError("At least one table kind is required")


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        return cls(
            level=get_env('LOG_LEVEL', 'INFO'),
        )


# ============================================================================
# MASTER SETTINGS CLASS
# ============================================================================

@dataclass
class Settings:
    """Master settings container"""
    database: DatabaseConfig
    paths: PathConfig
    discovery: DiscoveryConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls) -> 'Settings':
        """Load all settings from environment variables"""
        return cls(
            database=DatabaseConfig.from_env(),
            paths=PathConfig.from_env(),
            discovery=DiscoveryConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    def validate(self, require_database: bool = True):
        """Validate all configurations"""
        if require_database or self.database.connection_string:
            self.database.validate()
        self.discovery.validate()

    def summary(self) -> str:
        """Return a formatted summary of key settings"""
        return f"""
Configuration Summary:
=====================
Database:
  Connection:        {self.database.connection_string[:50]}...
  Catalog:           {self.database.catalog or '-'}
  Pool Pre-Ping:     {self.database.pool_pre_ping}
  Pool Recycle:      {self.database.pool_recycle}s

Paths:
  Log Dir:           {self.paths.log_dir}

Discovery:
  Strategy:          {self.discovery.strategy or 'connector default'}
  Extra Exclusions:  {', '.join(self.discovery.schema_exclusions) or '-'}
  Table Kinds:       {', '.join(self.discovery.table_kinds)}

Logging:
  Level:             {self.logging.level}
=====================
        """


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_settings: Optional[Settings] = None


def get_settings(reload: bool = False, require_database: bool = True) -> Settings:
    """
    Get or create settings singleton

    Args:
        reload: If True, reload settings from environment
        require_database: If False, a missing connection string is accepted
            (the caller supplies its own URL)

    Returns:
        Settings instance
    """
    global _settings

    if _settings is None or reload:
        try:
            settings = Settings.from_env()
            settings.validate(require_database=require_database)
            _settings = settings

            logger.info("Configuration loaded successfully")
            logger.debug(_settings.summary())

        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

    return _settings


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def get_database_config() -> DatabaseConfig:
    """Get database configuration (pool options; the URL may come from the caller)"""
    return get_settings(require_database=False).database


# ============================================================================
# INITIALIZATION
# ============================================================================

# Initialize settings on import (can be disabled by setting env var)
if not get_env_bool('SKIP_SETTINGS_INIT', False):
    try:
        get_settings()
    except Exception as e:
        logger.warning(f"Failed to initialize settings on import: {e}")
        logger.warning("Settings will be loaded on first access")
