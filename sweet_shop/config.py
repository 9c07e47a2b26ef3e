# ==============================================================================
# CONFIGURATION
# ==============================================================================
# Every setting comes from an environment variable with a usable default, so
# the service starts with no environment at all:
#
#   export SWEETSHOP_SECRET_KEY="a_long_random_secret"
#   export SWEETSHOP_STORAGE=sqlite            # sqlite | json | memory
#   export SWEETSHOP_TOKEN_EXPIRES_IN=24h      # 3600 | 30m | 24h | 7d
#
# Invalid values raise ConfigError at startup, never at request time.
# ==============================================================================

import logging
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from sweet_shop.errors import ConfigError

logger = logging.getLogger(__name__)

BASE = os.path.dirname(os.path.abspath(__file__))

_DEFAULT_SECRET = "sweet_shop_dev_secret_key_change_in_production"

STORAGE_BACKENDS = ('sqlite', 'json', 'memory')

_DURATION_RE = re.compile(r'^\s*(\d+)\s*([smhd]?)\s*$', re.IGNORECASE)
_DURATION_UNITS = {'': 1, 's': 1, 'm': 60, 'h': 3600, 'd': 86400}

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off', '')


def parse_duration(value: str) -> int:
    """
    Parses a duration into seconds.

    Args:
        value: Plain seconds ("3600") or a number with unit ("30m", "24h", "7d")

    Raises:
        ConfigError: Unparseable or non-positive duration
    """
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ConfigError(f"Invalid duration: {value!r}")
    seconds = int(match.group(1)) * _DURATION_UNITS[match.group(2).lower()]
    if seconds <= 0:
        raise ConfigError(f"Duration must be positive: {value!r}")
    return seconds


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


@dataclass
class Config:
    """Runtime settings of the application."""

    secret_key: str = _DEFAULT_SECRET
    token_expires_in: int = 24 * 3600
    storage: str = 'sqlite'
    data_dir: str = os.path.join(BASE, 'data')
    database_path: Optional[str] = None
    frontend_url: str = 'http://localhost:3000'
    production_mode: bool = False
    log_level: str = 'INFO'
    log_dir: Optional[str] = None
    password_hash_method: str = 'scrypt'
    auto_seed: bool = False
    enable_profiling: bool = True
    testing: bool = False

    def __post_init__(self):
        if self.storage not in STORAGE_BACKENDS:
            raise ConfigError(
                f"Unknown storage backend {self.storage!r} (expected one of {', '.join(STORAGE_BACKENDS)})"
            )
        if self.token_expires_in <= 0:
            raise ConfigError("Token lifetime must be positive")
        if not self.secret_key:
            raise ConfigError("Secret key cannot be empty")
        if self.database_path is None:
            self.database_path = os.path.join(self.data_dir, 'sweetshop.db')
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Config':
        """
        Builds the configuration from SWEETSHOP_* environment variables.

        Args:
            environ: Mapping to read from (os.environ by default)

        Raises:
            ConfigError: If any value is invalid
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            value = env.get(f"SWEETSHOP_{name}")
            return value if value not in (None, '') else default

        production_mode = _parse_bool('SWEETSHOP_PRODUCTION', get('PRODUCTION', '0'))
        secret_key = get('SECRET_KEY')
        if production_mode and not secret_key:
            logger.warning("Production mode active without SWEETSHOP_SECRET_KEY; "
                           "set the variable to sign tokens with a private key")

        data_dir = get('DATA_DIR', os.path.join(BASE, 'data'))

        return cls(
            secret_key=secret_key or _DEFAULT_SECRET,
            token_expires_in=parse_duration(get('TOKEN_EXPIRES_IN', '24h')),
            storage=get('STORAGE', 'sqlite').strip().lower(),
            data_dir=data_dir,
            database_path=get('DATABASE_PATH'),
            frontend_url=get('FRONTEND_URL', 'http://localhost:3000'),
            production_mode=production_mode,
            log_level=get('LOG_LEVEL', 'INFO'),
            log_dir=get('LOG_DIR'),
            password_hash_method=get('PASSWORD_HASH_METHOD', 'scrypt'),
            auto_seed=_parse_bool('SWEETSHOP_AUTO_SEED', get('AUTO_SEED', '0')),
            enable_profiling=_parse_bool('SWEETSHOP_ENABLE_PROFILING', get('ENABLE_PROFILING', '1')),
        )

    @classmethod
    def for_testing(cls, **overrides) -> 'Config':
        """In-memory storage and a cheap digest method, for test suites."""
        settings = dict(
            secret_key='test-secret-key',
            storage='memory',
            password_hash_method='pbkdf2:sha256:1000',
            testing=True,
        )
        settings.update(overrides)
        return cls(**settings)
