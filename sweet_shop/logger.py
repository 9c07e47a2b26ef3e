# ==============================================================================
# LOGGING SETUP
# ==============================================================================
# Modules log through logging.getLogger(__name__) under the "sweet_shop"
# namespace. configure_logging() attaches the handlers once:
#   - console (always)
#   - daily file <log_dir>/sweetshop_YYYYMMDD.log (when log_dir is set)
# ==============================================================================

import logging
import os
import sys
from datetime import datetime
from typing import Optional

from sweet_shop.config import Config

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

ROOT_LOGGER_NAME = 'sweet_shop'

# Handlers installed by this module carry this attribute
_HANDLER_MARK = '_sweet_shop_handler'


def get_log_path(log_dir: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now()
    return os.path.join(log_dir, f"sweetshop_{when.strftime('%Y%m%d')}.log")


def configure_logging(config: Config) -> logging.Logger:
    """
    Installs console and file handlers on the "sweet_shop" logger.

    Calling it again replaces the previous handlers instead of stacking them.

    Returns:
        The package root logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(config.log_level)

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    setattr(console_handler, _HANDLER_MARK, True)
    root.addHandler(console_handler)

    if config.log_dir:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = logging.FileHandler(get_log_path(config.log_dir), encoding='utf-8')
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARK, True)
        root.addHandler(file_handler)

    return root


def log_startup(config: Config) -> None:
    """Logs the effective settings (never the secret key)."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.info("=" * 60)
    logger.info("SWEET SHOP - SERVICE STARTED")
    logger.info("=" * 60)
    logger.info("Python: %s", sys.version.split()[0])
    logger.info("Storage: %s", config.storage)
    if config.storage == 'sqlite':
        logger.info("Database: %s", config.database_path)
    elif config.storage == 'json':
        logger.info("Data directory: %s", config.data_dir)
    logger.info("Production mode: %s", config.production_mode)
    logger.info("Token lifetime: %d s", config.token_expires_in)
    if config.log_dir:
        logger.info("Log file: %s", get_log_path(config.log_dir))
    logger.info("=" * 60)
