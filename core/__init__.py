"""
=====================================================
Core infrastructure package for ephemeral databases.
=====================================================

Centralized configuration and logging shared by the provisioning modules
and the test suite.

Modules:
    config: Server settings loaded from environment variables
    logger: Logging configuration and utilities

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Provisioning on {config.origin}")
"""

__version__ = "0.1.0"
__all__ = ['get_logger', 'setup_logging', 'config', 'Config']

from core.config import Config, config
from core.logger import get_logger, setup_logging
