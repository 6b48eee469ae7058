"""
Core module - Contains configuration, logging, and the shredding engine.
"""

from secureshred.core.config import ShredderConfig
from secureshred.core.logging import get_shred_logger, configure_logging, PathRedactionFilter

__all__ = ["ShredderConfig", "get_shred_logger", "configure_logging", "PathRedactionFilter"]
