"""
Core package for MockBridge.

Shared building blocks: error types, logging configuration, domain models and
the database layer.
"""

from mockbridge.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
