"""Common shared utilities for the catalog curator."""

from common.config import Settings
from common.logging import setup_logging

__all__ = ["Settings", "setup_logging"]
