"""
Logging helpers for cloudprovision.
"""

from .formatter import StructuredFormatter, configure_logging

__all__ = ["StructuredFormatter", "configure_logging"]
