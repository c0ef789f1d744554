"""
shortlink_registry package initializer.
"""

from . import analytics
from . import manager
from . import storage

__version__ = "0.1.0"

__all__ = ["analytics", "manager", "storage", "__version__"]
