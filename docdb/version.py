"""
Version information for the document database workshop.

This file is the single source of truth for version numbers.
setup.py and the web API both read it.
"""

__version__ = "0.1.0"
__version_info__ = (0, 1, 0)
