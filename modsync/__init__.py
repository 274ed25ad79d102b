"""
modsync: module.json / state table reconciliation with shared-safe package management.
"""

__version__ = "0.1.0"
