"""
pm - plugpin command-line interface.

Drives the reconciliation engine: install, update, restore, lock, delete and
status queries.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
