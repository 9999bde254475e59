"""
Serielookup: asset serial-number lookup across registry and incident datasets.

This package parses delimiter-ambiguous CSV exports, indexes them by a
sanitized serial key and cross-references the two tables to report an
asset record together with its incident breakdown.
"""

from importlib.metadata import version

__version__ = version("serielookup")

__all__ = ["__version__"]
