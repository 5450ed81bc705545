"""Metadata package."""

from __future__ import annotations

__title__ = "librepl"
__package_name__ = "librepl"
__version__ = "0.1.0"
__description__ = "Drive a long-lived interactive REPL subprocess over a sentinel-delimited text protocol"
__email__ = "librepl@example.org"
__author__ = "librepl contributors"
__github__ = "https://github.com/librepl/librepl"
__docs__ = "https://librepl.readthedocs.io"
__tracker__ = "https://github.com/librepl/librepl/issues"
__pypi__ = "https://pypi.org/project/librepl/"
__license__ = "MIT"
__copyright__ = "Copyright 2026- librepl contributors"
