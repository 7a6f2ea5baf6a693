"""
Central version management for Badge Viewer.
"""

from __future__ import annotations

__all__ = ["__app_name__", "__version__", "__release_date__", "__author__", "__license__"]

__app_name__ = "Badge Viewer"
__version__ = "0.4.0"
__release_date__ = "2026-10-16"
__author__ = "Badge Viewer Contributors"
__license__ = "MIT"
