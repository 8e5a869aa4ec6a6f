"""Redman - build a release pool from tracker collages and artists, then feed a download client."""

from .__version__ import __version__

__all__ = ["__version__"]
