"""Reelmerge - merged catalog search across streaming sources."""

from reelmerge.__version__ import __version__

__all__ = ["__version__"]
