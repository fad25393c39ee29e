"""Spicetify Setup - installer and configuration menu for Spotify and Spicetify."""

from .version import get_version

__version__ = get_version()

__all__ = ["__version__", "get_version"]
