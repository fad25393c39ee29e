"""Installers for the Spotify client, the Spicetify CLI and Marketplace."""

from .spicetify import install_marketplace, install_spicetify, spicetify_version
from .spotify import SpotifyInstall, detect_spotify, install_spotify

__all__ = [
    "SpotifyInstall",
    "detect_spotify",
    "install_marketplace",
    "install_spicetify",
    "install_spotify",
    "spicetify_version",
]
