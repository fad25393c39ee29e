"""Configuration management for Spicetify Setup.

Settings live in a small JSON file in the per-user config directory. Nothing
about Spicetify itself is stored here; Spicetify's own config is always read
through the `spicetify config` command.
"""

import json
import os

from platformdirs import user_config_dir


APP_NAME = "spicetify-setup"
CONFIG_DIR_ENV = "SPICETIFY_SETUP_CONFIG_DIR"

DEFAULT_SPOTIFY_INSTALLER_URL = "https://download.scdn.co/SpotifySetup.exe"
DEFAULT_REQUEST_TIMEOUT = 30

DEFAULT_CONFIG = {
    "github_token": None,
    "spotify_installer_url": DEFAULT_SPOTIFY_INSTALLER_URL,
    "request_timeout": DEFAULT_REQUEST_TIMEOUT,
}


def get_config_dir():
    """Return the configuration directory, honouring the override variable."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return override
    return user_config_dir(APP_NAME, appauthor=False)


def get_config_file():
    return os.path.join(get_config_dir(), "config.json")


def ensure_config_exists():
    """Ensure the configuration directory and file exist."""
    config_dir = get_config_dir()
    if not os.path.exists(config_dir):
        os.makedirs(config_dir)

    config_file = get_config_file()
    if not os.path.exists(config_file):
        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(DEFAULT_CONFIG, f, indent=2)


def get_config():
    """Get the current configuration merged over the defaults.

    Returns:
        dict: Current configuration.
    """
    ensure_config_exists()
    with open(get_config_file(), "r", encoding="utf-8") as f:
        try:
            stored = json.load(f)
        except json.JSONDecodeError:
            stored = {}

    config = dict(DEFAULT_CONFIG)
    if isinstance(stored, dict):
        config.update(stored)
    return config


def update_config(updates):
    """Update the configuration with new values.

    Args:
        updates (dict): Dictionary of configuration values to update.
    """
    config = get_config()
    config.update(updates)

    with open(get_config_file(), "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def get_saved_token():
    """Get the GitHub token saved by `token set`, if any."""
    token = get_config().get("github_token")
    return token.strip() if isinstance(token, str) and token.strip() else None


def set_saved_token(token):
    """Save (or with None, forget) the GitHub token."""
    update_config({"github_token": token})


def get_request_timeout():
    try:
        return float(get_config().get("request_timeout", DEFAULT_REQUEST_TIMEOUT))
    except (TypeError, ValueError):
        return float(DEFAULT_REQUEST_TIMEOUT)


def get_spotify_installer_url():
    return get_config().get("spotify_installer_url") or DEFAULT_SPOTIFY_INSTALLER_URL
