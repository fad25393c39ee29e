"""Access to Spicetify's configuration through `spicetify config`.

Spicetify's config file is the only source of truth: every read shells out
to `spicetify config <key>` and every write is sent back immediately. List
keys hold `|`-joined tokens. For `extensions` and `custom_apps` Spicetify
understands deltas (`key value` appends, `key value-` removes); other keys,
including `spotify_launch_flags`, are plain strings written whole.
"""

import re
from typing import Dict, List

from ..errors import SpicetifyNotFoundError
from .invoker import SpicetifyInvoker


LIST_DELIMITER = "|"
REMOVAL_SUFFIX = "-"

EXTENSIONS_KEY = "extensions"
CUSTOM_APPS_KEY = "custom_apps"
LAUNCH_FLAGS_KEY = "spotify_launch_flags"
CURRENT_THEME_KEY = "current_theme"
COLOR_SCHEME_KEY = "color_scheme"

DELTA_KEYS = (EXTENSIONS_KEY, CUSTOM_APPS_KEY)

# Boolean settings shown in the toggle menu, with their descriptions
FLAG_SETTINGS = {
    "inject_css": "Inject theme CSS",
    "replace_colors": "Replace colours with the colour scheme",
    "overwrite_assets": "Overwrite Spotify assets with theme assets",
    "inject_theme_js": "Inject theme JavaScript",
    "always_enable_devtools": "Always enable developer tools",
    "check_spicetify_update": "Check for Spicetify updates",
    "disable_sentry": "Disable Sentry error reporting",
    "disable_ui_logging": "Disable UI logging",
    "remove_rtl_rule": "Remove right-to-left CSS rules",
    "expose_apis": "Expose Spotify APIs to extensions",
    "experimental_features": "Enable experimental features",
    "home_config": "Enable home page configuration",
    "sidebar_config": "Enable sidebar configuration",
}

TRUE_VALUES = ("1", "true", "yes", "on")

# Spicetify log lines: a level word followed by whitespace
_LOG_LINE_PATTERN = re.compile(r"^(error|warning|success|info|notice)\s", re.IGNORECASE)

_ALL_KEYS_PATTERN = re.compile(r"^([A-Za-z0-9_]+)(?:\s*=\s*|\s+)(.*)$")


def parse_config_value(output: str, key: str) -> str:
    """Extract the value of `key` from `spicetify config` output.

    Accepts `key value` and `key = value` lines; when no such line exists and
    the output is a single bare line, that line is the value.
    """
    pattern = re.compile(rf"^{re.escape(key)}(\s*=\s*|\s+)(.*)$")
    lines = [line.strip() for line in output.splitlines()]

    for line in lines:
        match = pattern.match(line)
        if match:
            return match.group(2).strip()

    values = [line for line in lines if line and not _LOG_LINE_PATTERN.match(line)]
    if len(values) == 1:
        return values[0]
    return ""


def split_config_list(value: str, key: str = "") -> List[str]:
    """Split a `|`-joined config value into non-empty tokens.

    A value equal to the key itself is how Spicetify prints an unset key,
    so it counts as empty.
    """
    value = value.strip()
    if not value or (key and value == key):
        return []
    return [token.strip() for token in value.split(LIST_DELIMITER) if token.strip()]


def join_config_list(tokens: List[str]) -> str:
    return LIST_DELIMITER.join(tokens)


def _require_delta_key(key: str) -> None:
    if key not in DELTA_KEYS:
        raise ValueError(f"{key} is not a list key; write it whole with set_raw")


class SpicetifyConfigStore:
    """Read and write Spicetify settings, one CLI call per operation."""

    def __init__(self, invoker: SpicetifyInvoker):
        self.invoker = invoker

    def read(self, key: str) -> str:
        """Return the raw value of `key`, or "" when it cannot be read."""
        try:
            result = self.invoker.invoke(["config", key])
        except SpicetifyNotFoundError:
            return ""
        if not result.ok:
            return ""
        return parse_config_value(result.output, key)

    def read_all(self) -> Dict[str, str]:
        """Return every setting printed by `spicetify config`."""
        try:
            result = self.invoker.invoke(["config"])
        except SpicetifyNotFoundError:
            return {}
        if not result.ok:
            return {}

        settings = {}
        for line in result.output.splitlines():
            match = _ALL_KEYS_PATTERN.match(line.strip())
            if match and not _LOG_LINE_PATTERN.match(line.strip()):
                settings[match.group(1)] = match.group(2).strip()
        return settings

    def get_list(self, key: str) -> List[str]:
        """Return the current tokens of a list key; never raises."""
        return split_config_list(self.read(key), key)

    def add_token(self, key: str, token: str) -> bool:
        """Ask Spicetify to append `token` to a delta key."""
        _require_delta_key(key)
        return self._write(key, token)

    def remove_token(self, key: str, token: str) -> bool:
        """Ask Spicetify to drop `token` from a delta key."""
        _require_delta_key(key)
        return self._write(key, f"{token}{REMOVAL_SUFFIX}")

    def clear_all(self, key: str, known_tokens: List[str]) -> int:
        """Remove every token in `known_tokens`, one call each.

        The snapshot is not refreshed between removals.

        Returns:
            int: Number of removals Spicetify accepted
        """
        removed = 0
        for token in list(known_tokens):
            if self.remove_token(key, token):
                removed += 1
        return removed

    def set_raw(self, key: str, joined: str) -> bool:
        """Overwrite a plain-string key with `joined` in a single call."""
        return self._write(key, joined)

    def set_value(self, key: str, value: str) -> bool:
        return self._write(key, value)

    def get_flag(self, key: str) -> bool:
        return self.read(key).lower() in TRUE_VALUES

    def set_flag(self, key: str, enabled: bool) -> bool:
        return self._write(key, "1" if enabled else "0")

    def _write(self, key: str, value: str) -> bool:
        return self.invoker.invoke(["config", key, value]).ok
