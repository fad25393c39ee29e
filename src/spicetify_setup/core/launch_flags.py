"""Editing of Spotify launch flags.

Spicetify stores `spotify_launch_flags` as one plain string, so every change
is made on a fresh read, joined in memory and written back in a single call.
"""

from typing import List

from .config_store import LAUNCH_FLAGS_KEY, SpicetifyConfigStore, join_config_list


KNOWN_LAUNCH_FLAGS = {
    "--minimized": "Start minimized to the tray",
    "--maximized": "Start with a maximized window",
    "--show-console": "Show the debug console window",
    "--remote-debugging-port=9222": "Open a Chrome DevTools remote debugging port",
    "--disable-gpu": "Disable hardware acceleration",
    "--enable-developer-mode": "Enable Spotify developer mode",
    "--app-directory=": "Load the app from a custom directory",
    "--cache-path=": "Store the cache in a custom directory",
}


class LaunchFlagEditor:
    """Read-modify-write editor for the launch flag string."""

    def __init__(self, store: SpicetifyConfigStore, key: str = LAUNCH_FLAGS_KEY):
        self.store = store
        self.key = key

    def current(self) -> List[str]:
        return self.store.get_list(self.key)

    def add(self, flag: str) -> bool:
        """Append `flag`; returns False without writing when it is already set."""
        flag = flag.strip()
        flags = self.current()
        if not flag or flag in flags:
            return False
        flags.append(flag)
        return self.store.set_raw(self.key, join_config_list(flags))

    def remove(self, flag: str) -> bool:
        flags = self.current()
        if flag not in flags:
            return False
        return self.store.set_raw(self.key, join_config_list([f for f in flags if f != flag]))

    def clear(self) -> bool:
        return self.store.set_raw(self.key, "")
