"""GitHub token resolution for release downloads.

Anonymous GitHub API calls are limited to 60 requests per hour, which the
installer and Spicetify itself can exhaust quickly. A personal access token
raises that limit.

Token precedence:
- explicit token (``--github-token`` option or menu entry)
- GH_TOKEN
- GITHUB_TOKEN
- token saved in the per-user config file
"""

import os
from typing import Dict, Optional

from .. import config


class GitHubTokenManager:
    """Resolves, saves and clears the GitHub token."""

    TOKEN_ENV_VARS = ['GH_TOKEN', 'GITHUB_TOKEN']

    def __init__(self, explicit_token: Optional[str] = None):
        """Initialize token manager.

        Args:
            explicit_token: Token passed on the command line; wins over everything else
        """
        self.explicit_token = _sanitize(explicit_token)

    def get_token(self, env: Optional[Dict[str, str]] = None) -> Optional[str]:
        """Get the best available token, or None."""
        if self.explicit_token:
            return self.explicit_token

        if env is None:
            env = os.environ
        for token_var in self.TOKEN_ENV_VARS:
            token = _sanitize(env.get(token_var))
            if token:
                return token

        return config.get_saved_token()

    def get_token_source(self, env: Optional[Dict[str, str]] = None) -> str:
        """Describe where the active token comes from."""
        if self.explicit_token:
            return "command line"
        if env is None:
            env = os.environ
        for token_var in self.TOKEN_ENV_VARS:
            if _sanitize(env.get(token_var)):
                return f"environment ({token_var})"
        if config.get_saved_token():
            return "saved config"
        return "none"

    def save_token(self, token: str) -> None:
        token = _sanitize(token)
        if not token:
            raise ValueError("Token must not be empty")
        config.set_saved_token(token)

    def clear_token(self) -> None:
        config.set_saved_token(None)


def _sanitize(token: Optional[str]) -> Optional[str]:
    return (token or "").strip() or None


def mask_token(token: Optional[str]) -> str:
    """Hide all but the first and last four characters of a token."""
    if not token:
        return "(not set)"
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}{'*' * (len(token) - 8)}{token[-4:]}"
