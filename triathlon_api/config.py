"""
Configuration module for the Triathlon Stats Gateway.

Contains upstream settings and the environment variable loader.
"""

import logging
import os
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel


logger = logging.getLogger(__name__)


# =============================================================================
# Upstream Configuration
# =============================================================================

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_LLM_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_MAX_TOKENS = 500

TRIATHLON_API_BASE_URL = "https://api.triathlon.org/v1"
STATS_TIMEOUT_SECONDS = 30.0

# Checked in this order; the first non-empty value wins
ANTHROPIC_KEY_NAMES = ("ANTHROPIC_API_KEY", "CLAUDE_KEY", "CLAUDE_API_KEY")

# Substrings used to list candidate env var names when no LLM key is found
RELEVANT_ENV_MARKERS = ("ANTHROPIC", "CLAUDE", "API")


# =============================================================================
# Settings
# =============================================================================

class Settings(BaseModel):
    """Process-wide configuration, built once at startup and passed to the app."""
    anthropic_api_key: Optional[str] = None
    triathlon_api_key: Optional[str] = None
    youtube_api_key: Optional[str] = None

    anthropic_url: str = ANTHROPIC_MESSAGES_URL
    anthropic_model: str = DEFAULT_LLM_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    knowledge_base_file: Optional[str] = None

    triathlon_base_url: str = TRIATHLON_API_BASE_URL
    stats_timeout: float = STATS_TIMEOUT_SECONDS

    app_env: str = "production"

    # Names only, never values
    relevant_env_vars: List[str] = []

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            dotenv: Load a ``.env`` file into the process environment first.

        Returns:
            Settings: The populated configuration.
        """
        if dotenv:
            load_dotenv()
        env = os.environ if environ is None else environ

        overrides: Dict[str, object] = {}
        if env.get("ANTHROPIC_MODEL"):
            overrides["anthropic_model"] = env["ANTHROPIC_MODEL"]
        if env.get("ANTHROPIC_MAX_TOKENS"):
            try:
                overrides["max_tokens"] = int(env["ANTHROPIC_MAX_TOKENS"])
            except ValueError:
                logger.warning(
                    "Ignoring non-integer ANTHROPIC_MAX_TOKENS=%r, using %d",
                    env["ANTHROPIC_MAX_TOKENS"], DEFAULT_MAX_TOKENS,
                )
        if env.get("TRIATHLON_API_BASE_URL"):
            overrides["triathlon_base_url"] = env["TRIATHLON_API_BASE_URL"]

        return cls(
            anthropic_api_key=get_anthropic_key(env),
            triathlon_api_key=env.get("TRIATHLON_API_KEY") or None,
            youtube_api_key=env.get("YOUTUBE_API_KEY") or None,
            knowledge_base_file=env.get("KNOWLEDGE_BASE_FILE") or None,
            app_env=env.get("APP_ENV", "production"),
            relevant_env_vars=list_relevant_env_vars(env),
            **overrides,
        )


# =============================================================================
# Environment Variable Helpers
# =============================================================================

def get_anthropic_key(environ: Mapping[str, str]) -> Optional[str]:
    """
    Resolve the LLM API key from its accepted names.

    Returns:
        str: The first non-empty key found, or None.
    """
    for name in ANTHROPIC_KEY_NAMES:
        value = environ.get(name)
        if value:
            return value
    return None


def list_relevant_env_vars(environ: Mapping[str, str]) -> List[str]:
    """Names of env vars that look like API credentials, for operator debugging."""
    return sorted(
        name for name in environ
        if any(marker in name for marker in RELEVANT_ENV_MARKERS)
    )
