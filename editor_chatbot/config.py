"""
Runtime settings for the OpenRouter chat-completions client.

Values come from three places, highest priority first:

  1. Environment variables (``OPENROUTER_API_KEY``, ``OPENROUTER_API_URL``,
     ``EDITOR_CHATBOT_REFERER``, ``EDITOR_CHATBOT_TITLE``).
  2. The API key saved via Settings → API Key… (``Asset/api_key.json``).
  3. The built-in defaults below.
"""

import json
import logging
import os
from dataclasses import dataclass

from .paths import asset_path, ensure_asset_dir

log = logging.getLogger("editor_chatbot")

OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_REFERER = "http://localhost:8080"
DEFAULT_TITLE = "Judge0 IDE"

#: Maximum number of *extra* attempts made after an empty reply.
MAX_RETRIES: int = 3

#: Pause between attempts, in seconds.
RETRY_DELAY_SECONDS: float = 1.0

#: Where the OpenRouter key is cached between sessions.
API_KEY_FILE = asset_path("api_key.json")


@dataclass(frozen=True)
class Settings:
    """Connection settings consumed by :class:`~llm_api.ResponseFetcher`."""

    api_key: str = ""
    api_url: str = OPENROUTER_CHAT_URL
    referer: str = DEFAULT_REFERER
    title: str = DEFAULT_TITLE
    timeout: float = 120.0
    max_retries: int = MAX_RETRIES
    retry_delay: float = RETRY_DELAY_SECONDS


def load_settings(environ=None, key_file: str | None = None) -> Settings:
    """Build :class:`Settings` from the environment and the saved key file."""
    env = os.environ if environ is None else environ
    api_key = env.get("OPENROUTER_API_KEY") or load_api_key(key_file) or ""
    settings = Settings(
        api_key=api_key,
        api_url=env.get("OPENROUTER_API_URL") or OPENROUTER_CHAT_URL,
        referer=env.get("EDITOR_CHATBOT_REFERER") or DEFAULT_REFERER,
        title=env.get("EDITOR_CHATBOT_TITLE") or DEFAULT_TITLE,
    )
    log.debug("[CFG] endpoint=%s  referer=%s  title=%s  key=%s",
              settings.api_url, settings.referer, settings.title,
              f"{api_key[:8]}… len={len(api_key)}" if api_key else "(none)")
    return settings


# ---------------------------------------------------------------------------
# Persistent key storage
# ---------------------------------------------------------------------------

def save_api_key(api_key: str, key_file: str | None = None) -> None:
    """Persist the OpenRouter key to disk."""
    path = key_file or API_KEY_FILE
    if key_file is None:
        ensure_asset_dir()
    with open(path, "w", encoding="utf-8") as fh:
        json.dump({"api_key": api_key}, fh)


def load_api_key(key_file: str | None = None) -> str | None:
    """Load the OpenRouter key from disk, returning ``None`` if absent."""
    path = key_file or API_KEY_FILE
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (json.JSONDecodeError, OSError) as exc:
        log.warning("[CFG] Ignoring unreadable key file %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        return None
    return data.get("api_key")


def delete_api_key(key_file: str | None = None) -> None:
    """Remove the cached OpenRouter key from disk."""
    path = key_file or API_KEY_FILE
    if os.path.exists(path):
        os.remove(path)
