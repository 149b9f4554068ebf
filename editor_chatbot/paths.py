"""
Central path configuration for the editor chatbot.

Everything the application persists (the saved API key and the preferred
model) lives under the ``Asset/`` folder next to ``main.py``, independent of
the working directory the application was started from.

Usage in other modules::

    from .paths import asset_path
    PREFS_FILE = asset_path("preferences.json")
"""

import os

# Project root = the directory that contains main.py.
_PROJECT_ROOT: str = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

#: Absolute path to the ``Asset/`` folder.
ASSET_DIR: str = os.path.join(_PROJECT_ROOT, "Asset")


def asset_path(filename: str) -> str:
    """Return the absolute path for *filename* inside the Asset folder."""
    return os.path.join(ASSET_DIR, filename)


def ensure_asset_dir() -> str:
    """Create the Asset folder on demand and return its path."""
    os.makedirs(ASSET_DIR, exist_ok=True)
    return ASSET_DIR
