"""
Local preference storage.

A flat JSON object in ``Asset/preferences.json``.  The only key in use is
``preferred_model``; reads and writes are last-write-wins.
"""

import json
import logging
import os

from .paths import asset_path, ensure_asset_dir

log = logging.getLogger("editor_chatbot")

PREFERRED_MODEL_KEY = "preferred_model"


class PreferenceStore:
    """Key/value wrapper around a JSON file."""

    DEFAULT_FILE = asset_path("preferences.json")

    def __init__(self, storage_file: str | None = None) -> None:
        self.storage_file = storage_file or self.DEFAULT_FILE
        self._values: dict[str, str] = {}
        self._load()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not os.path.exists(self.storage_file):
            return
        try:
            with open(self.storage_file, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (json.JSONDecodeError, OSError) as exc:
            log.warning("[PREF] Ignoring unreadable preference file %s: %s",
                        self.storage_file, exc)
            return
        if isinstance(raw, dict):
            self._values = {k: v for k, v in raw.items() if isinstance(v, str)}

    def _save(self) -> None:
        if self.storage_file == self.DEFAULT_FILE:
            ensure_asset_dir()
        with open(self.storage_file, "w", encoding="utf-8") as fh:
            json.dump(self._values, fh, ensure_ascii=False, indent=2)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._save()
        log.debug("[PREF] %s = %s", key, value)

    @property
    def preferred_model(self) -> str | None:
        return self.get(PREFERRED_MODEL_KEY)

    @preferred_model.setter
    def preferred_model(self, model_id: str) -> None:
        self.set(PREFERRED_MODEL_KEY, model_id)
