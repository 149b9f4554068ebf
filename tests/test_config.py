"""Tests for ``editor_chatbot.config`` (settings and saved API key)."""

import os
import tempfile
import unittest

from editor_chatbot.config import (
    DEFAULT_REFERER,
    DEFAULT_TITLE,
    MAX_RETRIES,
    OPENROUTER_CHAT_URL,
    RETRY_DELAY_SECONDS,
    delete_api_key,
    load_api_key,
    load_settings,
    save_api_key,
)


class TestApiKeyStorage(unittest.TestCase):

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.key_file = os.path.join(self._tmp.name, "api_key.json")

    def test_round_trip_and_delete(self) -> None:
        self.assertIsNone(load_api_key(self.key_file))
        save_api_key("sk-or-123", self.key_file)
        self.assertEqual(load_api_key(self.key_file), "sk-or-123")
        delete_api_key(self.key_file)
        self.assertFalse(os.path.exists(self.key_file))
        delete_api_key(self.key_file)  # deleting twice is fine

    def test_unreadable_file(self) -> None:
        with open(self.key_file, "w", encoding="utf-8") as fh:
            fh.write("][")
        self.assertIsNone(load_api_key(self.key_file))

    def test_defaults(self) -> None:
        settings = load_settings({}, key_file=self.key_file)
        self.assertEqual(settings.api_key, "")
        self.assertEqual(settings.api_url, OPENROUTER_CHAT_URL)
        self.assertEqual(settings.referer, DEFAULT_REFERER)
        self.assertEqual(settings.title, DEFAULT_TITLE)
        self.assertEqual(settings.max_retries, MAX_RETRIES)
        self.assertEqual(settings.retry_delay, RETRY_DELAY_SECONDS)

    def test_saved_key_used_when_env_missing(self) -> None:
        save_api_key("sk-saved", self.key_file)
        self.assertEqual(load_settings({}, key_file=self.key_file).api_key,
                         "sk-saved")

    def test_environment_overrides(self) -> None:
        save_api_key("sk-saved", self.key_file)
        env = {
            "OPENROUTER_API_KEY": "sk-env",
            "OPENROUTER_API_URL": "http://localhost:9000/v1/chat/completions",
            "EDITOR_CHATBOT_REFERER": "http://ide.local",
            "EDITOR_CHATBOT_TITLE": "My IDE",
        }
        settings = load_settings(env, key_file=self.key_file)
        self.assertEqual(settings.api_key, "sk-env")
        self.assertEqual(settings.api_url,
                         "http://localhost:9000/v1/chat/completions")
        self.assertEqual(settings.referer, "http://ide.local")
        self.assertEqual(settings.title, "My IDE")


if __name__ == "__main__":
    unittest.main()
