"""Tests for the chat controller, preferences, catalog and layout registry.

None of these need a display; the Tk widgets themselves are not exercised.
"""

import json
import os
import tempfile
import threading
import unittest
from unittest.mock import Mock

from editor_chatbot.catalog import (
    AVAILABLE_MODELS,
    DEFAULT_MODEL_ID,
    find_model,
    resolve_model_id,
)
from editor_chatbot.chat_session import ChatSession
from editor_chatbot.layout import LayoutHost
from editor_chatbot.llm_api import ChatReply, ResponseFetcher
from editor_chatbot.preferences import PREFERRED_MODEL_KEY, PreferenceStore


class _TempDirCase(unittest.TestCase):

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.pref_file = os.path.join(self._tmp.name, "preferences.json")


# -----------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------

class TestCatalog(unittest.TestCase):

    def test_default_is_first_entry(self) -> None:
        self.assertEqual(AVAILABLE_MODELS[0].id, DEFAULT_MODEL_ID)

    def test_ids_are_unique(self) -> None:
        ids = [m.id for m in AVAILABLE_MODELS]
        self.assertEqual(len(ids), len(set(ids)))

    def test_find_model(self) -> None:
        model = find_model(AVAILABLE_MODELS, "gpt-3.5-turbo")
        self.assertEqual(model.name, "GPT-3.5 Turbo")
        self.assertIsNone(find_model(AVAILABLE_MODELS, "nope"))

    def test_label(self) -> None:
        model = find_model(AVAILABLE_MODELS, "gpt-4-turbo")
        self.assertEqual(model.label,
                         "GPT-4 Turbo - Powerful general-purpose model")

    def test_resolve_model_id(self) -> None:
        self.assertEqual(resolve_model_id(""), DEFAULT_MODEL_ID)
        self.assertEqual(resolve_model_id(None), DEFAULT_MODEL_ID)
        self.assertEqual(resolve_model_id("anything"), "anything")


# -----------------------------------------------------------------------
# Preferences
# -----------------------------------------------------------------------

class TestPreferenceStore(_TempDirCase):

    def test_missing_file_is_empty(self) -> None:
        store = PreferenceStore(self.pref_file)
        self.assertIsNone(store.preferred_model)

    def test_set_persists(self) -> None:
        PreferenceStore(self.pref_file).preferred_model = "gpt-4-turbo"
        with open(self.pref_file, encoding="utf-8") as fh:
            self.assertEqual(json.load(fh), {PREFERRED_MODEL_KEY: "gpt-4-turbo"})
        self.assertEqual(PreferenceStore(self.pref_file).preferred_model,
                         "gpt-4-turbo")

    def test_last_write_wins(self) -> None:
        store = PreferenceStore(self.pref_file)
        store.set(PREFERRED_MODEL_KEY, "a")
        store.set(PREFERRED_MODEL_KEY, "b")
        self.assertEqual(PreferenceStore(self.pref_file).get(PREFERRED_MODEL_KEY),
                         "b")

    def test_corrupt_file_is_ignored(self) -> None:
        with open(self.pref_file, "w", encoding="utf-8") as fh:
            fh.write("{not json")
        store = PreferenceStore(self.pref_file)
        self.assertIsNone(store.preferred_model)
        self.assertEqual(store.get("other", "fallback"), "fallback")


# -----------------------------------------------------------------------
# Chat session
# -----------------------------------------------------------------------

class TestChatSession(_TempDirCase):

    def _session(self, code: str = "x = 1") -> tuple[ChatSession, Mock]:
        fetcher = Mock(spec=ResponseFetcher)
        fetcher.fetch_reply.return_value = ChatReply("Sure.", attempts=1)
        session = ChatSession(AVAILABLE_MODELS, fetcher,
                              PreferenceStore(self.pref_file), lambda: code)
        return session, fetcher

    def test_empty_catalog_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ChatSession((), Mock(), PreferenceStore(self.pref_file), str)

    def test_initial_model_without_preference(self) -> None:
        session, _ = self._session()
        self.assertEqual(session.initial_model_id(), AVAILABLE_MODELS[0].id)

    def test_initial_model_uses_saved_preference(self) -> None:
        PreferenceStore(self.pref_file).preferred_model = "gpt-3.5-turbo"
        session, _ = self._session()
        self.assertEqual(session.initial_model_id(), "gpt-3.5-turbo")

    def test_stale_preference_ignored(self) -> None:
        PreferenceStore(self.pref_file).preferred_model = "retired/model"
        session, _ = self._session()
        self.assertEqual(session.initial_model_id(), AVAILABLE_MODELS[0].id)

    def test_select_model_persists_and_notifies(self) -> None:
        session, _ = self._session()
        notice = session.select_model("anthropic/claude-3-sonnet")
        self.assertEqual(
            notice, "Switched to Claude 3 Sonnet. High performance code assistant",
        )
        self.assertEqual(PreferenceStore(self.pref_file).preferred_model,
                         "anthropic/claude-3-sonnet")

    def test_select_unknown_model(self) -> None:
        session, _ = self._session()
        with self.assertRaises(KeyError):
            session.select_model("unknown")

    def test_prepare_question(self) -> None:
        self.assertEqual(ChatSession.prepare_question("  hi \n"), "hi")
        self.assertIsNone(ChatSession.prepare_question("   "))
        self.assertIsNone(ChatSession.prepare_question(""))

    def test_ask_passes_editor_snapshot(self) -> None:
        session, fetcher = self._session(code="print('a')\nprint('b')")
        snapshot = session.snapshot_editor()
        reply = session.ask("What does it print?", "gpt-4-turbo", snapshot)
        self.assertEqual(reply.text, "Sure.")
        fetcher.fetch_reply.assert_called_once_with(
            "What does it print?", "gpt-4-turbo", "print('a')\nprint('b')",
        )

    def test_editor_read_only_on_calling_thread(self) -> None:
        readers: list[str] = []

        def read_editor() -> str:
            readers.append(threading.current_thread().name)
            return "x = 1"

        fetcher = Mock(spec=ResponseFetcher)
        fetcher.fetch_reply.return_value = ChatReply("Sure.")
        session = ChatSession(AVAILABLE_MODELS, fetcher,
                              PreferenceStore(self.pref_file), read_editor)

        snapshot = session.snapshot_editor()
        worker = threading.Thread(
            target=session.ask, args=("Q", "gpt-4-turbo", snapshot),
            name="worker",
        )
        worker.start()
        worker.join()

        self.assertEqual(readers, [threading.current_thread().name])
        fetcher.fetch_reply.assert_called_once_with("Q", "gpt-4-turbo", "x = 1")

    def test_sends_are_serialised(self) -> None:
        session, _ = self._session()
        self.assertTrue(session.begin_send())
        self.assertTrue(session.in_flight)
        self.assertFalse(session.begin_send())
        session.end_send()
        self.assertFalse(session.in_flight)
        self.assertTrue(session.begin_send())

    def test_transcript(self) -> None:
        session, _ = self._session()
        session.record("user", "Q")
        session.record("bot", "A")
        self.assertEqual(session.transcript, [("user", "Q"), ("bot", "A")])
        session.clear()
        self.assertEqual(session.transcript, [])


# -----------------------------------------------------------------------
# Layout registry
# -----------------------------------------------------------------------

class TestLayoutHost(unittest.TestCase):

    def test_register_and_mount(self) -> None:
        host = LayoutHost()
        host.register_component("chatbot", lambda container: ("panel", container))
        self.assertTrue(host.is_registered("chatbot"))
        mounted = host.mount("chatbot", "frame")
        self.assertEqual(mounted, ("panel", "frame"))
        self.assertIs(host.mounted["chatbot"], mounted)

    def test_duplicate_registration_rejected(self) -> None:
        host = LayoutHost()
        host.register_component("chatbot", lambda c: c)
        with self.assertRaises(ValueError):
            host.register_component("chatbot", lambda c: c)

    def test_unknown_component(self) -> None:
        with self.assertRaises(KeyError):
            LayoutHost().mount("missing", None)


if __name__ == "__main__":
    unittest.main()
