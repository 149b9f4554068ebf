"""
Tk-free controller behind the chat panel.

Owns the model catalog, the preference store, the fetcher and the editor
snapshot callable.  Sends are serialised: while one request is in flight
:meth:`ChatSession.begin_send` refuses the next, so replies always come back
in the order the questions were asked.
"""

import logging
import threading
from typing import Callable

from .catalog import ModelDescriptor, find_model
from .llm_api import ChatReply, ResponseFetcher
from .preferences import PreferenceStore

log = logging.getLogger("editor_chatbot")


class ChatSession:
    """State and actions for one chat panel."""

    def __init__(
        self,
        models: tuple[ModelDescriptor, ...],
        fetcher: ResponseFetcher,
        preferences: PreferenceStore,
        get_editor_code: Callable[[], str],
    ) -> None:
        if not models:
            raise ValueError("The model catalog must not be empty.")
        self.models = models
        self._fetcher = fetcher
        self._prefs = preferences
        self._get_editor_code = get_editor_code
        self._in_flight = False
        self._lock = threading.Lock()
        self.transcript: list[tuple[str, str]] = []

    # ------------------------------------------------------------------
    # Model selection
    # ------------------------------------------------------------------

    def initial_model_id(self) -> str:
        """Return the saved model if it is still offered, else the first one."""
        saved = self._prefs.preferred_model
        if saved and find_model(self.models, saved):
            return saved
        return self.models[0].id

    def select_model(self, model_id: str) -> str:
        """Persist *model_id* as the preferred model and return a notice."""
        model = find_model(self.models, model_id)
        if model is None:
            raise KeyError(model_id)
        self._prefs.preferred_model = model.id
        log.info("[APP] Model switched to %s", model.id)
        return f"Switched to {model.name}. {model.description}"

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    @staticmethod
    def prepare_question(raw: str) -> str | None:
        question = raw.strip()
        return question or None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def begin_send(self) -> bool:
        """Mark a request as in flight; ``False`` if one already is."""
        with self._lock:
            if self._in_flight:
                return False
            self._in_flight = True
            return True

    def end_send(self) -> None:
        with self._lock:
            self._in_flight = False

    def snapshot_editor(self) -> str:
        """Return the current editor text.

        Reads Tk widgets, so call it on the Tk thread before starting the
        worker.
        """
        return self._get_editor_code()

    def ask(self, question: str, model_id: str, snapshot: str) -> ChatReply:
        """Fetch the reply to *question* about *snapshot*.

        Blocks for the whole retry sequence; call it from a worker thread.
        """
        log.debug("[APP] Asking %s (%d chars of editor code)",
                  model_id, len(snapshot))
        return self._fetcher.fetch_reply(question, model_id, snapshot)

    def record(self, sender: str, text: str) -> None:
        """Add a turn to the in-memory transcript."""
        self.transcript.append((sender, text))

    def clear(self) -> None:
        self.transcript.clear()
