"""
Chat panel mounted beside the editor.

Layout
------
┌───────────────────────────────────┐
│ [Model selector ▼]                │  ← model bar
├───────────────────────────────────┤
│ Chat log (scrollable)             │
│   code blocks get a [Copy] button │
├───────────────────────────────────┤
│ [Ask a question…        ] [Send]  │  ← input row
└───────────────────────────────────┘
"""

import logging
import queue
import threading
import tkinter as tk
from tkinter import scrolledtext, ttk

from .chat_session import ChatSession
from .layout import LayoutHost
from .llm_api import ChatReply
from .renderer import CodeSegment, render_segments

log = logging.getLogger("editor_chatbot")

COMPONENT_NAME = "chatbot"

#: Shown when the worker thread itself fails.
WORKER_ERROR_REPLY = "Error: Unable to get a response."

COPY_RESET_MS = 2000


class ChatPanel(ttk.Frame):
    """Model selector, scrollable chat log and input row."""

    def __init__(self, parent: tk.Widget, session: ChatSession) -> None:
        super().__init__(parent)
        self._session = session
        self._queue: queue.Queue = queue.Queue()
        self._model_var = tk.StringVar()

        self._build_model_bar()
        self._build_chat_area()
        self._build_input_area()

        self._pump_queue()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_model_bar(self) -> None:
        frame = ttk.Frame(self, padding=(8, 4))
        frame.pack(fill=tk.X)

        self._model_box = ttk.Combobox(
            frame, textvariable=self._model_var, state="readonly",
            values=[m.label for m in self._session.models],
        )
        self._model_box.pack(fill=tk.X)

        initial = self._session.initial_model_id()
        for idx, model in enumerate(self._session.models):
            if model.id == initial:
                self._model_box.current(idx)
        self._model_box.bind("<<ComboboxSelected>>", self._on_model_changed)

    def _build_chat_area(self) -> None:
        self._chat = scrolledtext.ScrolledText(
            self, wrap=tk.WORD, state=tk.DISABLED,
            font=("", 10), relief=tk.SUNKEN, borderwidth=1,
            background="#1e1e1e", foreground="#d4d4d4",
        )
        self._chat.pack(fill=tk.BOTH, expand=True, padx=8, pady=4)

        self._chat.tag_config("user_lbl",
                              foreground="#4fc1ff", font=("", 10, "bold"))
        self._chat.tag_config("bot_lbl",
                              foreground="#c586c0", font=("", 10, "bold"))
        self._chat.tag_config("user_msg")
        self._chat.tag_config("bot_msg")
        self._chat.tag_config("err_msg", foreground="#f48771")
        self._chat.tag_config("code", font=("Courier", 10),
                              background="#2d2d2d", lmargin1=12, lmargin2=12)

    def _build_input_area(self) -> None:
        row = ttk.Frame(self, padding=(8, 4))
        row.pack(fill=tk.X, side=tk.BOTTOM)

        self._input = ttk.Entry(row)
        self._input.pack(side=tk.LEFT, fill=tk.X, expand=True)
        self._input.bind("<Return>", self._on_enter_key)

        self._send_btn = ttk.Button(row, text="Send ➤", command=self._send)
        self._send_btn.pack(side=tk.LEFT, padx=(6, 0))

    # ------------------------------------------------------------------
    # Chat display helpers
    # ------------------------------------------------------------------

    def _start_block(self, label: str, tag: str) -> None:
        self._chat.config(state=tk.NORMAL)
        if self._chat.get("1.0", tk.END).strip():
            self._chat.insert(tk.END, "\n\n")
        self._chat.insert(tk.END, f"{label}\n", tag)

    def _end_block(self) -> None:
        self._chat.config(state=tk.DISABLED)
        self._chat.see(tk.END)

    def append_user(self, text: str) -> None:
        self._start_block("You:", "user_lbl")
        self._chat.insert(tk.END, text, "user_msg")
        self._end_block()

    def append_bot(self, text: str, *, is_error: bool = False) -> None:
        """Append a bot turn, giving each fenced code block a Copy button."""
        self._start_block("Assistant:", "bot_lbl")
        if is_error:
            self._chat.insert(tk.END, text, "err_msg")
            self._end_block()
            return

        segments = render_segments(text)
        for idx, seg in enumerate(segments):
            if idx:
                self._chat.insert(tk.END, "\n")
            if isinstance(seg, CodeSegment):
                self._insert_code(seg)
            else:
                self._chat.insert(tk.END, seg.markdown_source, "bot_msg")
        self._end_block()

    def _insert_code(self, seg: CodeSegment) -> None:
        if seg.language:
            self._chat.insert(tk.END, f"{seg.language}\n", "bot_lbl")
        self._chat.insert(tk.END, seg.content, "code")
        btn = tk.Button(self._chat, text="Copy", font=("", 8),
                        relief=tk.FLAT, cursor="hand2", padx=4, pady=0)
        btn.config(command=lambda b=btn, code=seg.content:
                   self._copy_code(b, code))
        self._chat.window_create(tk.END, window=btn)

    def _copy_code(self, button: tk.Button, code: str) -> None:
        try:
            self.clipboard_clear()
            self.clipboard_append(code)
        except tk.TclError as exc:
            log.error("[APP] Failed to copy code: %s", exc)
            return
        button.config(text="Copied!")
        self.after(COPY_RESET_MS, lambda: button.config(text="Copy Code"))

    def clear_log(self) -> None:
        self._chat.config(state=tk.NORMAL)
        self._chat.delete("1.0", tk.END)
        self._chat.config(state=tk.DISABLED)
        self._session.clear()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _current_model_id(self) -> str:
        idx = self._model_box.current()
        if idx < 0:
            return self._session.initial_model_id()
        return self._session.models[idx].id

    def _on_model_changed(self, _event=None) -> None:
        notice = self._session.select_model(self._current_model_id())
        self.append_bot(notice)

    def _on_enter_key(self, _event: tk.Event) -> str:
        self._send()
        return "break"

    def _send(self) -> None:
        question = self._session.prepare_question(self._input.get())
        if question is None:
            return

        # Tk widgets are read here, on the Tk thread, never in the worker.
        snapshot = self._session.snapshot_editor()
        if not self._session.begin_send():
            log.debug("[APP] Send ignored: a request is already in flight.")
            return

        self._input.delete(0, tk.END)
        self._session.record("user", question)
        self.append_user(question)
        self._send_btn.config(state=tk.DISABLED)

        threading.Thread(
            target=self._worker,
            args=(question, self._current_model_id(), snapshot),
            daemon=True,
        ).start()

    def _worker(self, question: str, model_id: str, snapshot: str) -> None:
        """Background thread: fetch the reply and hand it to the Tk thread."""
        try:
            reply = self._session.ask(question, model_id, snapshot)
        except Exception as exc:  # noqa: BLE001
            log.error("[APP] Unexpected error in _worker: %s: %s",
                      type(exc).__name__, exc, exc_info=True)
            reply = ChatReply(WORKER_ERROR_REPLY, is_error=True)
        self._queue.put(("reply", reply))

    # ------------------------------------------------------------------
    # Queue pump (bridges worker thread → main thread)
    # ------------------------------------------------------------------

    def _pump_queue(self) -> None:
        try:
            while True:
                kind, payload = self._queue.get_nowait()
                if kind == "reply":
                    self._show_reply(payload)
        except queue.Empty:
            pass
        finally:
            self.after(40, self._pump_queue)

    def _show_reply(self, reply: ChatReply) -> None:
        """Display *reply* and re-open the input, even if display fails."""
        try:
            self._session.record("bot", reply.text)
            self.append_bot(reply.text, is_error=reply.is_error)
        finally:
            self._session.end_send()
            self._send_btn.config(state=tk.NORMAL)


def register_chatbot(host: LayoutHost, session: ChatSession) -> None:
    """Register the chat panel with *host* under :data:`COMPONENT_NAME`."""
    host.register_component(
        COMPONENT_NAME,
        lambda container: ChatPanel(container, session),
    )
