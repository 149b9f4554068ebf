"""Tabbed plain-text editor whose buffers are shared with the chatbot."""

import logging
import os
import tkinter as tk
from tkinter import scrolledtext, ttk

log = logging.getLogger("editor_chatbot")


class EditorPane(ttk.Notebook):
    """One tab per open buffer, kept in open order."""

    def __init__(self, parent: tk.Widget) -> None:
        super().__init__(parent)
        self._buffers: list[scrolledtext.ScrolledText] = []

    def new_buffer(self, title: str = "untitled", text: str = "") -> None:
        frame = ttk.Frame(self)
        editor = scrolledtext.ScrolledText(
            frame, wrap=tk.NONE, undo=True, font=("Courier", 10),
            relief=tk.SUNKEN, borderwidth=1,
        )
        editor.pack(fill=tk.BOTH, expand=True)
        if text:
            editor.insert("1.0", text)
        self.add(frame, text=title)
        self.select(frame)
        self._buffers.append(editor)

    def open_file(self, path: str) -> None:
        with open(path, "r", encoding="utf-8", errors="replace") as fh:
            text = fh.read()
        self.new_buffer(os.path.basename(path), text)
        log.debug("[APP] Opened %s (%d chars)", path, len(text))

    def get_active_code(self) -> str:
        """Return every buffer's text, newline-joined in open order."""
        # Tk appends a trailing newline to every Text widget.
        return "\n".join(b.get("1.0", "end-1c") for b in self._buffers)
