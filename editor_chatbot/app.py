"""
Main GUI application — code editor with an embedded chatbot.

Layout
------
┌──────────────────────────────────────────────────────┐
│ Menu: File | Settings                                 │
├───────────────────────────┬──────────────────────────┤
│ [main.py] [util.py]       │ [Model selector ▼]       │
│                           │                          │
│   editor buffers          │   chat log               │  ← ChatPanel
│                           │                          │
│                           │ [question…]     [Send]   │
└───────────────────────────┴──────────────────────────┘
"""

import json
import logging
import tkinter as tk
from tkinter import filedialog, messagebox, simpledialog, ttk

from .catalog import AVAILABLE_MODELS
from .chat_panel import COMPONENT_NAME, register_chatbot
from .chat_session import ChatSession
from .config import delete_api_key, load_settings, save_api_key
from .editor_pane import EditorPane
from .layout import LayoutHost
from .llm_api import ResponseFetcher
from .preferences import PreferenceStore
from .renderer import MessageRenderer, markdown_converter, transcript_to_markdown

log = logging.getLogger("editor_chatbot")

WELCOME_CODE = '''def greet(name):
    return f"Hello, {name}!"


print(greet("world"))
'''


class EditorChatApp:
    """Editor + chatbot main window."""

    def __init__(self, models=AVAILABLE_MODELS) -> None:
        self.root = tk.Tk()
        self.root.title("Editor Chatbot")
        self.root.geometry("1200x720")
        self.root.minsize(800, 480)

        self._fetcher = ResponseFetcher(load_settings())
        self._renderer = MessageRenderer(markdown_converter())
        self._layout = LayoutHost()

        self._build_menu()
        self._build_layout()

        self._session = ChatSession(
            models, self._fetcher, PreferenceStore(),
            self._editor.get_active_code,
        )
        register_chatbot(self._layout, self._session)
        self._chat = self._layout.mount(COMPONENT_NAME, self._chat_frame)
        self._chat.pack(fill=tk.BOTH, expand=True)

        self._check_api_key()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_menu(self) -> None:
        bar = tk.Menu(self.root)
        self.root.config(menu=bar)

        file_menu = tk.Menu(bar, tearoff=False)
        bar.add_cascade(label="File", menu=file_menu)
        file_menu.add_command(label="New Buffer",
                              command=self._new_buffer)
        file_menu.add_command(label="Open File…", command=self._open_file)
        file_menu.add_command(label="Save Chat…", command=self._save_chat)
        file_menu.add_command(label="Clear Chat", command=self._clear_chat)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.root.quit)

        settings_menu = tk.Menu(bar, tearoff=False)
        bar.add_cascade(label="Settings", menu=settings_menu)
        settings_menu.add_command(label="API Key…", command=self._set_api_key)
        settings_menu.add_command(label="Clear Saved API Key",
                                  command=self._clear_api_key)

    def _build_layout(self) -> None:
        paned = ttk.PanedWindow(self.root, orient=tk.HORIZONTAL)
        paned.pack(fill=tk.BOTH, expand=True)

        self._editor = EditorPane(paned)
        self._editor.new_buffer("main.py", WELCOME_CODE)
        paned.add(self._editor, weight=3)

        self._chat_frame = ttk.Frame(paned, width=380)
        paned.add(self._chat_frame, weight=2)

    # ------------------------------------------------------------------
    # API key management
    # ------------------------------------------------------------------

    def _check_api_key(self) -> None:
        if self._fetcher.settings.api_key:
            self._chat.append_bot(
                "Ask a question about your code. "
                "Press Enter or click Send."
            )
        else:
            self._chat.append_bot(
                "No OpenRouter API key configured.\n"
                "Set OPENROUTER_API_KEY or use Settings → API Key…"
            )

    def _set_api_key(self) -> None:
        key = simpledialog.askstring(
            "OpenRouter API Key", "Enter your OpenRouter API key:",
            parent=self.root, show="*",
        )
        if not key:
            return
        save_api_key(key.strip())
        self._fetcher.settings = load_settings()
        self._chat.append_bot("API key saved.")

    def _clear_api_key(self) -> None:
        delete_api_key()
        self._fetcher.settings = load_settings()
        self._chat.append_bot("Saved API key removed.")

    # ------------------------------------------------------------------
    # Editor
    # ------------------------------------------------------------------

    def _new_buffer(self) -> None:
        self._editor.new_buffer()

    def _open_file(self) -> None:
        path = filedialog.askopenfilename(title="Open File")
        if not path:
            return
        try:
            self._editor.open_file(path)
        except OSError as exc:
            log.error("[APP] Could not open %s: %s", path, exc)
            messagebox.showerror("Open File", f"Could not open file:\n{exc}")

    # ------------------------------------------------------------------
    # Chat management
    # ------------------------------------------------------------------

    def _save_chat(self) -> None:
        path = filedialog.asksaveasfilename(
            title="Save Chat",
            defaultextension=".html",
            filetypes=[
                ("HTML", "*.html"),
                ("Markdown", "*.md"),
                ("JSON", "*.json"),
                ("All files", "*.*"),
            ],
        )
        if not path:
            return
        transcript = self._session.transcript
        with open(path, "w", encoding="utf-8") as fh:
            if path.endswith(".json"):
                json.dump(
                    [{"sender": s, "text": t} for s, t in transcript],
                    fh, ensure_ascii=False, indent=2,
                )
            elif path.endswith(".md"):
                fh.write(transcript_to_markdown(transcript))
            else:
                fh.write(self._renderer.render_transcript(transcript))
        messagebox.showinfo("Saved", f"Chat saved to:\n{path}")

    def _clear_chat(self) -> None:
        if not messagebox.askyesno("Clear Chat",
                                   "Clear all messages from this session?"):
            return
        self._chat.clear_log()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Start the Tk main loop."""
        self.root.mainloop()
