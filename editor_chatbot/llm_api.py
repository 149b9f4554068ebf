"""
OpenRouter chat-completions client.

Sends one question plus the editor's current code to the completions
endpoint and normalises the reply into a :class:`ChatReply`.  Every failure is
absorbed here: callers only ever see plain reply text, never an exception.

Retry policy
------------
An empty (or whitespace-only) reply is retried up to ``Settings.max_retries``
times with ``Settings.retry_delay`` seconds between attempts.  An HTTP error or
any exception ends the sequence at once with :data:`ERROR_REPLY`.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

import requests

from .catalog import resolve_model_id
from .config import Settings
from .prompts import build_user_content, get_system_prompt

log = logging.getLogger("editor_chatbot")

#: Returned when the request fails (HTTP error, network error, bad JSON).
ERROR_REPLY = "Error: Unable to get model response."

#: Returned when every attempt produced an empty reply.
NO_REPLY = "No reply received."


# ---------------------------------------------------------------------------
# Error-handling helpers
# ---------------------------------------------------------------------------

class LLMAPIError(Exception):
    """Non-2xx reply from the completions endpoint."""

    def __init__(self, status_code: int, detail: str, *,
                 model: str = "", attempt: int = 0) -> None:
        self.status_code = status_code
        self.detail = detail
        self.model = model
        self.attempt = attempt
        super().__init__(f"HTTP {status_code} from completions endpoint")

    def __str__(self) -> str:  # noqa: D105
        where = f" (model={self.model}, attempt={self.attempt})" if self.model else ""
        return f"{super().__str__()}{where}: {self.detail}"


def _extract_error_detail(response: requests.Response) -> str:
    """Return the error message from an OpenRouter error body.

    OpenRouter answers ``{"error": {"code": 402, "message": "...",
    "metadata": {"provider_name": "...", "raw": "..."}}}``; the upstream
    provider's raw message is appended when present.  Non-JSON bodies fall
    back to the first 300 characters of text.
    """
    try:
        err = response.json().get("error")
    except (ValueError, AttributeError):
        err = None
    if isinstance(err, dict):
        detail = str(err.get("message") or err)
        metadata = err.get("metadata")
        if isinstance(metadata, dict) and metadata.get("raw"):
            provider = metadata.get("provider_name", "provider")
            detail += f" [{provider}: {str(metadata['raw'])[:200]}]"
        return detail
    if err:
        return str(err)
    return response.text[:300] if response.text else "(empty body)"


# ---------------------------------------------------------------------------
# Request / reply values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChatRequest:
    """Everything needed for one call to the completions endpoint."""

    model_id: str
    system_prompt: str
    user_question: str
    editor_snapshot: str

    @classmethod
    def build(cls, question: str, model_id: str | None,
              editor_snapshot: str) -> "ChatRequest":
        model = resolve_model_id(model_id)
        return cls(
            model_id=model,
            system_prompt=get_system_prompt(model),
            user_question=question,
            editor_snapshot=editor_snapshot,
        )

    def to_payload(self) -> dict:
        """Return the JSON body sent to the endpoint."""
        return {
            "model": self.model_id,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {
                    "role": "user",
                    "content": build_user_content(self.user_question,
                                                  self.editor_snapshot),
                },
            ],
        }


@dataclass(frozen=True)
class ChatReply:
    """Final outcome of :meth:`ResponseFetcher.fetch_reply`."""

    text: str
    is_error: bool = False
    attempts: int = 0


def extract_reply_text(data) -> str:
    """Return the text of ``choices[0].message.content``.

    The content may be a plain string or a list of typed parts, in which case
    the ``"text"`` parts are joined with newlines.  Any other shape yields an
    empty string.
    """
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        return ""

    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for part in content:
            if isinstance(part, dict) and part.get("type") == "text":
                text = part.get("text")
                texts.append(text if isinstance(text, str) else "")
        return "\n".join(texts)
    return ""


def build_headers(settings: Settings) -> dict[str, str]:
    """Return the fixed request headers for *settings*."""
    return {
        "Authorization": f"Bearer {settings.api_key}",
        "HTTP-Referer":  settings.referer,
        "X-Title":       settings.title,
        "Content-Type":  "application/json",
    }


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------

class ResponseFetcher:
    """Blocking client for the completions endpoint.

    Meant to be called from a worker thread; the retry delay uses *sleep*
    (``time.sleep`` by default) so tests can substitute a recorder.
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._sleep = sleep

    @property
    def settings(self) -> Settings:
        return self._settings

    @settings.setter
    def settings(self, settings: Settings) -> None:
        self._settings = settings

    def _post(self, request: ChatRequest, attempt: int) -> dict:
        """Send *request* once and return the decoded JSON body."""
        url = self._settings.api_url
        response = self._session.post(
            url,
            headers=build_headers(self._settings),
            json=request.to_payload(),
            timeout=self._settings.timeout,
        )
        log.debug("[API] POST %s → %s", url, response.status_code)

        # Only 2xx counts as success; redirects that were not followed fail.
        if not 200 <= response.status_code < 300:
            raise LLMAPIError(
                response.status_code,
                _extract_error_detail(response),
                model=request.model_id,
                attempt=attempt,
            )

        data = response.json()
        log.debug("[API] Response body: %s", str(data)[:500])
        return data

    def fetch_reply(self, question: str, model_id: str | None,
                    editor_snapshot: str) -> ChatReply:
        """Ask *question* about *editor_snapshot* and return the reply.

        Parameters
        ----------
        question        : Trimmed, non-empty user question.
        model_id        : Catalog id; falsy means the default model.
        editor_snapshot : Current editor text (may be empty).
        """
        request = ChatRequest.build(question, model_id, editor_snapshot)
        max_attempts = self._settings.max_retries + 1
        attempt = 0

        try:
            while attempt < max_attempts:
                attempt += 1
                log.debug("[API] ── Attempt %d/%d  model=%s  question=%.80r",
                          attempt, max_attempts, request.model_id, question)
                text = extract_reply_text(self._post(request, attempt))
                if text.strip():
                    return ChatReply(text, attempts=attempt)
                if attempt < max_attempts:
                    log.warning("[API] Empty reply received. Retrying attempt "
                                "%d of %d…", attempt, self._settings.max_retries)
                    self._sleep(self._settings.retry_delay)
        except LLMAPIError as exc:
            log.error("[API] %s", exc)
            return ChatReply(ERROR_REPLY, is_error=True, attempts=attempt)
        except requests.RequestException as exc:
            log.error("[API] Network error calling %s: %s: %s",
                      self._settings.api_url, type(exc).__name__, exc)
            return ChatReply(ERROR_REPLY, is_error=True, attempts=attempt)
        except Exception as exc:  # noqa: BLE001
            log.error("[API] Unexpected error while fetching reply: %s: %s",
                      type(exc).__name__, exc, exc_info=True)
            return ChatReply(ERROR_REPLY, is_error=True, attempts=attempt)

        log.warning("[API] No usable reply after %d attempts.", attempt)
        return ChatReply(NO_REPLY, attempts=attempt)
