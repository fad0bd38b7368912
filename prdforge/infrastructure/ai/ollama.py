"""Ollama client wrapper.

Two call shapes are needed by the pipeline:

- ``stream_chat``: one streamed POST to ``/api/chat`` (``stream: true``),
  consumed as newline-delimited JSON chunks, yielding each non-empty
  ``message.content`` fragment until a chunk reports ``done``.
- ``complete``: one non-streamed chat call used for JSON remediation,
  assignee escalation and decomposition, returned as a Result.
"""

import logging
from collections.abc import Iterator
from typing import Any, Protocol

import httpx
import ollama

from prdforge.config import DEFAULT_BASE_URL
from prdforge.domain.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)


class OllamaStreamError(Exception):
    """Transport-level failure while streaming a chat response."""


class Completer(Protocol):
    """Anything that can answer a single prompt with text."""

    def complete(self, model: str, prompt: str) -> Result[str, str]: ...


class StreamingChatClient(Completer, Protocol):
    """A completer that can also stream a chat reply fragment by fragment."""

    def stream_chat(self, model: str, prompt: str, temperature: float = 0.7) -> Iterator[str]: ...


class OllamaClient:
    """Client for Ollama chat completions.

    Extra keyword arguments are handed to ``ollama.Client`` and from there to
    the underlying ``httpx.Client`` (e.g. ``transport`` or ``timeout``). No
    timeout is set by default: a stalled server simply produces no chunks.

    Example:
        client = OllamaClient()
        for fragment in client.stream_chat("llama3.2", "List three tasks"):
            print(fragment, end="")
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, **client_kwargs: Any) -> None:
        """Initialize the client.

        Args:
            base_url: Ollama server URL.
            **client_kwargs: Passed through to ``ollama.Client``.
        """
        self._base_url = base_url
        self._client = ollama.Client(host=base_url, **client_kwargs)
        self._available: bool | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def is_available(self) -> bool:
        """Check if the Ollama server is reachable."""
        if self._available is not None:
            return self._available

        try:
            self._client.list()
            self._available = True
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            logger.warning(f"Ollama not available at {self._base_url}: {e}")
            self._available = False

        return self._available

    def stream_chat(self, model: str, prompt: str, temperature: float = 0.7) -> Iterator[str]:
        """Stream a chat reply.

        Args:
            model: Model name.
            prompt: Complete user prompt.
            temperature: Sampling temperature.

        Yields:
            Non-empty content fragments in arrival order.

        Raises:
            OllamaStreamError: On any HTTP or stream error.
        """
        try:
            stream = self._client.chat(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                stream=True,
                options={"temperature": temperature},
            )
            for chunk in stream:
                content = _content_of(chunk)
                if content:
                    yield content
                if chunk.get("done"):
                    break
        except ollama.ResponseError as e:
            raise OllamaStreamError(f"Ollama returned an error: {e.error}") from e
        except (httpx.HTTPError, ConnectionError) as e:
            raise OllamaStreamError(f"HTTP request failed: {e}") from e

    def complete(self, model: str, prompt: str) -> Result[str, str]:
        """Send one prompt and return the whole reply.

        Args:
            model: Model name.
            prompt: Complete user prompt.

        Returns:
            Ok(str) with the stripped reply, or Err(str) with the error.
        """
        try:
            response = self._client.chat(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                stream=False,
            )
        except ollama.ResponseError as e:
            return Err(f"Ollama returned an error: {e.error}")
        except (httpx.HTTPError, ConnectionError) as e:
            return Err(f"LLM request failed: {e}")

        return Ok(_content_of(response).strip())


def _content_of(chunk: Any) -> str:
    message = chunk.get("message") if chunk is not None else None
    if message is None:
        return ""
    content = message.get("content")
    return content or ""
