"""AI infrastructure for prdforge.

Wraps the Ollama chat API (streamed and one-shot) and holds the prompt
templates the pipeline sends to it.
"""

from prdforge.infrastructure.ai.ollama import (
    Completer,
    OllamaClient,
    OllamaStreamError,
    StreamingChatClient,
)

__all__ = [
    "Completer",
    "OllamaClient",
    "OllamaStreamError",
    "StreamingChatClient",
]
