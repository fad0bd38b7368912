"""Infrastructure layer for prdforge.

Exports:
    Storage:
        - JsonStorage: Low-level JSON file I/O
        - JsonTaskStore: Project/PRD/task/persona persistence

    AI:
        - OllamaClient: Streamed and one-shot chat completions
        - OllamaStreamError: Transport failure while streaming
"""

from prdforge.infrastructure.ai import OllamaClient, OllamaStreamError
from prdforge.infrastructure.storage import JsonStorage, JsonTaskStore

__all__ = [
    "JsonStorage",
    "JsonTaskStore",
    "OllamaClient",
    "OllamaStreamError",
]
