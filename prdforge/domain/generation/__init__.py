"""Generation domain - update events and processing states.

``events`` and ``states`` both define a ``Complete`` type, so import them
through their modules:

    >>> from prdforge.domain.generation import events, states
    >>> isinstance(states.Complete(count=3), states.Complete)
    True
"""

from . import events, states
from .events import GenerationUpdate
from .states import ProcessingState

__all__ = ["events", "states", "GenerationUpdate", "ProcessingState"]
