"""Application layer for prdforge.

Turns model output into tasks and drives a generation run:

- extraction: finding and reading task JSON in model text
- remediation: repairing malformed JSON
- assignee: resolving assignees to personas
- streaming / session: the background streamed generation
- decomposition: splitting complex tasks
- pipeline: the step-wise state machine hosts drive with ``advance()``
"""

from prdforge.application.assignee import AssigneeResolver
from prdforge.application.decomposition import DECOMPOSITION_THRESHOLD, TaskDecomposer
from prdforge.application.extraction import extract_json, parse_tasks
from prdforge.application.pipeline import GenerationPipeline
from prdforge.application.ports import TaskStore
from prdforge.application.remediation import JsonRemediator
from prdforge.application.session import GenerationSession
from prdforge.application.streaming import StreamingConsumer, TaskObjectDetector

__all__ = [
    "AssigneeResolver",
    "DECOMPOSITION_THRESHOLD",
    "GenerationPipeline",
    "GenerationSession",
    "JsonRemediator",
    "StreamingConsumer",
    "TaskDecomposer",
    "TaskObjectDetector",
    "TaskStore",
    "extract_json",
    "parse_tasks",
]
