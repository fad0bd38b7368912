"""Background worker for one streamed generation.

The UI thread never blocks on the model: the consumer runs on a daemon
thread and publishes updates into a bounded queue, which the pipeline polls
one event at a time. A second small queue carries follow-up text from the
user to the worker.
"""

import logging
import queue
import threading

from prdforge.application.streaming import StreamingConsumer
from prdforge.domain.generation.events import Error, GenerationUpdate
from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.models import PRD
from prdforge.domain.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)

UPDATE_CHANNEL_CAPACITY = 100
INPUT_CHANNEL_CAPACITY = 10
PUT_TIMEOUT_SECONDS = 0.1


class GenerationSession:
    """Owns the worker thread and both channels of a generation run.

    Example:
        session = GenerationSession(consumer, prd, personas)
        session.start()
        result = session.poll()  # Ok(update), Ok(None) or Err(...)
    """

    def __init__(
        self,
        consumer: StreamingConsumer,
        prd: PRD,
        personas: list[Persona],
        update_capacity: int = UPDATE_CHANNEL_CAPACITY,
        input_capacity: int = INPUT_CHANNEL_CAPACITY,
    ) -> None:
        self._consumer = consumer
        self._prd = prd
        self._personas = personas
        self._updates: queue.Queue[GenerationUpdate] = queue.Queue(maxsize=update_capacity)
        self._inputs: queue.Queue[str] = queue.Queue(maxsize=input_capacity)
        self._cancel = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="prdforge-generation", daemon=True
        )
        self._started = False

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def start(self) -> None:
        self._started = True
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_running(self) -> bool:
        return self._thread.is_alive()

    def close(self) -> None:
        """Ask the worker to stop; it exits at its next chunk or put."""
        self._cancel.set()

    def poll(self) -> Result[GenerationUpdate | None, str]:
        """Take at most one pending update without blocking.

        Returns:
            Ok(update), Ok(None) if nothing is pending yet, or Err(str) when
            the worker exited without anything left in the channel.
        """
        try:
            return Ok(self._updates.get_nowait())
        except queue.Empty:
            pass

        if not self._started or self._thread.is_alive():
            return Ok(None)

        # The worker may have published just before exiting.
        try:
            return Ok(self._updates.get_nowait())
        except queue.Empty:
            return Err("Generation worker disconnected before reporting a result")

    def send_follow_up(self, text: str) -> Result[None, str]:
        """Queue follow-up text for the worker without blocking."""
        if not self._thread.is_alive():
            return Err("Generation has finished; follow-up was not delivered")
        try:
            self._inputs.put_nowait(text)
        except queue.Full:
            return Err("Too many pending follow-ups; try again shortly")
        return Ok(None)

    def _run(self) -> None:
        try:
            self._consumer.run(
                self._prd,
                self._personas,
                emit=self._publish,
                cancel=self._cancel,
                follow_ups=self._drain_inputs,
            )
        except Exception as e:
            logger.exception("Generation worker crashed")
            self._publish(Error(message=f"Generation worker crashed: {e}"))

    def _publish(self, update: GenerationUpdate) -> None:
        # Blocks while the channel is full, but gives up once cancelled.
        while not self._cancel.is_set():
            try:
                self._updates.put(update, timeout=PUT_TIMEOUT_SECONDS)
                return
            except queue.Full:
                continue

    def _drain_inputs(self) -> list[str]:
        drained: list[str] = []
        while True:
            try:
                drained.append(self._inputs.get_nowait())
            except queue.Empty:
                return drained
