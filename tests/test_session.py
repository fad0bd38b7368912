"""Tests for the background generation session."""

import json
import threading
import time

from prdforge.application.assignee import AssigneeResolver
from prdforge.application.remediation import JsonRemediator
from prdforge.application.session import GenerationSession
from prdforge.application.streaming import StreamingConsumer
from prdforge.domain.generation.events import Complete, Error, Thinking
from prdforge.domain.shared.result import Err, Ok

from tests.conftest import FakeStreamClient, task_json


def _session(client, config, prd, **kwargs):
    consumer = StreamingConsumer(
        client,
        config,
        AssigneeResolver(client, config.fallback_model),
        JsonRemediator(client, config.fallback_model),
    )
    return GenerationSession(consumer, prd, [], **kwargs)


def _poll_until_terminal(session, timeout=5.0):
    updates = []
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        result = session.poll()
        assert isinstance(result, Ok), result
        if result.value is None:
            time.sleep(0.01)
            continue
        updates.append(result.value)
        if isinstance(result.value, (Complete, Error)):
            return updates
    raise AssertionError("no terminal update")


class _ScriptedConsumer:
    def __init__(self, action):
        self.action = action

    def run(self, prd, personas, emit, cancel=None, follow_ups=None):
        self.action(emit, cancel)


def test_poll_yields_one_update_at_a_time(config, prd):
    client = FakeStreamClient(["[", json.dumps(task_json("A")), "]"])
    session = _session(client, config, prd)
    session.start()

    updates = _poll_until_terminal(session)

    assert isinstance(updates[0], Thinking)
    assert isinstance(updates[-1], Complete)
    assert [t.title for t in updates[-1].tasks] == ["A"]


def test_poll_before_start_is_empty(config, prd):
    session = _session(FakeStreamClient([]), config, prd)

    assert session.poll() == Ok(None)


def test_disconnect_is_reported(prd):
    session = GenerationSession(_ScriptedConsumer(lambda emit, cancel: None), prd, [])
    session.start()
    session.join(timeout=5)

    result = session.poll()

    assert isinstance(result, Err)
    assert "disconnected" in result.error


def test_last_update_is_drained_before_disconnect(prd):
    session = GenerationSession(
        _ScriptedConsumer(lambda emit, cancel: emit(Thinking(text="bye"))), prd, []
    )
    session.start()
    session.join(timeout=5)

    first = session.poll()
    second = session.poll()

    assert isinstance(first, Ok) and first.value.text == "bye"
    assert isinstance(second, Err)


def test_worker_crash_becomes_error(prd):
    def crash(emit, cancel):
        raise RuntimeError("boom")

    session = GenerationSession(_ScriptedConsumer(crash), prd, [])
    session.start()
    session.join(timeout=5)

    result = session.poll()

    assert isinstance(result, Ok)
    assert isinstance(result.value, Error)
    assert "boom" in result.value.message


def test_follow_up_reaches_the_worker(config, prd):
    gate = threading.Event()
    client = FakeStreamClient(["[", json.dumps(task_json("A")), "]"], gate=gate)
    session = _session(client, config, prd)
    session.start()

    assert session.send_follow_up("prioritise billing") == Ok(None)
    gate.set()
    updates = _poll_until_terminal(session)

    assert any(
        isinstance(u, Thinking) and "prioritise billing" in u.text for u in updates
    )


def test_follow_up_channel_full(config, prd):
    gate = threading.Event()
    client = FakeStreamClient(["[", "]"], gate=gate, gate_at=0)
    session = _session(client, config, prd, input_capacity=1)
    session.start()

    try:
        assert session.send_follow_up("one") == Ok(None)
        result = session.send_follow_up("two")
        assert isinstance(result, Err)
        assert "pending" in result.error
    finally:
        gate.set()
        session.close()
        session.join(timeout=5)


def test_follow_up_after_finish_fails(prd):
    session = GenerationSession(_ScriptedConsumer(lambda emit, cancel: None), prd, [])
    session.start()
    session.join(timeout=5)

    result = session.send_follow_up("too late")

    assert isinstance(result, Err)
    assert "finished" in result.error


def test_close_unblocks_a_full_channel(prd):
    def flood(emit, cancel):
        for i in range(50):
            emit(Thinking(text=str(i)))

    session = GenerationSession(_ScriptedConsumer(flood), prd, [], update_capacity=1)
    session.start()
    time.sleep(0.05)

    session.close()
    session.join(timeout=5)

    assert not session.is_running()
    assert session.cancelled
