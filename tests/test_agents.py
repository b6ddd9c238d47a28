"""
tests/test_agents.py - Agent Runner Tests

Completions are plain callables, so tests pass stubs instead of a network
client.
"""

import threading

import pytest

from abcsim.agents import (
    AGENT_PERSONAS,
    AgentRunner,
    AgentStatus,
    build_prompt,
    get_persona,
)
from abcsim.engine import EvolutionEngine
from abcsim.mailbox import SharedMemory
from abcsim.types_config import SimParameters


@pytest.fixture
def params():
    return SimParameters(n_abc=4)


@pytest.fixture
def metrics(params):
    return EvolutionEngine(params, seed=5).get_metrics()


@pytest.fixture
def mailbox():
    return SharedMemory()


def make_runner(complete, mailbox, timeout=5.0):
    return AgentRunner(complete, mailbox, timeout=timeout, seed=0)


class TestPersonas:

    def test_eight_personas(self):
        assert [p.name for p in AGENT_PERSONAS] == [f"IA{i}" for i in range(1, 9)]

    def test_unknown_persona(self):
        with pytest.raises(KeyError):
            get_persona(9)

    def test_prompt_mentions_state(self, params, metrics, mailbox):
        mailbox.set_deduction("strange quarks dominate")
        mailbox.append_log("[t=0.10] Quark up formed from nodes [0, 1, 2]")
        prompt = build_prompt(get_persona(8), params, metrics, mailbox, instruction="look closer")
        assert prompt.startswith("IA8 (Quantum)")
        assert "Phase: PRIMORDIAL" in prompt
        assert "User deduction: strange quarks dominate" in prompt
        assert "Quark up formed" in prompt
        assert "Instruction: look closer" in prompt
        assert prompt.endswith("Task: ANALYZE ENTANGLEMENT.")


class TestAgentRunner:
    """Outcomes recorded per persona; responses land in the mailbox."""

    def test_success_posts_action(self, params, metrics, mailbox):
        runner = make_runner(lambda prompt: "Increase radioPi.", mailbox)
        try:
            state = runner.run(6, params, metrics)
        finally:
            runner.shutdown()
        assert state.status is AgentStatus.IDLE
        assert not state.running
        assert state.last_response == "Increase radioPi."
        assert 0.8 <= state.confidence <= 1.0
        assert mailbox.pending_actions() == ["IA6: Increase radioPi."]

    def test_exception_sets_error(self, params, metrics, mailbox):
        def broken(prompt):
            raise ConnectionError("offline")

        runner = make_runner(broken, mailbox)
        try:
            state = runner.run(1, params, metrics)
        finally:
            runner.shutdown()
        assert state.status is AgentStatus.ERROR
        assert "offline" in state.last_error
        assert mailbox.pending_actions() == []

    @pytest.mark.parametrize("response", ["", "   ", None, 42])
    def test_malformed_response(self, params, metrics, mailbox, response):
        runner = make_runner(lambda prompt: response, mailbox)
        try:
            state = runner.run(2, params, metrics)
        finally:
            runner.shutdown()
        assert state.status is AgentStatus.ERROR
        assert state.last_error == "malformed response"

    def test_timeout(self, params, metrics, mailbox):
        release = threading.Event()

        def slow(prompt):
            release.wait(5.0)
            return "too late"

        runner = make_runner(slow, mailbox, timeout=0.05)
        try:
            state = runner.run(3, params, metrics)
        finally:
            release.set()
            runner.shutdown()
        assert state.status is AgentStatus.ERROR
        assert "timed out" in state.last_error
        assert mailbox.pending_actions() == []

    def test_run_all(self, params, metrics, mailbox):
        runner = make_runner(lambda prompt: prompt.split()[0], mailbox)
        try:
            states = runner.run_all(params, metrics)
        finally:
            runner.shutdown()
        assert len(states) == 8
        assert all(s.status is AgentStatus.IDLE for s in states)
        assert mailbox.pending_actions()[0] == "IA1: IA1"

    def test_cancel_nothing_pending(self, mailbox):
        runner = make_runner(lambda prompt: "x", mailbox)
        try:
            assert runner.cancel(4) is False
        finally:
            runner.shutdown()

    def test_cancel_pending(self, params, metrics, mailbox):
        release = threading.Event()
        runner = make_runner(lambda prompt: release.wait(5.0) and "done", mailbox)
        try:
            runner.submit(5, params, metrics)
            assert runner.states[5].status is AgentStatus.SCANNING
            assert runner.cancel(5) is True
            assert runner.states[5].status is AgentStatus.IDLE
            # nothing left to wait on
            assert runner.wait(5).status is AgentStatus.IDLE
        finally:
            release.set()
            runner.shutdown()
        assert mailbox.pending_actions() == []

    def test_resubmit_cancels_queued_request(self, params, metrics, mailbox):
        release = threading.Event()
        runner = AgentRunner(lambda prompt: release.wait(5.0) and "done", mailbox, seed=0, max_workers=1)
        try:
            runner.submit(1, params, metrics)  # occupies the only worker
            queued = runner.submit(2, params, metrics)
            latest = runner.submit(2, params, metrics, instruction="try again")
            assert queued.cancelled()
            assert latest is not queued
            release.set()
            assert runner.wait(2).status is AgentStatus.IDLE
            runner.wait(1)
        finally:
            release.set()
            runner.shutdown()
        assert sorted(mailbox.pending_actions()) == ["IA1: done", "IA2: done"]

    def test_snapshot(self, params, metrics, mailbox):
        runner = make_runner(lambda prompt: "ok", mailbox)
        try:
            runner.run(7, params, metrics)
            snap = runner.snapshot()
        finally:
            runner.shutdown()
        assert snap["agents"]["7"]["status"] == "idle"
        assert snap["log"] == ["IA7: ok"]
