"""
abcsim/agents.py - Agent Personas and Runner

Eight narrator personas backed by an external text-completion callable.
Requests run in a worker thread with a timeout and can be cancelled.
Agents read frozen Metrics snapshots and write only to the mailbox; they
never touch WorldState.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np

from .constants import AGENT_LOG_CAPACITY
from .mailbox import SharedMemory
from .types_config import SimParameters
from .types_result import Metrics

logger = logging.getLogger(__name__)

Completion = Callable[[str], str]


@dataclass(frozen=True)
class AgentPersona:
    agent_id: int
    name: str
    label: str
    description: str
    action: str


AGENT_PERSONAS = (
    AgentPersona(1, "IA1", "Experimental", "Validates predictions against simulated experimental data.", "RUN VALIDATION"),
    AgentPersona(2, "IA2", "Theoretical", "Checks mathematical consistency and symmetries.", "ANALYZE CONSISTENCY"),
    AgentPersona(3, "IA3", "Observer", "Observes the run and validates the user's deductions.", "VALIDATE DEDUCTION"),
    AgentPersona(4, "IA4", "Searcher", "Generates and tests equations in search of constants.", "SEARCH CONSTANTS"),
    AgentPersona(5, "IA5", "Integrator", "Follows quarks into atoms and emergent matter.", "GENERATE MATTER"),
    AgentPersona(6, "IA6", "Mediator", "Reads the state and suggests parameter adjustments.", "OPTIMIZE PARAMETERS"),
    AgentPersona(7, "IA7", "Programmer", "Turns user instructions into proposed changes.", "APPLY CHANGE"),
    AgentPersona(8, "IA8", "Quantum", "Studies entanglement and non-locality.", "ANALYZE ENTANGLEMENT"),
)

PERSONAS_BY_ID: Dict[int, AgentPersona] = {p.agent_id: p for p in AGENT_PERSONAS}


class AgentStatus(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ERROR = "error"


@dataclass
class AgentState:
    """Per-persona request state."""
    confidence: float = 0.5
    running: bool = False
    status: AgentStatus = AgentStatus.IDLE
    last_response: str = ""
    last_error: str = ""

    def to_dict(self) -> dict:
        return {
            "confidence": self.confidence,
            "running": self.running,
            "status": self.status.value,
            "last_response": self.last_response,
            "last_error": self.last_error,
        }


def get_persona(agent_id: int) -> AgentPersona:
    """
    Raises:
        KeyError: If no persona has that id
    """
    if agent_id not in PERSONAS_BY_ID:
        raise KeyError(f"unknown agent: {agent_id}")
    return PERSONAS_BY_ID[agent_id]


def build_prompt(
    persona: AgentPersona,
    params: SimParameters,
    metrics: Metrics,
    mailbox: Optional[SharedMemory] = None,
    instruction: str = "",
) -> str:
    """Compose the completion prompt for one persona from a metrics snapshot."""
    lines = [
        f"{persona.name} ({persona.label}): {persona.description}",
        f"Scale: {metrics.scale_label} ({params.scale}). RadioPi: {params.radio_pi}. "
        f"Coherence: {metrics.coherence:.4f}.",
        f"Phase: {metrics.phase}. Quarks: {metrics.quark_count}. Atoms: {metrics.atom_count}. "
        f"Entropy: {metrics.entropy:.4f}. Gamma: {metrics.gamma:.4f}.",
    ]
    if mailbox is not None:
        shared = mailbox.snapshot()
        if shared["user_deduction"]:
            lines.append(f"User deduction: {shared['user_deduction']}")
        recent = shared["evolution_log"][-5:]
        if recent:
            lines.append("Recent events: " + " | ".join(recent))
    if instruction:
        lines.append(f"Instruction: {instruction}")
    lines.append(f"Task: {persona.action}.")
    return "\n".join(lines)


class AgentRunner:
    """
    Timeout-bounded, cancellable completion requests for the personas.

    The engine never waits on this runner; responses arrive in the mailbox
    as pending actions for the engine to drain on its next tick.

    Args:
        complete: Text-completion callable, prompt -> text
        mailbox: Shared memory to post responses into
        timeout: Seconds to wait for one completion
        seed: Seed for the reported confidence jitter
    """

    def __init__(
        self,
        complete: Completion,
        mailbox: SharedMemory,
        timeout: float = 30.0,
        seed: Optional[int] = None,
        max_workers: int = 4,
    ):
        self.complete = complete
        self.mailbox = mailbox
        self.timeout = timeout
        self.states: Dict[int, AgentState] = {p.agent_id: AgentState() for p in AGENT_PERSONAS}
        self.log: deque = deque(maxlen=AGENT_LOG_CAPACITY)
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()
        self._futures: Dict[int, Future] = {}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="abcsim-agent")

    def submit(
        self,
        agent_id: int,
        params: SimParameters,
        metrics: Metrics,
        instruction: str = "",
    ) -> Future:
        """
        Start a request without waiting for it.

        A request still pending for the same agent is cancelled first; if
        it is already running in a worker its result is discarded.
        """
        persona = get_persona(agent_id)
        prompt = build_prompt(persona, params, metrics, self.mailbox, instruction)
        with self._lock:
            previous = self._futures.pop(agent_id, None)
            if previous is not None and not previous.done():
                previous.cancel()
                logger.info("Agent %s: superseded pending request", persona.name)
            state = self.states[agent_id]
            state.running = True
            state.status = AgentStatus.SCANNING
            future = self._executor.submit(self.complete, prompt)
            self._futures[agent_id] = future
        return future

    def wait(self, agent_id: int) -> AgentState:
        """
        Wait for a submitted request and record its outcome.

        Timeouts, exceptions and non-text responses set status ERROR.
        """
        persona = get_persona(agent_id)
        with self._lock:
            future = self._futures.pop(agent_id, None)
        state = self.states[agent_id]
        if future is None:
            return state

        try:
            text = future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            return self._fail(persona, f"timed out after {self.timeout}s")
        except Exception as exc:
            return self._fail(persona, f"{type(exc).__name__}: {exc}")

        if not isinstance(text, str) or not text.strip():
            return self._fail(persona, "malformed response")

        with self._lock:
            state.running = False
            state.status = AgentStatus.IDLE
            state.last_response = text
            state.last_error = ""
            state.confidence = 0.8 + float(self._rng.random()) * 0.2
        self.log.append(f"{persona.name}: {text}")
        self.mailbox.post_action(f"{persona.name}: {text}")
        return state

    def run(self, agent_id: int, params: SimParameters, metrics: Metrics, instruction: str = "") -> AgentState:
        """Submit and wait."""
        self.submit(agent_id, params, metrics, instruction)
        return self.wait(agent_id)

    def run_all(self, params: SimParameters, metrics: Metrics) -> List[AgentState]:
        """Fan out to every persona, then collect in id order."""
        for persona in AGENT_PERSONAS:
            self.submit(persona.agent_id, params, metrics)
        return [self.wait(p.agent_id) for p in AGENT_PERSONAS]

    def cancel(self, agent_id: int) -> bool:
        """
        Cancel a pending request.

        Returns:
            True if a request was pending. A request already running in a
            worker cannot be interrupted; its result is discarded.
        """
        with self._lock:
            future = self._futures.pop(agent_id, None)
            state = self.states[agent_id]
            state.running = False
            state.status = AgentStatus.IDLE
        if future is None:
            return False
        future.cancel()
        return True

    def shutdown(self) -> None:
        with self._lock:
            pending = list(self._futures.values())
            self._futures.clear()
        for future in pending:
            future.cancel()
        self._executor.shutdown(wait=False)

    def snapshot(self) -> dict:
        """Agent state for export."""
        with self._lock:
            return {
                "agents": {str(k): v.to_dict() for k, v in self.states.items()},
                "log": list(self.log),
            }

    def _fail(self, persona: AgentPersona, reason: str) -> AgentState:
        logger.warning("Agent %s failed: %s", persona.name, reason)
        with self._lock:
            state = self.states[persona.agent_id]
            state.running = False
            state.status = AgentStatus.ERROR
            state.last_error = reason
        self.log.append(f"{persona.name}: error ({reason})")
        return state
