"""
abcsim/engine.py - Evolution Engine

Owns the WorldState and is its sole writer. A host loop calls step(dt)
once per frame while running; get_metrics() is a pure read.

Tick pipeline (fixed order):
    mailbox drain -> clock -> field -> node kinematics -> formation
    -> quark/atom motion -> atom formation -> relativistic clocks
    -> phase -> statistics -> collapse-marker expiry -> telemetry
"""

import logging
import math
from numbers import Real
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from tqdm import tqdm

from .constants import (
    COLLAPSE_EVENT_TTL, INIT_ANGLE_JITTER, INIT_RADIUS_MIN, INIT_RADIUS_SPAN,
    INIT_Z_JITTER, KIND_ORDER, KIND_TABLE, NODE_FREQUENCY_MIN,
    NODE_FREQUENCY_SPAN, NODE_VELOCITY_SIGMA, TELEMETRY_INTERVAL, NodeKind,
)
from .dynamics_field import update_field
from .dynamics_formation import form_atoms, run_formation
from .dynamics_kinematics import advance_atoms, advance_nodes, advance_quarks, advance_spaceship
from .dynamics_phase import advance_phase, classify_phase
from .dynamics_relativity import advance_clocks, clamp_velocity, lorentz_factor
from .mailbox import SharedMemory
from .measurement import measure_statistics, project_metrics
from .receipts import canonical_json, dual_hash, emit_receipt, write_receipt_jsonl
from .telemetry import NullSink, TelemetrySink
from .types_config import (
    DEFAULT_PARAMETERS, REINIT_FIELDS, SimParameters, apply_patch,
    changed_fields, is_3d, node_count_for,
)
from .types_result import Metrics, RunResult
from .types_state import Node, WorldState
from .validation import validate_world
from .vector import gaussian

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi

Placement = Union[Tuple[Any, Sequence[float]], Tuple[Any, Sequence[float], Sequence[float]]]


def _new_seed() -> int:
    return int(np.random.SeedSequence().entropy % (2 ** 32))


class EvolutionEngine:
    """
    Stepwise emergence engine.

    Args:
        parameters: Initial parameter snapshot (defaults if omitted)
        seed: RNG seed; generated and kept on the instance when omitted
        telemetry: Host-owned sink receiving throttled broadcasts
        mailbox: Shared memory channel to the agent layer
    """

    def __init__(
        self,
        parameters: Optional[SimParameters] = None,
        seed: Optional[int] = None,
        telemetry: Optional[TelemetrySink] = None,
        mailbox: Optional[SharedMemory] = None,
    ):
        self.parameters = parameters if parameters is not None else DEFAULT_PARAMETERS
        self.seed = seed if seed is not None else _new_seed()
        self.telemetry = telemetry if telemetry is not None else NullSink()
        self.mailbox = mailbox if mailbox is not None else SharedMemory()
        self.rng = np.random.default_rng(self.seed)
        self.world = self._fresh_world()
        self.initialize_entities()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _fresh_world(self) -> WorldState:
        params = self.parameters
        world = WorldState(
            parameters=params,
            mailbox=self.mailbox,
            rigidity=params.initial_rigidity,
            phase=classify_phase(params.initial_rigidity),
        )
        world.clocks.gamma = lorentz_factor(params.velocity)
        update_field(world)
        return world

    def _make_node(self, kind: NodeKind, position: np.ndarray, velocity: np.ndarray) -> Node:
        charge, color, base_energy = KIND_TABLE[kind]
        return Node(
            node_id=self.world.allocate_node_id(),
            kind=kind,
            charge=float(charge),
            color=color,
            base_energy=base_energy * (1.0 + 0.1 * float(gaussian(self.rng))),
            position=position,
            velocity=velocity,
            phase=float(self.rng.random()) * TWO_PI,
            frequency=NODE_FREQUENCY_MIN + float(self.rng.random()) * NODE_FREQUENCY_SPAN,
        )

    def _clear_entities(self) -> None:
        world = self.world
        world.nodes = []
        world.quarks = []
        world.atoms = []
        world.entangled = []
        world.collapse_events = []

    def initialize_entities(self) -> int:
        """
        Rebuild the node population from the current parameters.

        Clears every entity collection first. Ids keep counting up within
        the same world so they are never reused.

        Returns:
            Number of nodes created
        """
        self._clear_entities()
        params = self.parameters
        world = self.world
        count = node_count_for(params)
        three_d = is_3d(params)
        spread = 1.0 / math.sqrt(max(params.density, 1.0))

        for i in range(count):
            kind = KIND_ORDER[i % len(KIND_ORDER)]
            angle = TWO_PI * i / count + float(self.rng.random()) * INIT_ANGLE_JITTER
            radius = (INIT_RADIUS_MIN + float(self.rng.random()) * INIT_RADIUS_SPAN) * spread
            coords = [radius * math.cos(angle), radius * math.sin(angle)]
            if three_d:
                coords.append((float(self.rng.random()) - 0.5) * INIT_Z_JITTER)
            velocity = gaussian(self.rng, NODE_VELOCITY_SIGMA, size=len(coords))
            world.nodes.append(self._make_node(kind, np.array(coords), np.asarray(velocity, dtype=float)))

        world.statistics = measure_statistics(world)
        logger.debug("Initialized %d nodes (3d=%s)", count, three_d)
        return count

    def reset(self) -> None:
        """
        Discard the world and rebuild it from the current parameters.

        The RNG is reseeded, so metrics after reset() match a freshly
        constructed engine with the same parameters and seed.
        """
        self.rng = np.random.default_rng(self.seed)
        self.mailbox.clear_logs()
        self.world = self._fresh_world()
        self.initialize_entities()
        self.world.receipts.append(emit_receipt("reset", {
            "seed": self.seed,
            "node_count": len(self.world.nodes),
        }))
        logger.info("Engine reset: %d nodes", len(self.world.nodes))

    def start(self) -> None:
        self.world.running = True

    def pause(self) -> None:
        self.world.running = False

    @property
    def running(self) -> bool:
        return self.world.running

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    def update_parameters(self, patch: Mapping[str, Any]) -> frozenset:
        """
        Merge a partial patch into the parameter store.

        Population-changing fields rebuild the nodes only while paused;
        while running they take effect on the next reset(). Unknown keys
        are ignored.

        Returns:
            Names of the fields that changed
        """
        old = self.parameters
        new = apply_patch(old, patch)
        changed = changed_fields(old, new)
        if not changed:
            return changed

        self.parameters = new
        self.world.parameters = new
        self.world.clocks.gamma = lorentz_factor(new.velocity)
        update_field(self.world)
        self.world.receipts.append(emit_receipt("params_updated", {
            "changed": sorted(changed),
            "values": {name: getattr(new, name) for name in sorted(changed)},
        }))

        if changed & REINIT_FIELDS:
            if self.world.running:
                logger.info("Population change %s deferred until reset", sorted(changed & REINIT_FIELDS))
            else:
                self.initialize_entities()
        return changed

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def step(self, dt: float) -> bool:
        """
        Advance one tick.

        No-op while paused or for a non-positive / non-finite dt.

        Returns:
            True if the pipeline ran
        """
        world = self.world
        if not world.running:
            return False
        if isinstance(dt, bool) or not isinstance(dt, Real) or not math.isfinite(dt) or dt <= 0:
            logger.debug("Ignoring step with dt=%r", dt)
            return False

        params = self.parameters
        dt_eff = float(dt) * params.time_speed
        if not math.isfinite(dt_eff) or dt_eff < 0:
            dt_eff = 0.0

        for action in self.mailbox.drain_actions():
            self.mailbox.append_log(f"[t={world.time:.2f}] Agent action: {action}")

        world.time += dt_eff
        update_field(world)
        advance_nodes(world, dt_eff)
        run_formation(world, dt_eff, self.rng)
        advance_quarks(world, dt_eff, self.rng)
        advance_atoms(world, dt_eff)
        form_atoms(world)

        velocity = clamp_velocity(params.velocity)
        advance_clocks(world.clocks, velocity, dt_eff)
        advance_spaceship(world.spaceship, velocity, dt_eff)

        advance_phase(world, dt_eff)
        world.statistics = measure_statistics(world)
        world.collapse_events = [
            e for e in world.collapse_events if world.time - e.time <= COLLAPSE_EVENT_TTL
        ]
        self._broadcast()
        return True

    def _broadcast(self) -> None:
        world = self.world
        if world.last_broadcast is not None and world.time - world.last_broadcast < TELEMETRY_INTERVAL:
            return
        world.last_broadcast = world.time
        stats = world.statistics
        payload = {
            "time": world.time,
            "phase": world.phase.value,
            "gamma": world.clocks.gamma,
            "phi": stats.coherence,
            "score": stats.complexity,
        }
        try:
            self.telemetry.broadcast(payload)
        except Exception as exc:
            logger.warning("Telemetry sink failed at t=%.3f: %s", world.time, exc)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_metrics(self) -> Metrics:
        """Pure projection of the current world."""
        return project_metrics(self.world)

    def fingerprint(self) -> str:
        """Dual hash of every entity's kinematic state."""
        world = self.world
        state = {
            "time": world.time,
            "nodes": [[n.node_id, n.position.tolist(), n.velocity.tolist(), n.phase, n.collapsed] for n in world.nodes],
            "quarks": [[q.quark_id, q.quark_type.value, list(q.node_ids), q.position.tolist()] for q in world.quarks],
            "atoms": [[a.atom_id, a.atom_type.value, list(a.quark_ids)] for a in world.atoms],
            "entangled": [[p.node_a, p.node_b, p.strength] for p in world.entangled],
        }
        return dual_hash(canonical_json(state))

    # -------------------------------------------------------------------------
    # Placement hook
    # -------------------------------------------------------------------------

    def place_nodes(self, placements: Iterable[Placement]) -> None:
        """
        Replace the population with explicitly placed nodes.

        Each placement is (kind, position) or (kind, position, velocity);
        kind may be a NodeKind or its letter. Velocity defaults to zero.
        """
        self._clear_entities()
        for placement in placements:
            kind, position = placement[0], np.asarray(placement[1], dtype=float)
            velocity = (
                np.asarray(placement[2], dtype=float) if len(placement) > 2
                else np.zeros_like(position)
            )
            kind = kind if isinstance(kind, NodeKind) else NodeKind(str(kind).upper())
            self.world.nodes.append(self._make_node(kind, position.copy(), velocity.copy()))
        self.world.statistics = measure_statistics(self.world)


# =============================================================================
# BATCH RUNNER
# =============================================================================

def run_simulation(
    parameters: Optional[SimParameters] = None,
    ticks: int = 600,
    dt: float = 0.016,
    seed: Optional[int] = None,
    telemetry: Optional[TelemetrySink] = None,
    receipts_fh=None,
    trace_every: int = 1,
    progress: bool = False,
) -> RunResult:
    """
    Run an engine headless for a fixed number of ticks.

    Args:
        parameters: Parameter snapshot (defaults if omitted)
        ticks: Number of step() calls
        dt: Host tick length
        seed: RNG seed
        telemetry: Optional sink
        receipts_fh: Optional file handle; receipts are streamed as JSONL
        trace_every: Record metrics every N ticks (0 disables the trace)
        progress: Show a tqdm progress bar

    Returns:
        RunResult with final metrics, trace and invariant violations
    """
    engine = EvolutionEngine(parameters, seed=seed, telemetry=telemetry)
    engine.start()
    trace = []
    for tick in tqdm(range(ticks), desc="Simulating ticks", disable=not progress):
        engine.step(dt)
        if trace_every and (tick + 1) % trace_every == 0:
            trace.append({"tick": tick + 1, **engine.get_metrics().to_dict()})
    engine.pause()

    violations = validate_world(engine.world)
    receipts = list(engine.world.receipts)
    if receipts_fh is not None:
        for receipt in receipts:
            write_receipt_jsonl(receipt, receipts_fh)

    return RunResult(
        ticks=ticks,
        seed=engine.seed,
        final_metrics=engine.get_metrics(),
        trace=trace,
        violations=violations,
        receipts=receipts,
    )
