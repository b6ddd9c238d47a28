"""
abcsim/dynamics_formation.py - Structure Formation Passes

Applies the formation rules to the world: node -> quark, quark -> atom,
entanglement, superposition build-up and collapse. Consumption decisions
come from the RULES registry; the finders themselves stay pure.
"""

import math
from typing import Any, Dict, List, Optional

import numpy as np

from .constants import (
    DECOHERENCE_RATE, ENTANGLEMENT_RATE, FORMATION_GATE_RATE,
    MIN_PAIR_STRENGTH, QUARK_COLORS, SUPERPOSITION_RATE,
)
from .formation_rules import Consumption, get_rule
from .receipts import emit_receipt
from .types_state import Atom, CollapseEvent, EntangledPair, Quark, WorldState


def gate_probability(rate: float, energy: float, dt: float) -> float:
    """Per-tick formation probability, linear in energy and dt, clamped to [0, 1]."""
    return min(1.0, max(0.0, rate * energy * dt))


def record_event(world: WorldState, receipt_type: str, message: str, data: Dict[str, Any]) -> dict:
    """
    Log line + notification + receipt for one domain event.

    Returns:
        The receipt appended to the world's ledger
    """
    world.mailbox.append_log(f"[t={world.time:.2f}] {message}")
    world.mailbox.notify(message)
    receipt = emit_receipt(receipt_type, {"sim_time": world.time, **data})
    world.receipts.append(receipt)
    return receipt


def _apply_consumption(nodes, consumption: Consumption) -> None:
    if consumption is Consumption.MARK_COLLAPSED:
        for node in nodes:
            node.collapsed = True


def _prune_pairs(world: WorldState) -> None:
    """Drop entangled pairs that lost a member to collapse."""
    nodes_by_id = world.node_index()
    world.entangled = [
        p for p in world.entangled
        if not nodes_by_id[p.node_a].collapsed and not nodes_by_id[p.node_b].collapsed
    ]


# =============================================================================
# QUARKS
# =============================================================================

def form_quark(world: WorldState, dt: float, rng: np.random.Generator) -> Optional[Quark]:
    """
    At most one quark per tick, gated by strong_energy * dt.

    The gate is drawn every tick so the random stream does not depend on
    whether candidates exist.
    """
    params = world.parameters
    p = gate_probability(FORMATION_GATE_RATE, params.strong_energy, dt)
    if rng.random() >= p:
        return None

    rule = get_rule("quark")
    match = rule["find"](world.nodes, params)
    if match is None:
        return None

    positions = np.array([n.position for n in match.nodes])
    velocities = np.array([n.velocity for n in match.nodes])
    quark_id = world.allocate_quark_id()
    quark = Quark(
        quark_id=quark_id,
        quark_type=match.quark_type,
        charge=match.charge,
        node_ids=tuple(n.node_id for n in match.nodes),
        position=positions.mean(axis=0),
        velocity=velocities.mean(axis=0),
        color=QUARK_COLORS[quark_id % len(QUARK_COLORS)],
        formed_at=world.time,
    )
    _apply_consumption(match.nodes, rule["consumption"])
    world.quarks.append(quark)
    world.collapse_events.append(CollapseEvent(quark.position.copy(), world.time, "quark"))
    record_event(world, "quark_formed", f"Quark {quark.quark_type.value} formed from nodes {list(quark.node_ids)}", {
        "quark_id": quark.quark_id,
        "quark_type": quark.quark_type.value,
        "charge": quark.charge,
        "node_ids": list(quark.node_ids),
        "position": quark.position.tolist(),
    })
    return quark


# =============================================================================
# ATOMS
# =============================================================================

def form_atoms(world: WorldState) -> List[Atom]:
    """
    Form atoms until no qualifying quark triple remains.

    Constituent quarks leave the active collection in the same pass.
    """
    rule = get_rule("atom")
    formed = []
    while True:
        match = rule["find"](world.quarks, world.parameters)
        if match is None:
            break
        atom = Atom(
            atom_id=world.allocate_atom_id(),
            atom_type=match.atom_type,
            charge=match.charge,
            quark_ids=tuple(q.quark_id for q in match.quarks),
            position=np.mean([q.position for q in match.quarks], axis=0),
            velocity=np.mean([q.velocity for q in match.quarks], axis=0),
            formed_at=world.time,
        )
        if rule["consumption"] is Consumption.REMOVE:
            consumed = set(atom.quark_ids)
            world.quarks = [q for q in world.quarks if q.quark_id not in consumed]
        world.atoms.append(atom)
        formed.append(atom)
        record_event(world, "atom_formed", f"Atom {atom.atom_type.value} formed from quarks {list(atom.quark_ids)}", {
            "atom_id": atom.atom_id,
            "atom_type": atom.atom_type.value,
            "charge": atom.charge,
            "quark_ids": list(atom.quark_ids),
        })
    return formed


# =============================================================================
# ENTANGLEMENT / SUPERPOSITION
# =============================================================================

def update_entanglement(world: WorldState, dt: float, rng: np.random.Generator) -> Optional[EntangledPair]:
    """Decay existing pairs, then maybe entangle one new pair (gated by weak_energy * dt)."""
    decay = math.exp(-DECOHERENCE_RATE * dt)
    for pair in world.entangled:
        pair.strength *= decay
    world.entangled = [p for p in world.entangled if p.strength >= MIN_PAIR_STRENGTH]
    _prune_pairs(world)

    p = gate_probability(ENTANGLEMENT_RATE, world.parameters.weak_energy, dt)
    if rng.random() >= p:
        return None
    found = get_rule("entanglement")["find"](world.nodes, world.entangled, world.parameters)
    if found is None:
        return None
    pair = EntangledPair(found[0].node_id, found[1].node_id)
    world.entangled.append(pair)
    return pair


def accumulate_superposition(world: WorldState, dt: float) -> None:
    """Entangled nodes build collapse pressure in proportion to pair strength."""
    nodes_by_id = world.node_index()
    for pair in world.entangled:
        for node_id in (pair.node_a, pair.node_b):
            node = nodes_by_id[node_id]
            if not node.collapsed:
                node.superposition += SUPERPOSITION_RATE * pair.strength * dt


def collapse_superpositions(world: WorldState) -> int:
    """
    Collapse every pair whose members both crossed the threshold.

    Both nodes freeze in place; no quark is built.

    Returns:
        Number of pairs collapsed
    """
    rule = get_rule("collapse")
    nodes_by_id = world.node_index()
    collapsed = 0
    while True:
        pair = rule["find"](world.entangled, nodes_by_id)
        if pair is None:
            break
        members = (nodes_by_id[pair.node_a], nodes_by_id[pair.node_b])
        _apply_consumption(members, rule["consumption"])
        world.entangled.remove(pair)
        midpoint = (members[0].position + members[1].position) / 2.0
        world.collapse_events.append(CollapseEvent(midpoint, world.time, "superposition"))
        record_event(world, "collapse", f"Wavefunction collapse of nodes {pair.node_a} and {pair.node_b}", {
            "node_ids": [pair.node_a, pair.node_b],
            "position": midpoint.tolist(),
        })
        collapsed += 1
    return collapsed


def run_formation(world: WorldState, dt: float, rng: np.random.Generator) -> None:
    """Entanglement, superposition collapse, then quark formation."""
    update_entanglement(world, dt, rng)
    accumulate_superposition(world, dt)
    collapse_superpositions(world)
    form_quark(world, dt, rng)
    _prune_pairs(world)
