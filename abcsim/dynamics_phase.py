"""
abcsim/dynamics_phase.py - Rigidity Decay and Phase Transitions

Rigidity decays exponentially toward zero. Its thresholds define the
phase sequence PRIMORDIAL -> HADRONIC -> ATOMIC -> MOLECULAR -> STELLAR -> COSMIC.
The phase only ever moves forward.
"""

import math
from typing import List

from .constants import PHASE_FLOORS, PHASE_ORDER, Phase
from .dynamics_formation import record_event
from .types_state import WorldState


def classify_phase(rigidity: float) -> Phase:
    """Phase for a rigidity value (first floor the value reaches)."""
    for phase, floor in PHASE_FLOORS:
        if rigidity >= floor:
            return phase
    return PHASE_ORDER[-1]


def decay_rigidity(rigidity: float, evolution_rate: float, dt: float) -> float:
    """rigidity * exp(-evolution_rate * dt); negative rates are treated as zero."""
    return rigidity * math.exp(-max(0.0, evolution_rate) * dt)


def advance_phase(world: WorldState, dt: float) -> List[Phase]:
    """
    Decay rigidity and step the phase forward.

    Each crossed threshold is logged exactly once, including several
    crossings inside one tick.

    Returns:
        Phases entered this tick, in order
    """
    world.rigidity = decay_rigidity(world.rigidity, world.parameters.evolution_rate, dt)
    target = classify_phase(world.rigidity)
    current = PHASE_ORDER.index(world.phase)
    goal = PHASE_ORDER.index(target)

    entered = []
    for index in range(current + 1, goal + 1):
        previous = world.phase
        world.phase = PHASE_ORDER[index]
        entered.append(world.phase)
        record_event(world, "phase_transition", f"Phase transition {previous.value} -> {world.phase.value}", {
            "from_phase": previous.value,
            "to_phase": world.phase.value,
            "rigidity": world.rigidity,
        })
    return entered
