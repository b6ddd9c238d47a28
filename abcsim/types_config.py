"""
abcsim/types_config.py - Parameter Store and Presets

Immutable parameter snapshots for the engine. A patch produces a new
snapshot; the previous one is never mutated.
"""

import math
import warnings
from dataclasses import dataclass, fields, replace
from numbers import Real
from typing import Any, Dict, Mapping

from .constants import MAX_TRIADS, TRIAD_SIZE


@dataclass(frozen=True)
class SimParameters:
    """Engine parameters (immutable)."""
    scale: int = 0  # index into SCALE_LABELS
    n_abc: int = 100
    density: float = 1.0
    central_mass: float = 1.0
    time_speed: float = 1.0
    velocity: float = 0.8  # fraction of c for the relativistic clocks
    strong_energy: float = 1.0  # drives the quark formation gate
    weak_energy: float = 0.1  # drives the entanglement gate
    radio_pi: float = 1.0  # proximity radius multiplier
    evolution_rate: float = 0.05  # rigidity decay rate
    dimension_count: float = 2.0  # >= 3 builds a 3D world
    initial_rigidity: float = 10.0

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


FIELD_NAMES = frozenset(f.name for f in fields(SimParameters))
INT_FIELDS = frozenset({"scale", "n_abc"})

# Changing these rebuilds the node population (only while paused)
REINIT_FIELDS = frozenset({"n_abc", "density", "dimension_count"})

# Host UIs send camelCase knobs
PARAMETER_ALIASES = {
    "nABC": "n_abc",
    "centralMass": "central_mass",
    "timeSpeed": "time_speed",
    "strongEnergy": "strong_energy",
    "weakEnergy": "weak_energy",
    "radioPi": "radio_pi",
    "evolutionRate": "evolution_rate",
    "dimensionCount": "dimension_count",
    "initialRigidity": "initial_rigidity",
}


def canonical_key(key: str) -> str:
    """Map a camelCase alias to its field name; other keys pass through."""
    return PARAMETER_ALIASES.get(key, key)


def apply_patch(params: SimParameters, patch: Mapping[str, Any]) -> SimParameters:
    """
    Shallow-merge a partial patch over a parameter snapshot.

    Unknown keys are ignored. Non-numeric or non-finite values are ignored
    with a UserWarning. Never raises for patch content.

    Args:
        params: Current snapshot
        patch: Partial mapping of field name (or camelCase alias) to value

    Returns:
        New SimParameters with only the patched fields changed
    """
    updates: Dict[str, Any] = {}
    for raw_key, value in patch.items():
        key = canonical_key(str(raw_key))
        if key not in FIELD_NAMES:
            continue
        if isinstance(value, bool) or not isinstance(value, Real):
            warnings.warn(f"SimParameters: ignoring non-numeric {key}={value!r}", UserWarning, stacklevel=2)
            continue
        if not math.isfinite(value):
            warnings.warn(f"SimParameters: ignoring non-finite {key}={value!r}", UserWarning, stacklevel=2)
            continue
        updates[key] = int(value) if key in INT_FIELDS else float(value)

    if not updates:
        return params
    return replace(params, **updates)


def changed_fields(old: SimParameters, new: SimParameters) -> frozenset:
    """Names of fields whose values differ between two snapshots."""
    return frozenset(name for name in FIELD_NAMES if getattr(old, name) != getattr(new, name))


def node_count_for(params: SimParameters) -> int:
    """
    Deterministic node population for a snapshot.

    3 * min(MAX_TRIADS, floor(n_abc * density)); 0 for non-finite inputs
    or a non-positive product. Finite inputs whose product overflows to
    +inf hit the cap.
    """
    if not (math.isfinite(params.n_abc) and math.isfinite(params.density)):
        return 0
    triads = params.n_abc * params.density
    if triads <= 0:
        return 0
    if math.isinf(triads):
        return TRIAD_SIZE * MAX_TRIADS
    return TRIAD_SIZE * min(MAX_TRIADS, int(math.floor(triads)))


def is_3d(params: SimParameters) -> bool:
    return params.dimension_count >= 3


# =============================================================================
# PRESETS
# =============================================================================

DEFAULT_PARAMETERS = SimParameters()

PRESET_PLANCK_SOUP = SimParameters(
    scale=0,
    n_abc=300,
    central_mass=0.0,
    time_speed=5.0,
    velocity=0.9,
    density=0.1,
    strong_energy=0.1,
    weak_energy=1.0,
    radio_pi=3.0,
    evolution_rate=0.2,
    dimension_count=3.0,
)

PRESET_ATOMIC_FORMATION = SimParameters(
    scale=1,
    n_abc=400,
    central_mass=0.0,
    time_speed=0.5,
    velocity=0.0,
    density=3.0,
    strong_energy=5.0,
    weak_energy=0.001,
    radio_pi=1.0,
    evolution_rate=0.01,
    dimension_count=3.0,
)

PRESET_BLACK_HOLE = SimParameters(
    scale=6,
    n_abc=500,
    central_mass=15.0,
    time_speed=0.2,
    velocity=0.0,
    density=5.0,
    strong_energy=10.0,
    weak_energy=0.001,
    radio_pi=0.2,
    evolution_rate=0.05,
    dimension_count=3.0,
)

PRESET_LIGHT_SPEED_TEST = SimParameters(
    scale=8,
    n_abc=150,
    central_mass=-2.0,
    time_speed=2.0,
    velocity=0.99,
    density=0.5,
    strong_energy=0.5,
    weak_energy=0.5,
    radio_pi=1.5,
    evolution_rate=0.1,
    dimension_count=3.0,
)

PRESET_QUANTUM_ENTANGLEMENT = SimParameters(
    scale=0,
    n_abc=200,
    central_mass=0.5,
    time_speed=1.0,
    velocity=0.0,
    density=2.0,
    strong_energy=2.0,
    weak_energy=2.0,
    radio_pi=2.5,
    evolution_rate=0.1,
    dimension_count=3.0,
)

PRESETS = {
    "default": DEFAULT_PARAMETERS,
    "planck_soup": PRESET_PLANCK_SOUP,
    "atomic_formation": PRESET_ATOMIC_FORMATION,
    "black_hole": PRESET_BLACK_HOLE,
    "light_speed_test": PRESET_LIGHT_SPEED_TEST,
    "quantum_entanglement": PRESET_QUANTUM_ENTANGLEMENT,
}


def get_preset(name: str) -> SimParameters:
    """
    Look up a preset by name.

    Raises:
        KeyError: If no preset has that name
    """
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: {name}. Available: {sorted(PRESETS)}")
    return PRESETS[name]
