"""
abcsim/formation_rules.py - Pluggable Formation Rules

Each rule is a pure function (candidate pool, parameters) -> Optional match.
Rules never mutate their inputs. What happens to the consumed inputs is a
separate decision recorded next to each rule in RULES.

Tie-break: when several candidates qualify in one pass, the first in
iteration order wins.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .constants import (
    ATOM_THRESHOLD, CHARGE_TOLERANCE, COLLAPSE_THRESHOLD, ENTANGLEMENT_RADIUS,
    KIND_TABLE, QUARK_CHARGE_BANDS, QUARK_PROXIMITY, AtomType, NodeKind,
    QuarkType,
)
from .types_config import SimParameters
from .types_state import EntangledPair, Node, Quark
from .vector import distance, pairwise_distances


class Consumption(Enum):
    """What a successful rule does to its inputs."""
    NONE = "none"  # inputs stay eligible
    MARK_COLLAPSED = "mark_collapsed"  # inputs stay in place but are frozen
    REMOVE = "remove"  # inputs leave their collection


@dataclass(frozen=True)
class QuarkMatch:
    nodes: Tuple[Node, Node, Node]
    quark_type: QuarkType
    charge: float


@dataclass(frozen=True)
class AtomMatch:
    quarks: Tuple[Quark, Quark, Quark]
    atom_type: AtomType
    charge: float


# =============================================================================
# CLASSIFICATION
# =============================================================================

def quark_charge(kinds: Sequence[NodeKind]) -> Fraction:
    """Exact summed charge of constituent kinds."""
    return sum((KIND_TABLE[k][0] for k in kinds), Fraction(0))


def classify_quark(kinds: Sequence[NodeKind]) -> QuarkType:
    """
    Quark type from summed constituent charge.

    Args:
        kinds: Constituent node kinds

    Returns:
        The first band within CHARGE_TOLERANCE, else UNKNOWN
    """
    charge = float(quark_charge(kinds))
    for quark_type, target in QUARK_CHARGE_BANDS:
        if abs(charge - target) < CHARGE_TOLERANCE:
            return quark_type
    return QuarkType.UNKNOWN


def classify_atom(quark_types: Sequence[QuarkType]) -> Optional[AtomType]:
    """2 up + 1 down -> proton, 1 up + 2 down -> neutron, else None."""
    if len(quark_types) != 3:
        return None
    counts = Counter(quark_types)
    if counts[QuarkType.UP] == 2 and counts[QuarkType.DOWN] == 1:
        return AtomType.PROTON
    if counts[QuarkType.UP] == 1 and counts[QuarkType.DOWN] == 2:
        return AtomType.NEUTRON
    return None


# =============================================================================
# RULES
# =============================================================================

def find_quark_triple(nodes: Sequence[Node], params: SimParameters) -> Optional[QuarkMatch]:
    """
    First mutually-close node triple that forms a classified quark.

    A triple qualifies when all three pairwise distances are below
    QUARK_PROXIMITY * radio_pi, it holds at least two distinct kinds, and
    its summed charge falls in a known band.
    """
    pool = [n for n in nodes if not n.collapsed]
    threshold = QUARK_PROXIMITY * params.radio_pi
    if len(pool) < 3 or threshold <= 0:
        return None

    close = pairwise_distances(np.array([n.position for n in pool])) < threshold
    for i in range(len(pool)):
        neighbors = np.flatnonzero(close[i, i + 1:]) + i + 1
        for a, j in enumerate(neighbors):
            for k in neighbors[a + 1:]:
                if not close[j, k]:
                    continue
                triple = (pool[i], pool[j], pool[k])
                kinds = [n.kind for n in triple]
                if len(set(kinds)) < 2:
                    continue
                quark_type = classify_quark(kinds)
                if quark_type is QuarkType.UNKNOWN:
                    continue
                return QuarkMatch(triple, quark_type, float(quark_charge(kinds)))
    return None


def find_atom_triple(quarks: Sequence[Quark], params: SimParameters) -> Optional[AtomMatch]:
    """Exhaustive i < j < k scan for a proton or neutron pattern within ATOM_THRESHOLD."""
    n = len(quarks)
    for i in range(n):
        for j in range(i + 1, n):
            if distance(quarks[i].position, quarks[j].position) >= ATOM_THRESHOLD:
                continue
            for k in range(j + 1, n):
                if distance(quarks[i].position, quarks[k].position) >= ATOM_THRESHOLD:
                    continue
                if distance(quarks[j].position, quarks[k].position) >= ATOM_THRESHOLD:
                    continue
                triple = (quarks[i], quarks[j], quarks[k])
                atom_type = classify_atom([q.quark_type for q in triple])
                if atom_type is None:
                    continue
                return AtomMatch(triple, atom_type, sum(q.charge for q in triple))
    return None


def find_entanglement_pair(
    nodes: Sequence[Node],
    pairs: Sequence[EntangledPair],
    params: SimParameters,
) -> Optional[Tuple[Node, Node]]:
    """Closest pair of free, non-collapsed nodes within ENTANGLEMENT_RADIUS * radio_pi."""
    paired = {p.node_a for p in pairs} | {p.node_b for p in pairs}
    pool = [n for n in nodes if not n.collapsed and n.node_id not in paired]
    radius = ENTANGLEMENT_RADIUS * params.radio_pi
    if len(pool) < 2 or radius <= 0:
        return None

    dist = pairwise_distances(np.array([n.position for n in pool]))
    np.fill_diagonal(dist, np.inf)
    flat = int(np.argmin(dist))
    i, j = divmod(flat, len(pool))
    if dist[i, j] >= radius:
        return None
    return (pool[min(i, j)], pool[max(i, j)])


def find_collapse_pair(
    pairs: Sequence[EntangledPair],
    nodes_by_id: Dict[int, Node],
) -> Optional[EntangledPair]:
    """First entangled pair whose members both reached COLLAPSE_THRESHOLD."""
    for pair in pairs:
        a = nodes_by_id.get(pair.node_a)
        b = nodes_by_id.get(pair.node_b)
        if a is None or b is None or a.collapsed or b.collapsed:
            continue
        if a.superposition >= COLLAPSE_THRESHOLD and b.superposition >= COLLAPSE_THRESHOLD:
            return pair
    return None


# -----------------------------------------------------------------------------
# RULES registry: maps rule name to its finder and consumption decision
# -----------------------------------------------------------------------------
RULES: Dict[str, Dict[str, Any]] = {
    "quark": {
        "find": find_quark_triple,
        "consumption": Consumption.MARK_COLLAPSED,
    },
    "atom": {
        "find": find_atom_triple,
        "consumption": Consumption.REMOVE,
    },
    "entanglement": {
        "find": find_entanglement_pair,
        "consumption": Consumption.NONE,
    },
    # Collapsed pairs freeze in place; no quark is built from a pair
    "collapse": {
        "find": find_collapse_pair,
        "consumption": Consumption.MARK_COLLAPSED,
    },
}


def get_rule(name: str) -> Dict[str, Any]:
    """
    Return the finder and consumption decision for a rule.

    Raises:
        KeyError: If rule name is not found in registry
    """
    if name not in RULES:
        raise KeyError(f"unknown formation rule: {name}")
    return RULES[name]


def list_rules() -> List[str]:
    """Registered rule names in registry order."""
    return list(RULES.keys())
