"""
abcsim/types_state.py - Entity Model and World State

Mutable entity records and the aggregate root owned by the engine.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .constants import (
    AtomType, NodeKind, Phase, QuarkType, RECEIPT_CAPACITY, SPACESHIP_START,
)
from .mailbox import SharedMemory
from .types_config import SimParameters


# =============================================================================
# ENTITIES
# =============================================================================

@dataclass
class Node:
    """Primordial particle.

    Once collapsed is set the node is frozen: kinematics, vibration and
    formation passes all skip it. Nodes are never removed individually.
    """
    node_id: int
    kind: NodeKind
    charge: float
    color: str
    base_energy: float
    position: np.ndarray
    velocity: np.ndarray
    phase: float = 0.0  # vibration angle, radians
    frequency: float = 1.0
    action: float = 0.0  # accumulated (kinetic - potential) * dt
    superposition: float = 0.0  # collapse pressure, collapses at 1.0
    collapsed: bool = False


@dataclass
class Quark:
    """Structure formed from three nodes."""
    quark_id: int
    quark_type: QuarkType
    charge: float
    node_ids: Tuple[int, int, int]
    position: np.ndarray
    velocity: np.ndarray
    color: str
    formed_at: float = 0.0


@dataclass
class Atom:
    """Structure formed from three quarks (proton or neutron pattern)."""
    atom_id: int
    atom_type: AtomType
    charge: float
    quark_ids: Tuple[int, int, int]
    position: np.ndarray
    velocity: np.ndarray
    formed_at: float = 0.0


@dataclass
class EntangledPair:
    """Two nodes sharing a decaying correlation."""
    node_a: int
    node_b: int
    strength: float = 1.0


@dataclass
class CollapseEvent:
    """Transient marker left where nodes collapsed. Expires after a TTL."""
    position: np.ndarray
    time: float
    source: str  # "quark" or "superposition"


# =============================================================================
# CLOCKS
# =============================================================================

@dataclass
class ClockState:
    """One relativistic clock."""
    elapsed: float = 0.0
    ticks: int = 0
    state: str = "A"


@dataclass
class Clocks:
    """Earth (proper) and rocket (dilated) clocks."""
    earth: ClockState = field(default_factory=ClockState)
    rocket: ClockState = field(default_factory=ClockState)
    gamma: float = 1.0


@dataclass
class Spaceship:
    """Decorative craft travelling at the velocity fraction."""
    x: float = SPACESHIP_START[0]
    y: float = SPACESHIP_START[1]


# =============================================================================
# STATISTICS
# =============================================================================

@dataclass
class Statistics:
    """Derived per-tick statistics. Overwritten every tick."""
    mean_energy: float = 0.0
    std_energy: float = 0.0
    entropy: float = 0.0
    complexity: float = 0.0
    entanglement_index: float = 0.0
    coherence: float = 0.0
    largest_cluster: int = 0


# =============================================================================
# WORLD STATE
# =============================================================================

@dataclass
class WorldState:
    """Aggregate root. Exactly one per engine; the engine is the sole writer."""
    parameters: SimParameters
    mailbox: SharedMemory = field(default_factory=SharedMemory)
    nodes: List[Node] = field(default_factory=list)
    quarks: List[Quark] = field(default_factory=list)
    atoms: List[Atom] = field(default_factory=list)
    entangled: List[EntangledPair] = field(default_factory=list)
    collapse_events: List[CollapseEvent] = field(default_factory=list)
    deformation: Optional[np.ndarray] = None
    statistics: Statistics = field(default_factory=Statistics)
    clocks: Clocks = field(default_factory=Clocks)
    spaceship: Spaceship = field(default_factory=Spaceship)
    time: float = 0.0
    running: bool = False
    rigidity: float = 10.0
    phase: Phase = Phase.PRIMORDIAL
    receipts: deque = field(default_factory=lambda: deque(maxlen=RECEIPT_CAPACITY))
    next_node_id: int = 0
    next_quark_id: int = 0
    next_atom_id: int = 0
    last_broadcast: Optional[float] = None

    def node_index(self) -> Dict[int, Node]:
        """Node lookup by id."""
        return {node.node_id: node for node in self.nodes}

    def active_nodes(self) -> List[Node]:
        """Nodes still eligible for kinematics and formation."""
        return [node for node in self.nodes if not node.collapsed]

    def allocate_node_id(self) -> int:
        node_id = self.next_node_id
        self.next_node_id += 1
        return node_id

    def allocate_quark_id(self) -> int:
        quark_id = self.next_quark_id
        self.next_quark_id += 1
        return quark_id

    def allocate_atom_id(self) -> int:
        atom_id = self.next_atom_id
        self.next_atom_id += 1
        return atom_id
