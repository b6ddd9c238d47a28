"""
abcsim/constants.py - Simulation Constants and Enums

All tunable constants for the ABC emergence engine. Centralized for tuning.
Formation gates and force scales are heuristics, not physical law.
"""

from enum import Enum
from fractions import Fraction

# =============================================================================
# NUMERICAL GUARDS
# =============================================================================

EPSILON = 1e-9  # Denominator guard for normalization and ratios
ENTROPY_EPSILON = 1e-4  # entropy = log(std + ENTROPY_EPSILON)
ACTION_SOFTENING = 0.01  # r + softening in the potential term

# =============================================================================
# POPULATION
# =============================================================================

TRIAD_SIZE = 3  # Nodes created per unit of n_abc * density
MAX_TRIADS = 500  # Hard cap, keeps the cubic formation scan small-N
INIT_RADIUS_MIN = 0.2
INIT_RADIUS_SPAN = 0.5  # radius in [MIN, MIN + SPAN)
INIT_ANGLE_JITTER = 0.5  # radians
INIT_Z_JITTER = 0.1  # z spread for 3D worlds
NODE_VELOCITY_SIGMA = 0.3  # domain units per time unit
NODE_FREQUENCY_MIN = 1.0
NODE_FREQUENCY_SPAN = 2.0
PLANCK_ENERGY = 1.9561e9  # Base energy of kind A

# =============================================================================
# FIELD / KINEMATICS
# =============================================================================

GRID_RESOLUTION = 20  # Deformation grid is (GRID_RESOLUTION + 1) square
GRID_EXTENT = 1.0  # Grid spans [-GRID_EXTENT, GRID_EXTENT]
DEFORMATION_SCALE = 0.1  # deform = central_mass * scale / (r + offset)
DEFORMATION_OFFSET = 0.1
VIBRATION_SCALE = 10.0  # phase += frequency * dt * VIBRATION_SCALE
GRAVITY_SCALE = 0.03  # accel = central_mass * GRAVITY_SCALE / r^2
MIN_FORCE_RADIUS = 0.1  # No central force inside this radius
REFRACTION_BOUNDARY = 0.5  # Radius of the refractive circle
N_INSIDE = 1.5  # Refractive index inside the boundary
N_OUTSIDE = 1.0  # Refractive index outside the boundary
DOMAIN_EXTENT = 1.0  # Walls at |x| = DOMAIN_EXTENT on every axis
WALL_DAMPING = 0.9  # Velocity retained after a wall bounce
MAX_NODE_SPEED = 5.0  # Node speed cap after force integration

# =============================================================================
# FORMATION GATES (probability = min(1, rate * energy * dt))
# =============================================================================

QUARK_PROXIMITY = 0.15  # Multiplied by radio_pi
FORMATION_GATE_RATE = 5.0  # Scales strong_energy
ATOM_THRESHOLD = 0.2  # Pairwise quark distance for atom formation
CHARGE_TOLERANCE = 0.1  # Band half-width for quark classification

# =============================================================================
# QUARK MOTION
# =============================================================================

QUARK_CONFINEMENT_RADIUS = 0.3
QUARK_ATTRACTION = 0.05
QUARK_HARD_CORE = 0.02
QUARK_REPULSION = 0.5
QUARK_THERMAL_JITTER = 0.01  # Scaled by sqrt(dt)
QUARK_FRICTION = 1.25  # v *= max(0, 1 - friction * dt)
QUARK_BOUNDARY = 0.9

# =============================================================================
# ENTANGLEMENT / SUPERPOSITION
# =============================================================================

ENTANGLEMENT_RATE = 2.0  # Scales weak_energy
ENTANGLEMENT_RADIUS = 0.3  # Multiplied by radio_pi
DECOHERENCE_RATE = 0.1
MIN_PAIR_STRENGTH = 0.05  # Weaker pairs are dropped
SUPERPOSITION_RATE = 0.5
COLLAPSE_THRESHOLD = 1.0
COLLAPSE_EVENT_TTL = 1.0  # Simulation time before a collapse marker expires

# =============================================================================
# RELATIVITY
# =============================================================================

MAX_VELOCITY_FRACTION = 0.999
CLOCK_TICK_PERIOD = 1.0  # Clock time per discrete state tick
CLOCK_STATES = ("A", "B", "C")
SPACESHIP_START = (-0.9, 0.6)
SPACESHIP_SPEED_SCALE = 0.5  # x advances velocity * scale per time unit
SPACESHIP_WRAP = 1.2

# =============================================================================
# BOUNDED BUFFERS
# =============================================================================

LOG_CAPACITY = 50
ACTION_CAPACITY = 32
NOTIFICATION_CAPACITY = 8
AGENT_LOG_CAPACITY = 25
RECEIPT_CAPACITY = 500
TELEMETRY_INTERVAL = 0.2  # Simulation time between broadcasts

TENANT_ID = "abc_engine"
SNAPSHOT_VERSION = "3.0"

# =============================================================================
# KINDS
# =============================================================================


class NodeKind(Enum):
    """Primordial node kinds."""
    A = "A"
    B = "B"
    C = "C"


# kind -> (charge, color, base energy)
KIND_TABLE = {
    NodeKind.A: (Fraction(5, 9), "#ff4444", PLANCK_ENERGY),
    NodeKind.B: (Fraction(-4, 9), "#44ff44", PLANCK_ENERGY * 0.1),
    NodeKind.C: (Fraction(-1, 9), "#4488ff", PLANCK_ENERGY * 0.01),
}

KIND_ORDER = (NodeKind.A, NodeKind.B, NodeKind.C)


class QuarkType(Enum):
    """Quark classification from summed constituent charge."""
    UP = "up"
    DOWN = "down"
    STRANGE = "strange"
    UNKNOWN = "unknown"


# Target charge per classified type, checked in order
QUARK_CHARGE_BANDS = (
    (QuarkType.UP, 2 / 3),
    (QuarkType.DOWN, -1 / 3),
    (QuarkType.STRANGE, 0.0),
)

QUARK_COLORS = ("red", "green", "blue")


class AtomType(Enum):
    """Atom classification from quark type counts."""
    PROTON = "proton"
    NEUTRON = "neutron"


# =============================================================================
# PHASES (rigidity thresholds, descending)
# =============================================================================


class Phase(Enum):
    """Cosmic phase, ordered from hottest to coolest."""
    PRIMORDIAL = "PRIMORDIAL"
    HADRONIC = "HADRONIC"
    ATOMIC = "ATOMIC"
    MOLECULAR = "MOLECULAR"
    STELLAR = "STELLAR"
    COSMIC = "COSMIC"


# A phase holds while rigidity >= its floor
PHASE_FLOORS = (
    (Phase.PRIMORDIAL, 8.0),
    (Phase.HADRONIC, 4.0),
    (Phase.ATOMIC, 2.0),
    (Phase.MOLECULAR, 1.0),
    (Phase.STELLAR, 0.5),
    (Phase.COSMIC, float("-inf")),
)

PHASE_ORDER = tuple(phase for phase, _ in PHASE_FLOORS)

SCALE_LABELS = (
    "Planck",
    "Grid",
    "Atomic",
    "Molecular",
    "Micro",
    "Human",
    "Planetary",
    "Stellar",
    "Cosmic",
)
