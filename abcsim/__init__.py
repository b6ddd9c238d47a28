"""
abcsim - ABC Emergence Simulator

Stepwise engine that advances primordial nodes through vibration,
clustering, quark formation, atom formation and statistics, with a
bounded mailbox for an external agent layer.
"""

# =============================================================================
# TYPES (Dataclasses)
# =============================================================================
from .types_config import (
    SimParameters,
    DEFAULT_PARAMETERS,
    PRESET_PLANCK_SOUP,
    PRESET_ATOMIC_FORMATION,
    PRESET_BLACK_HOLE,
    PRESET_LIGHT_SPEED_TEST,
    PRESET_QUANTUM_ENTANGLEMENT,
    PRESETS,
    REINIT_FIELDS,
    apply_patch,
    get_preset,
    node_count_for,
)
from .types_state import (
    Node,
    Quark,
    Atom,
    EntangledPair,
    CollapseEvent,
    Clocks,
    Statistics,
    WorldState,
)
from .types_result import Metrics, RunResult

# =============================================================================
# CONSTANTS
# =============================================================================
from .constants import (
    NodeKind,
    QuarkType,
    AtomType,
    Phase,
    KIND_TABLE,
    PHASE_FLOORS,
    SCALE_LABELS,
)

# =============================================================================
# CORE SIMULATION
# =============================================================================
from .engine import EvolutionEngine, run_simulation
from .mailbox import SharedMemory
from .telemetry import BroadcastHub, JsonlSink, MemorySink, NullSink, TelemetrySink

# =============================================================================
# FORMATION / MEASUREMENT
# =============================================================================
from .formation_rules import (
    classify_quark,
    classify_atom,
    find_quark_triple,
    find_atom_triple,
    get_rule,
    list_rules,
)
from .measurement import measure_statistics, project_metrics
from .dynamics_relativity import lorentz_factor
from .dynamics_phase import classify_phase
from .validation import validate_world

# =============================================================================
# EXPORT / AGENTS / RECEIPTS
# =============================================================================
from .export import export_snapshot, load_snapshot, parameters_from_snapshot, generate_report
from .agents import AGENT_PERSONAS, AgentRunner, AgentStatus, build_prompt
from .receipts import StopRule, dual_hash, emit_receipt, verify_receipt

__all__ = [
    # Types
    "SimParameters", "DEFAULT_PARAMETERS", "PRESET_PLANCK_SOUP",
    "PRESET_ATOMIC_FORMATION", "PRESET_BLACK_HOLE", "PRESET_LIGHT_SPEED_TEST",
    "PRESET_QUANTUM_ENTANGLEMENT", "PRESETS", "REINIT_FIELDS", "apply_patch",
    "get_preset", "node_count_for",
    "Node", "Quark", "Atom", "EntangledPair", "CollapseEvent", "Clocks",
    "Statistics", "WorldState", "Metrics", "RunResult",
    # Constants
    "NodeKind", "QuarkType", "AtomType", "Phase", "KIND_TABLE", "PHASE_FLOORS",
    "SCALE_LABELS",
    # Core
    "EvolutionEngine", "run_simulation", "SharedMemory",
    "BroadcastHub", "JsonlSink", "MemorySink", "NullSink", "TelemetrySink",
    # Formation / measurement
    "classify_quark", "classify_atom", "find_quark_triple", "find_atom_triple",
    "get_rule", "list_rules", "measure_statistics", "project_metrics",
    "lorentz_factor", "classify_phase", "validate_world",
    # Export / agents / receipts
    "export_snapshot", "load_snapshot", "parameters_from_snapshot",
    "generate_report", "AGENT_PERSONAS", "AgentRunner", "AgentStatus",
    "build_prompt", "StopRule", "dual_hash", "emit_receipt", "verify_receipt",
]
