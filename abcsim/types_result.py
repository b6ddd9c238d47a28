"""
abcsim/types_result.py - Metrics Snapshot and Run Result

Read-only projections handed to renderers, agents and batch callers.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class Metrics:
    """Per-tick metrics snapshot (immutable)."""
    time: float
    node_count: int
    active_nodes: int
    collapsed_nodes: int
    quark_count: int
    atom_count: int
    proton_count: int
    neutron_count: int
    entangled_pairs: int
    largest_cluster: int
    collapse_events: int
    mean_energy: float
    std_energy: float
    entropy: float
    complexity: float
    entanglement_index: float
    coherence: float
    phase: str
    rigidity: float
    gamma: float
    earth_time: float
    rocket_time: float
    earth_state: str
    rocket_state: str
    scale_label: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def numeric_values(self) -> Dict[str, float]:
        """Only the numeric fields, for finiteness checks."""
        return {k: v for k, v in asdict(self).items() if isinstance(v, (int, float))}


@dataclass(frozen=True)
class RunResult:
    """Batch run output (immutable)."""
    ticks: int
    seed: int
    final_metrics: Metrics
    trace: List[Dict[str, Any]] = field(default_factory=list)
    violations: List[Dict[str, Any]] = field(default_factory=list)
    receipts: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.violations
