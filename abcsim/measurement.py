"""
abcsim/measurement.py - Statistics and Metrics Projection

Pure functions of WorldState. Callers may measure at any cadence without
affecting engine behavior. Every ratio is guarded so an empty world yields
zeros, never NaN or Infinity.
"""

import math

import networkx as nx
import numpy as np

from .constants import ENTROPY_EPSILON, SCALE_LABELS, AtomType
from .types_result import Metrics
from .types_state import Statistics, WorldState


def kinetic_energies(world: WorldState) -> np.ndarray:
    """0.5 * |v|^2 for every non-collapsed node; non-finite energies are dropped."""
    velocities = [n.velocity for n in world.nodes if not n.collapsed]
    if not velocities:
        return np.zeros(0)
    v = np.array(velocities, dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        energies = 0.5 * np.sum(v * v, axis=1)
    return energies[np.isfinite(energies)]


def largest_entangled_cluster(world: WorldState) -> int:
    """Size of the largest connected component of the entanglement graph."""
    if not world.entangled:
        return 0
    graph = nx.Graph()
    graph.add_edges_from((p.node_a, p.node_b) for p in world.entangled)
    return max(len(c) for c in nx.connected_components(graph))


def _safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def measure_statistics(world: WorldState) -> Statistics:
    """
    Derive the statistics record for the current world.

    Args:
        world: World to measure (not mutated)

    Returns:
        Fresh Statistics
    """
    energies = kinetic_energies(world)
    if energies.size:
        mean = float(np.mean(energies))
        std = float(np.std(energies))
    else:
        mean = std = 0.0

    node_count = len(world.nodes)
    structures = len(world.quarks) + len(world.atoms)
    coherence = float(np.mean([p.strength for p in world.entangled])) if world.entangled else 0.0

    return Statistics(
        mean_energy=mean,
        std_energy=std,
        entropy=math.log(std + ENTROPY_EPSILON),
        complexity=_safe_ratio(structures, node_count),
        entanglement_index=_safe_ratio(len(world.entangled), node_count),
        coherence=coherence,
        largest_cluster=largest_entangled_cluster(world),
    )


def scale_label(scale: int) -> str:
    """Label for a scale index, clamped into range."""
    return SCALE_LABELS[max(0, min(len(SCALE_LABELS) - 1, int(scale)))]


def project_metrics(world: WorldState) -> Metrics:
    """Read-only metrics snapshot built from the world's last statistics."""
    stats = world.statistics
    collapsed = sum(1 for n in world.nodes if n.collapsed)
    protons = sum(1 for a in world.atoms if a.atom_type is AtomType.PROTON)
    return Metrics(
        time=world.time,
        node_count=len(world.nodes),
        active_nodes=len(world.nodes) - collapsed,
        collapsed_nodes=collapsed,
        quark_count=len(world.quarks),
        atom_count=len(world.atoms),
        proton_count=protons,
        neutron_count=len(world.atoms) - protons,
        entangled_pairs=len(world.entangled),
        largest_cluster=stats.largest_cluster,
        collapse_events=len(world.collapse_events),
        mean_energy=stats.mean_energy,
        std_energy=stats.std_energy,
        entropy=stats.entropy,
        complexity=stats.complexity,
        entanglement_index=stats.entanglement_index,
        coherence=stats.coherence,
        phase=world.phase.value,
        rigidity=world.rigidity,
        gamma=world.clocks.gamma,
        earth_time=world.clocks.earth.elapsed,
        rocket_time=world.clocks.rocket.elapsed,
        earth_state=world.clocks.earth.state,
        rocket_state=world.clocks.rocket.state,
        scale_label=scale_label(world.parameters.scale),
    )
