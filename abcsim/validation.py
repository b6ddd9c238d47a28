"""
abcsim/validation.py - World Invariant Checks

Each check returns a list of violation dicts; an empty list means the
world is consistent.
"""

import math
from collections import Counter
from typing import Any, Dict, List

from .measurement import project_metrics
from .receipts import emit_receipt
from .types_state import WorldState


def _duplicates(ids) -> List[int]:
    return sorted(i for i, n in Counter(ids).items() if n > 1)


def check_unique_ids(world: WorldState) -> List[Dict[str, Any]]:
    """Entity ids must be unique within each collection."""
    violations = []
    for name, ids in (
        ("nodes", [n.node_id for n in world.nodes]),
        ("quarks", [q.quark_id for q in world.quarks]),
        ("atoms", [a.atom_id for a in world.atoms]),
    ):
        dupes = _duplicates(ids)
        if dupes:
            violations.append({"check": "unique_ids", "collection": name, "ids": dupes})
    return violations


def check_quark_constituents(world: WorldState) -> List[Dict[str, Any]]:
    """A node may belong to at most one active quark, and must be collapsed."""
    violations = []
    dupes = _duplicates(nid for q in world.quarks for nid in q.node_ids)
    if dupes:
        violations.append({"check": "shared_constituents", "node_ids": dupes})
    nodes_by_id = world.node_index()
    live = sorted(
        nid for q in world.quarks for nid in q.node_ids
        if nid in nodes_by_id and not nodes_by_id[nid].collapsed
    )
    if live:
        violations.append({"check": "unconsumed_constituents", "node_ids": live})
    return violations


def check_atom_consumption(world: WorldState) -> List[Dict[str, Any]]:
    """Quarks inside an atom must be gone from the active collection."""
    active = {q.quark_id for q in world.quarks}
    leaked = sorted(qid for a in world.atoms for qid in a.quark_ids if qid in active)
    if leaked:
        return [{"check": "atom_consumption", "quark_ids": leaked}]
    return []


def check_finite_metrics(world: WorldState) -> List[Dict[str, Any]]:
    """No metric may be NaN or infinite."""
    bad = sorted(k for k, v in project_metrics(world).numeric_values().items() if not math.isfinite(v))
    if bad:
        return [{"check": "finite_metrics", "fields": bad}]
    return []


def validate_world(world: WorldState) -> List[Dict[str, Any]]:
    """Run every invariant check."""
    violations: List[Dict[str, Any]] = []
    violations.extend(check_unique_ids(world))
    violations.extend(check_quark_constituents(world))
    violations.extend(check_atom_consumption(world))
    violations.extend(check_finite_metrics(world))
    return violations


def emit_validation_receipt(world: WorldState, violations: List[Dict[str, Any]]) -> dict:
    """Summarize a validation pass as a receipt."""
    return emit_receipt("validation", {
        "sim_time": world.time,
        "passed": not violations,
        "violation_count": len(violations),
        "checks": sorted({v["check"] for v in violations}),
    })
