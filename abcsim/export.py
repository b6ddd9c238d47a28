"""
abcsim/export.py - Snapshot Export and Reports

Session snapshots are base64-encoded JSON documents:
    {version, timestamp, payload: {parameters, metrics, agent_state}, signature}
The signature is the dual hash of the canonical payload JSON.
"""

import base64
import binascii
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .constants import SNAPSHOT_VERSION
from .receipts import StopRule, canonical_json, dual_hash
from .types_config import DEFAULT_PARAMETERS, SimParameters, apply_patch
from .types_result import RunResult


def sign_payload(payload: Dict[str, Any]) -> str:
    return dual_hash(canonical_json(payload))


def export_snapshot(engine, agent_state: Optional[Dict[str, Any]] = None) -> str:
    """
    Serialize parameters, metrics and agent state to a portable blob.

    Args:
        engine: EvolutionEngine to snapshot (read only)
        agent_state: Extra agent-layer state; the mailbox contents are
            always included under "shared_memory"

    Returns:
        str: base64 text
    """
    agent = {"shared_memory": engine.mailbox.snapshot(), **(agent_state or {})}
    payload = {
        "parameters": engine.parameters.to_dict(),
        "metrics": engine.get_metrics().to_dict(),
        "agent_state": agent,
        "seed": engine.seed,
    }
    document = {
        "version": SNAPSHOT_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "payload": payload,
        "signature": sign_payload(payload),
    }
    return base64.b64encode(json.dumps(document).encode()).decode("ascii")


def load_snapshot(blob: str) -> Dict[str, Any]:
    """
    Decode and verify a snapshot.

    Raises:
        ValueError: If the blob is not base64 JSON or the version is unknown
        StopRule: If the signature does not match the payload
    """
    try:
        document = json.loads(base64.b64decode(blob.strip(), validate=True))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Snapshot is not valid base64 JSON: {e}")

    if not isinstance(document, dict) or "payload" not in document:
        raise ValueError("Snapshot is missing its payload")
    if document.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {document.get('version')!r}")

    expected = sign_payload(document["payload"])
    if document.get("signature") != expected:
        raise StopRule("Snapshot signature mismatch")
    return document


def parameters_from_snapshot(document: Dict[str, Any]) -> SimParameters:
    """Rebuild constructor-ready parameters from a verified snapshot."""
    return apply_patch(DEFAULT_PARAMETERS, document["payload"].get("parameters", {}))


def generate_report(result: RunResult) -> str:
    """
    Generate human-readable summary.

    Args:
        result: RunResult to summarize

    Returns:
        str: Report text
    """
    m = result.final_metrics
    lines = [
        "=== SIMULATION REPORT ===",
        f"Ticks: {result.ticks}",
        f"Seed: {result.seed}",
        f"Time: {m.time:.3f}",
        f"Phase: {m.phase} (rigidity {m.rigidity:.3f})",
        f"Nodes: {m.node_count} ({m.collapsed_nodes} collapsed)",
        f"Quarks: {m.quark_count}",
        f"Atoms: {m.atom_count} ({m.proton_count} p / {m.neutron_count} n)",
        f"Entangled pairs: {m.entangled_pairs}",
        f"Entropy: {m.entropy:.4f}",
        f"Complexity: {m.complexity:.4f}",
        f"Gamma: {m.gamma:.4f} (earth {m.earth_time:.3f} / rocket {m.rocket_time:.3f})",
        f"Violations: {len(result.violations)}",
        "",
        "Pass/Fail: " + ("PASS" if result.passed else "FAIL")
    ]

    return "\n".join(lines)
