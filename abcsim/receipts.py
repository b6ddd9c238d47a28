"""
abcsim/receipts.py - Event Receipts

Every domain event in the engine (formation, collapse, phase transition,
reset, parameter change) is recorded as a receipt: an envelope of
receipt_type, ts, tenant_id and payload_hash wrapped around the event
payload. The payload hash is dual_hash (SHA256:BLAKE3) over canonical
JSON, so a receipt read back from a JSONL log can be re-verified.
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

import blake3
import numpy as np

from .constants import TENANT_ID

__all__ = [
    "dual_hash",
    "canonical_json",
    "emit_receipt",
    "verify_receipt",
    "write_receipt_jsonl",
    "StopRule",
    "ENVELOPE_FIELDS",
]

# Receipt fields outside the hashed payload
ENVELOPE_FIELDS = ("receipt_type", "ts", "tenant_id", "payload_hash")


class StopRule(Exception):
    """Raised when an integrity check fails. Never catch silently."""
    pass


def dual_hash(data: Union[bytes, str]) -> str:
    """
    SHA256:BLAKE3 digest pair.

    Returns:
        str: "sha256_hex:blake3_hex"
    """
    if isinstance(data, str):
        data = data.encode()
    return f"{hashlib.sha256(data).hexdigest()}:{blake3.blake3(data).hexdigest()}"


def _to_json(value: Any) -> Any:
    # Engine payloads carry numpy scalars and position vectors
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def canonical_json(data: Any) -> str:
    """Sorted-key, compact JSON; numpy values become plain numbers and lists."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=_to_json)


def emit_receipt(
    receipt_type: str,
    data: Mapping[str, Any],
    tenant_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a receipt for a domain event.

    The tenant comes from the argument, else a "tenant_id" key in data,
    else the engine tenant. It is part of the envelope, not the hashed
    payload.

    Args:
        receipt_type: Event name, e.g. "quark_formed"
        data: Event payload
        tenant_id: Explicit tenant override

    Returns:
        dict: Envelope fields followed by the payload fields
    """
    text = canonical_json({k: v for k, v in data.items() if k not in ENVELOPE_FIELDS})
    return {
        "receipt_type": receipt_type,
        "ts": datetime.now(timezone.utc).isoformat(),
        "tenant_id": tenant_id or data.get("tenant_id") or TENANT_ID,
        "payload_hash": dual_hash(text),
        **json.loads(text),
    }


def verify_receipt(receipt: Mapping[str, Any]) -> bool:
    """True if payload_hash matches the receipt's non-envelope fields."""
    payload = {k: v for k, v in receipt.items() if k not in ENVELOPE_FIELDS}
    return receipt.get("payload_hash") == dual_hash(canonical_json(payload))


def write_receipt_jsonl(receipt: Mapping[str, Any], fh) -> None:
    """Append a receipt as one JSON line to an open text handle."""
    fh.write(canonical_json(receipt) + "\n")
