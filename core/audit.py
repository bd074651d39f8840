"""
core.audit
Hash-chained audit log.

Each entry carries:
- signature: HMAC of the canonical details with the acting agent's key
- previous_entry_hash: SHA-256 of the previous entry (None for the first one)

Editing, dropping or reordering entries breaks the chain; verify_audit_chain()
reports where.
"""

from __future__ import annotations

import hashlib
import json
import time
import uuid
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .identity import get_identity, sign_data, verify_signature
from .state import AgentIdentity, AuditLogEntry


def canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)


def entry_hash(entry: AuditLogEntry) -> str:
    return hashlib.sha256(canonical_json(asdict(entry)).encode("utf-8")).hexdigest()


def record_audit_entry(
    log: List[AuditLogEntry],
    identities: Mapping[str, AgentIdentity],
    agent_id: str,
    action: str,
    details: Dict[str, Any],
    *,
    now_ms: Optional[int] = None,
) -> Tuple[List[AuditLogEntry], Optional[AuditLogEntry]]:
    """Append a signed entry. Returns (new_log, entry).

    Unknown agents are skipped: (log copy, None).
    """
    agent = get_identity(identities, agent_id)
    if agent is None:
        return list(log), None

    prev_hash = entry_hash(log[-1]) if log else None
    entry = AuditLogEntry(
        id=str(uuid.uuid4()),
        timestamp=int(now_ms if now_ms is not None else time.time() * 1000),
        agent_id=agent.id,
        agent_name=agent.name,
        action=str(action),
        details=json.loads(canonical_json(details)),
        signature=sign_data(canonical_json(details), agent.signing_key),
        previous_entry_hash=prev_hash,
    )
    return [*log, entry], entry


def verify_audit_chain(log: List[AuditLogEntry], identities: Mapping[str, AgentIdentity]) -> Optional[int]:
    """Return index of the first broken entry, or None if the whole chain checks out."""
    prev: Optional[AuditLogEntry] = None
    for i, entry in enumerate(log):
        expected = entry_hash(prev) if prev is not None else None
        if entry.previous_entry_hash != expected:
            return i
        agent = get_identity(identities, entry.agent_id)
        if agent is None:
            return i
        if not verify_signature(canonical_json(entry.details), entry.signature, agent.signing_key):
            return i
        prev = entry
    return None
