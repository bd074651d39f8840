"""
core.identity
Agent identities: signing + role checks.

Signatures are HMAC-SHA256 over the payload with the agent's signing key.
Good enough to detect edits to an exported run; this is not key management.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Iterable, Mapping, Optional

from .state import AgentIdentity


def get_identity(identities: Mapping[str, AgentIdentity], agent_id: str) -> Optional[AgentIdentity]:
    return identities.get(str(agent_id))


def sign_data(data: str, signing_key: str) -> str:
    return hmac.new(str(signing_key).encode("utf-8"), str(data).encode("utf-8"), hashlib.sha256).hexdigest()


def verify_signature(data: str, signature: str, signing_key: str) -> bool:
    return hmac.compare_digest(sign_data(data, signing_key), str(signature))


def authorize_action(identities: Mapping[str, AgentIdentity], agent_id: str, required_roles: Iterable[str]) -> bool:
    agent = get_identity(identities, agent_id)
    if agent is None:
        return False
    return agent.role in set(required_roles)
