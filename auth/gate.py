"""
auth/gate.py -- Role-based allow/deny decisions over bearer tokens.

Two-level hierarchy: USER < ADMIN. A token is allowed when its role ranks at
or above the required role. Every validation failure (empty, malformed,
expired, forged) and every unknown role is a DENY -- the gate never raises.
"""

from __future__ import annotations

import logging
from enum import Enum

from auth.models import Role
from auth.tokens import TokenExtractor

_RANK: dict[str, int] = {
    Role.USER.value: 1,
    Role.ADMIN.value: 2,
}


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class RoleGate:
    def __init__(self, extractor: TokenExtractor, logger: logging.Logger | None = None) -> None:
        self._extractor = extractor
        self._log = logger or logging.getLogger("funkostore.auth.gate")

    def authorize(self, token: str, required_role: Role) -> Decision:
        role = self._extractor.extract_role(token)
        if role is None:
            return Decision.DENY
        rank = _RANK.get(role.upper())
        if rank is None:
            self._log.warning("Token carries unknown role %r", role)
            return Decision.DENY
        return Decision.ALLOW if rank >= _RANK[required_role.value] else Decision.DENY

    def allows(self, token: str, required_role: Role) -> bool:
        return self.authorize(token, required_role) is Decision.ALLOW
