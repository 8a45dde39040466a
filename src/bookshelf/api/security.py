"""
Role checks for mutating endpoints.

Callers present their roles in the ``X-Roles`` header (comma separated).
Authentication itself happens upstream of this service.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Optional

from fastapi import Depends, Header

from bookshelf.errors import PermissionDeniedError

logger = logging.getLogger(__name__)

ROLE_ADMIN = "ROLE_ADMIN"


@dataclass(frozen=True)
class Principal:
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def get_principal(x_roles: Optional[str] = Header(default=None)) -> Principal:
    """Build the caller's principal from the X-Roles header."""
    roles = frozenset(r.strip() for r in (x_roles or "").split(",") if r.strip())
    return Principal(roles=roles)


def require_role(role: str, message: str) -> Callable[..., Principal]:
    """
    Dependency factory rejecting callers without ``role``.

    Usage:
        @router.post("", dependencies=[Depends(require_role(ROLE_ADMIN, "..."))])
    """

    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if not principal.has_role(role):
            logger.warning(f"Denied request lacking {role}")
            raise PermissionDeniedError(message)
        return principal

    return dependency
