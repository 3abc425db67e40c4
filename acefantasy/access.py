"""
acefantasy/access.py - Role-based access control for the simulated contracts.

Capabilities are plain state: each role maps to the set of accounts holding
it, and each role has an admin role whose holders may grant and revoke it.
Role ids follow OpenZeppelin: keccak256 of the role name, with
DEFAULT_ADMIN_ROLE as 32 zero bytes.
"""

import logging

from eth_utils import keccak

from .chain import Contract, as_address, external
from .errors import AuthorizationError, MissingRole

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE = b"\x00" * 32


def role_id(name: str) -> bytes:
    return keccak(text=name)


class AccessControl(Contract):
    """Mixin giving a contract role storage plus grant/revoke entry points.

    Subclasses call ``_init_roles()`` in their constructor before granting.
    """

    def _init_roles(self) -> None:
        self._roles: dict[bytes, set[str]] = {}
        self._role_admins: dict[bytes, bytes] = {}

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def has_role(self, role: bytes, account) -> bool:
        return as_address(account) in self._roles.get(role, set())

    def get_role_admin(self, role: bytes) -> bytes:
        return self._role_admins.get(role, DEFAULT_ADMIN_ROLE)

    def role_members(self, role: bytes) -> list[str]:
        return sorted(self._roles.get(role, set()))

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @external
    def grant_role(self, role: bytes, account) -> None:
        self._check_role(self.get_role_admin(role))
        self._grant_role(role, account)

    @external
    def revoke_role(self, role: bytes, account) -> None:
        self._check_role(self.get_role_admin(role))
        self._revoke_role(role, account)

    @external
    def renounce_role(self, role: bytes, account) -> None:
        if as_address(account) != self.msg.sender:
            raise AuthorizationError("AccessControl: can only renounce roles for self")
        self._revoke_role(role, account)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_role(self, role: bytes, account=None) -> None:
        account = as_address(account) if account is not None else self.msg.sender
        if not self.has_role(role, account):
            raise MissingRole(account, role)

    def _grant_role(self, role: bytes, account) -> None:
        account = as_address(account)
        members = self._roles.setdefault(role, set())
        if account in members:
            return
        members.add(account)
        self.emit("RoleGranted", role=role, account=account, sender=self.msg.sender)
        logger.debug(f"{self!r}: granted 0x{role.hex()[:8]} to {account}")

    def _revoke_role(self, role: bytes, account) -> None:
        account = as_address(account)
        members = self._roles.get(role, set())
        if account not in members:
            return
        members.discard(account)
        self.emit("RoleRevoked", role=role, account=account, sender=self.msg.sender)

    def _set_role_admin(self, role: bytes, admin_role: bytes) -> None:
        previous = self.get_role_admin(role)
        self._role_admins[role] = admin_role
        self.emit("RoleAdminChanged", role=role, previous_admin_role=previous, new_admin_role=admin_role)
