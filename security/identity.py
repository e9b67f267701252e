from typing import FrozenSet, NamedTuple, Optional

USER = "USER"
ADMIN = "ADMIN"

KNOWN_ROLES = {USER, ADMIN}


class Identity(NamedTuple):
    """The caller as the booking engine sees it: an owner id and its roles."""

    owner_id: int
    email: Optional[str] = None
    roles: FrozenSet[str] = frozenset({USER})

    @property
    def is_admin(self) -> bool:
        return ADMIN in self.roles

    def has_role(self, role_name: str) -> bool:
        return role_name in self.roles


def identity_for(user) -> Optional[Identity]:
    if user is None:
        return None
    roles = frozenset(r.name for r in user.roles if r.name in KNOWN_ROLES)
    return Identity(owner_id=user.id, email=user.email, roles=roles)
