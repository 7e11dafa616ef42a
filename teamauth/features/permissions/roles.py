"""
Role hierarchy for organisation and group memberships.

Roles are totally ordered, a higher role holds every right of the lower ones.
There is no role below member: no authorisation means no access.
"""
import enum
from typing import Optional, Union


class Role(enum.IntEnum):
    member = 0
    manager = 1
    owner = 2


def role_value(name: str) -> int:
    """Return the rank of a role name, raise ValueError for unknown names."""
    try:
        return Role[name].value
    except KeyError:
        raise ValueError(f"Unknown role {name!r}") from None


def role_name(value: int) -> str:
    """Return the name of a role rank, raise ValueError for unknown ranks."""
    return Role(value).name


def role_of(permissions: Union[str, int, Role, None]) -> Optional[Role]:
    """Resolve a recorded permission into a Role, None when absent or unknown."""
    if permissions is None:
        return None
    if isinstance(permissions, Role):
        return permissions
    if isinstance(permissions, int):
        try:
            return Role(permissions)
        except ValueError:
            return None
    return Role.__members__.get(permissions)
