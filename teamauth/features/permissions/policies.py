"""
Default ability hooks.

Every hook receives the subject (or None) with the `can` and `cannot`
builders. Rules for organisations and groups share the same per-resource
template, organisations add rights on their nested services.
"""
from typing import Callable, Iterable, Optional

from teamauth.features.permissions.abilities import AbilityEngine, AbilityHook, AbilitySet
from teamauth.features.permissions.roles import Role, role_of
from teamauth.features.permissions.schemas import Membership, Subject


def define_resource_rules(subject: Optional[Subject], resource: Membership, resource_service: str, can: Callable) -> None:
    """
    Grant rights on a resource according to the role held on it.

    - member: read the resource
    - manager: update it and manage authorisations on it
    - owner: remove it
    """
    role = role_of(resource.permissions)
    if role is None:
        return

    if role >= Role.member:
        can("read", resource_service, {"_id": resource.id})
    if role >= Role.manager:
        can("update", resource_service, {"_id": resource.id})
        can(["create", "remove"], "authorisations", {"resource": resource.id})
    if role >= Role.owner:
        can("remove", resource_service, {"_id": resource.id})


def define_user_abilities(subject: Optional[Subject], can: Callable, cannot: Callable) -> None:
    # Registration
    can("service", "users")
    can("create", "users")

    if subject:
        # Read user profiles for authorizing
        can("read", "users")
        # Update user profile and destroy it
        can(["update", "remove"], "users", {"_id": subject.id})


def define_organisation_abilities(subject: Optional[Subject], can: Callable, cannot: Callable) -> None:
    if not subject:
        return

    # Create new organisations
    can("service", "organisations")
    can("create", "organisations")
    can("service", "authorisations")

    for organisation in subject.organisations:
        define_resource_rules(subject, organisation, "organisations", can)

        role = role_of(organisation.permissions)
        if role is None:
            continue
        context = {"context": organisation.id}
        # Nested services are identified by their path, each organisation has its own
        if role >= Role.member:
            # Members reach the groups service to see their own groups, creating one needs manager
            for service in ("members", "groups", "tags", "storage"):
                can("service", f"{organisation.id}/{service}")
            can(["read", "update"], "members", context)
            can("read", "tags", context)
            can("read", "storage", context)
        if role >= Role.manager:
            can("create", "groups", context)
            can(["create", "update", "remove"], "tags", context)
            can("create", "storage", context)
        if role >= Role.owner:
            can("remove", "storage", context)


def define_group_abilities(subject: Optional[Subject], can: Callable, cannot: Callable) -> None:
    if not subject:
        return

    for group in subject.groups:
        define_resource_rules(subject, group, "groups", can)


DEFAULT_HOOKS = (
    define_user_abilities,
    define_organisation_abilities,
    define_group_abilities,
)


def create_ability_engine(extra_hooks: Iterable[AbilityHook] = ()) -> AbilityEngine:
    """Build an engine running the default hooks followed by `extra_hooks`."""
    return AbilityEngine([*DEFAULT_HOOKS, *extra_hooks])


def compute_abilities(subject: Optional[Subject], engine: Optional[AbilityEngine] = None) -> AbilitySet:
    return (engine or create_ability_engine()).compute_abilities(subject)
