"""
Permission feature module.

Role-based abilities over organisations, groups and their nested services.
Rules are computed per subject by an ability engine running an ordered list
of hooks, then checked per service, per resource or turned into queries.
"""
from teamauth.features.permissions.abilities import (
    AbilityEngine,
    AbilitySet,
    Resource,
    has_resource_abilities,
    has_service_abilities,
    query_for_abilities,
)
from teamauth.features.permissions.policies import compute_abilities, create_ability_engine
from teamauth.features.permissions.roles import Role, role_name, role_value

__all__ = [
    "AbilityEngine",
    "AbilitySet",
    "Resource",
    "Role",
    "compute_abilities",
    "create_ability_engine",
    "has_resource_abilities",
    "has_service_abilities",
    "query_for_abilities",
    "role_name",
    "role_value",
]
