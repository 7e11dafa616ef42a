"""Tests for teamauth/features/permissions/policies.py.

Abilities granted by each role on organisations, groups and the services
nested in organisations.
"""

import pytest

from teamauth.features.permissions.abilities import (
    Resource,
    has_resource_abilities,
    has_service_abilities,
    query_for_abilities,
)
from teamauth.features.permissions.policies import compute_abilities, create_ability_engine
from teamauth.features.permissions.schemas import Membership, Subject


def subject_with(organisation_role=None, group_role=None) -> Subject:
    organisations = [Membership(id="o1", name="Acme", permissions=organisation_role)] if organisation_role else []
    groups = [Membership(id="g1", permissions=group_role, context="o1")] if group_role else []
    return Subject(id="u1", name="Alice", organisations=organisations, groups=groups)


ROLES = ["member", "manager", "owner"]


class TestAnonymous:

    def test_can_register_only(self):
        abilities = compute_abilities(None)
        assert has_service_abilities(abilities, "users")
        assert has_resource_abilities(abilities, "create", "users")
        assert not has_resource_abilities(abilities, "read", "users")
        assert not has_service_abilities(abilities, "organisations")


class TestUsers:

    def test_user_manages_own_profile_only(self):
        abilities = compute_abilities(subject_with())
        assert has_resource_abilities(abilities, "read", "users", resource={"_id": "u2"})
        assert has_resource_abilities(abilities, "update", "users", resource={"_id": "u1"})
        assert has_resource_abilities(abilities, "remove", "users", resource={"_id": "u1"})
        assert not has_resource_abilities(abilities, "update", "users", resource={"_id": "u2"})
        assert not has_resource_abilities(abilities, "remove", "users", resource={"_id": "u2"})

    def test_any_user_can_create_organisations(self):
        abilities = compute_abilities(subject_with())
        assert has_service_abilities(abilities, "organisations")
        assert has_resource_abilities(abilities, "create", "organisations")
        assert has_service_abilities(abilities, "authorisations")
        # No membership, nothing to read
        assert not abilities.can("read", "organisations")
        assert query_for_abilities(abilities, "read", "organisations") is None


class TestOrganisationRoles:

    @pytest.mark.parametrize("role, expected", [
        ("member", {"read"}),
        ("manager", {"read", "update"}),
        ("owner", {"read", "update", "remove"}),
    ])
    def test_rights_on_organisation(self, role, expected):
        abilities = compute_abilities(subject_with(role))
        organisation = Resource("organisations", {"_id": "o1"})
        granted = {operation for operation in ("read", "update", "remove") if abilities.can(operation, organisation)}
        assert granted == expected
        assert not abilities.can("read", Resource("organisations", {"_id": "o2"}))

    @pytest.mark.parametrize("role, allowed", [("member", False), ("manager", True), ("owner", True)])
    def test_authorisation_management(self, role, allowed):
        abilities = compute_abilities(subject_with(role))
        for operation in ("create", "remove"):
            assert has_resource_abilities(abilities, operation, "authorisations", resource={"resource": "o1"}) is allowed
            assert not has_resource_abilities(abilities, operation, "authorisations", resource={"resource": "o2"})

    @pytest.mark.parametrize("role", ROLES)
    def test_nested_services(self, role):
        abilities = compute_abilities(subject_with(role))
        for service in ("members", "groups", "tags", "storage"):
            assert has_service_abilities(abilities, f"o1/{service}")
            assert not has_service_abilities(abilities, f"o2/{service}")

    @pytest.mark.parametrize("operation, resource_type, threshold", [
        ("read", "members", "member"),
        ("update", "members", "member"),
        ("read", "tags", "member"),
        ("read", "storage", "member"),
        ("create", "groups", "manager"),
        ("create", "tags", "manager"),
        ("update", "tags", "manager"),
        ("remove", "tags", "manager"),
        ("create", "storage", "manager"),
        ("remove", "storage", "owner"),
    ])
    def test_nested_resources_thresholds(self, operation, resource_type, threshold):
        for role in ROLES:
            abilities = compute_abilities(subject_with(role))
            expected = ROLES.index(role) >= ROLES.index(threshold)
            assert has_resource_abilities(abilities, operation, resource_type, "o1", {"_id": "x"}) is expected
            assert not has_resource_abilities(abilities, operation, resource_type, "o2", {"_id": "x"})

    def test_unknown_role_grants_nothing(self):
        abilities = compute_abilities(subject_with("admin"))
        assert not has_service_abilities(abilities, "o1/groups")
        assert not abilities.can("read", Resource("organisations", {"_id": "o1"}))

    @pytest.mark.parametrize("lower, higher", [("member", "manager"), ("manager", "owner")])
    def test_higher_roles_keep_lower_rights(self, lower, higher):
        lower_abilities = compute_abilities(subject_with(lower))
        higher_abilities = compute_abilities(subject_with(higher))
        checks = [
            (operation, resource_type)
            for operation in ("read", "create", "update", "remove")
            for resource_type in ("members", "groups", "tags", "storage")
        ]
        for operation, resource_type in checks:
            if has_resource_abilities(lower_abilities, operation, resource_type, "o1", {"_id": "x"}):
                assert has_resource_abilities(higher_abilities, operation, resource_type, "o1", {"_id": "x"})


class TestGroupRoles:

    @pytest.mark.parametrize("role, expected", [
        ("member", {"read"}),
        ("manager", {"read", "update"}),
        ("owner", {"read", "update", "remove"}),
    ])
    def test_rights_on_group(self, role, expected):
        abilities = compute_abilities(subject_with("member", role))
        group = Resource("groups", {"_id": "g1"})
        granted = {operation for operation in ("read", "update", "remove") if abilities.can(operation, group)}
        assert granted == expected

    def test_group_listing_query(self):
        abilities = compute_abilities(subject_with("member", "member"))
        assert query_for_abilities(abilities, "read", "groups") == {"$or": [{"_id": "g1"}]}


class TestExtraHooks:

    def test_extra_hooks_run_after_defaults(self):
        def no_storage_removal(subject, can, cannot):
            cannot("remove", "storage")

        engine = create_ability_engine([no_storage_removal])
        abilities = engine.compute_abilities(subject_with("owner"))
        assert not has_resource_abilities(abilities, "remove", "storage", "o1", {"_id": "x"})
        assert has_resource_abilities(abilities, "create", "storage", "o1", {"_id": "x"})
