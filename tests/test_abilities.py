"""Tests for the rule builder and ability sets.

Reference:
    - teamauth/features/permissions/rules.py
    - teamauth/features/permissions/abilities.py
"""

import pytest

from teamauth.features.permissions.abilities import (
    AbilityEngine,
    AbilitySet,
    Resource,
    has_resource_abilities,
    has_service_abilities,
    query_for_abilities,
)
from teamauth.features.permissions.rules import RuleBuilder, expand_operations


def build(*grants):
    """Build an ability set from (method, operations, types, conditions) tuples."""
    builder = RuleBuilder()
    for method, operations, types, conditions in grants:
        getattr(builder, method)(operations, types, conditions)
    return AbilitySet(builder.rules)


class TestExpandOperations:

    def test_all_expands_to_leaves(self):
        assert set(expand_operations("all")) == {"get", "find", "create", "patch", "delete"}

    def test_leaf_is_kept(self):
        assert expand_operations("service") == ("service",)

    def test_duplicates_are_dropped(self):
        assert expand_operations(["read", "get"]) == ("get", "find")


class TestAliases:

    @pytest.mark.parametrize("operation, leaves", [
        ("read", ["get", "find"]),
        ("update", ["patch"]),
        ("remove", ["delete"]),
        ("all", ["get", "find", "create", "patch", "delete"]),
    ])
    def test_alias_grants_its_leaves(self, operation, leaves):
        abilities = build(("can", operation, "groups", None))
        for leaf in leaves:
            assert abilities.can(leaf, "groups")

    def test_leaf_grants_alias_check(self):
        abilities = build(("can", "get", "groups", None))
        assert abilities.can("read", "groups")
        assert not abilities.can("find", "groups")

    def test_alias_on_all_type_matches_any_type(self):
        abilities = build(("can", "read", "all", None))
        assert abilities.can("get", "organisations")
        assert abilities.can("find", Resource("groups", {"_id": "g1"}))

    def test_all_type_matches_untyped_values(self):
        abilities = build(("can", "read", "all", None))
        assert abilities.can("read", {"_id": "x"})
        assert not build(("can", "read", "groups", None)).can("read", {"_id": "x"})


class TestMatching:

    def test_default_is_deny(self):
        assert not build().can("read", "organisations")

    def test_conditions_on_instances(self):
        abilities = build(("can", "update", "organisations", {"_id": "o1"}))
        assert abilities.can("update", "organisations", {"_id": "o1"})
        assert not abilities.can("update", "organisations", {"_id": "o2"})
        assert abilities.can("update", Resource("organisations", {"_id": "o1", "name": "Acme"}))

    def test_type_level_check_ignores_conditions_of_grants(self):
        abilities = build(("can", "update", "organisations", {"_id": "o1"}))
        assert abilities.can("update", "organisations")

    def test_later_cannot_overrides_earlier_can(self):
        abilities = build(
            ("can", "read", "organisations", None),
            ("cannot", "read", "organisations", None),
        )
        assert not abilities.can("read", "organisations", {"_id": "o1"})

    def test_later_can_overrides_earlier_cannot(self):
        abilities = build(
            ("cannot", "read", "organisations", None),
            ("can", "read", "organisations", {"_id": "o1"}),
        )
        assert abilities.can("read", "organisations", {"_id": "o1"})
        assert not abilities.can("read", "organisations", {"_id": "o2"})

    def test_conditional_cannot_applies_to_matching_instances_only(self):
        abilities = build(
            ("can", "read", "organisations", None),
            ("cannot", "read", "organisations", {"_id": "o1"}),
        )
        assert not abilities.can("read", "organisations", {"_id": "o1"})
        assert abilities.can("read", "organisations", {"_id": "o2"})
        # Some instance remains readable
        assert abilities.can("read", "organisations")

    def test_conditions_match_list_fields(self):
        abilities = build(("can", "read", "tags", {"owners": "u1"}))
        assert abilities.can("read", "tags", {"owners": ["u1", "u2"]})
        assert not abilities.can("read", "tags", {"owners": ["u2"]})

    def test_conditions_support_operators(self):
        abilities = build(("can", "read", "storage", {"size": {"$in": [1, 2]}, "key": {"$ne": "secret"}}))
        assert abilities.can("read", "storage", {"size": 1, "key": "public"})
        assert not abilities.can("read", "storage", {"size": 1, "key": "secret"})
        assert not abilities.can("read", "storage", {"size": 3, "key": "public"})

    def test_rules_for_lists_most_recent_first(self):
        abilities = build(
            ("can", "read", "groups", {"_id": "g1"}),
            ("can", "read", "groups", {"_id": "g2"}),
            ("can", "create", "groups", None),
        )
        rules = abilities.rules_for("read", "groups")
        assert [rule.conditions for rule in rules] == [{"_id": "g2"}, {"_id": "g1"}]


class TestAbilityEngine:

    def test_hooks_run_in_order(self):
        def grant(subject, can, cannot):
            can("read", "organisations")

        def deny(subject, can, cannot):
            cannot("read", "organisations")

        assert not AbilityEngine([grant, deny]).compute_abilities(None).can("read", "organisations")
        assert AbilityEngine([deny, grant]).compute_abilities(None).can("read", "organisations")

    def test_registering_a_hook_twice_keeps_one(self):
        def grant(subject, can, cannot):
            can("read", "organisations")

        engine = AbilityEngine([grant])
        engine.register_hook(grant)
        assert engine.hooks == (grant,)
        assert len(engine.compute_abilities(None)) == 1

    def test_unregister_hook(self):
        def grant(subject, can, cannot):
            can("read", "organisations")

        engine = AbilityEngine([grant])
        engine.unregister_hook(grant)
        assert len(engine.compute_abilities(None)) == 0

    def test_hooks_receive_the_subject(self):
        seen = []

        def record(subject, can, cannot):
            seen.append(subject)

        AbilityEngine([record]).compute_abilities("subject")
        assert seen == ["subject"]


class TestHelpers:

    def test_missing_abilities_deny_everything(self):
        assert not has_service_abilities(None, "organisations")
        assert not has_resource_abilities(None, "read", "organisations")

    def test_missing_abilities_query_everything(self):
        assert query_for_abilities(None, "read", "organisations") == {}

    def test_service_is_checked_by_path(self):
        abilities = build(("can", "service", "o1/groups", None))
        assert has_service_abilities(abilities, "o1/groups")
        assert not has_service_abilities(abilities, "o2/groups")

    def test_context_is_matched_but_not_stored(self):
        abilities = build(("can", "create", "groups", {"context": "o1"}))
        resource = {"name": "Team"}
        assert has_resource_abilities(abilities, "create", "groups", "o1", resource)
        assert not has_resource_abilities(abilities, "create", "groups", "o2", resource)
        assert "context" not in resource

    def test_query_drops_context(self):
        abilities = build(
            ("can", "read", "groups", {"_id": "g1", "context": "o1"}),
            ("can", "read", "groups", {"_id": "g2", "context": "o1"}),
        )
        assert query_for_abilities(abilities, "read", "groups") == {"$or": [{"_id": "g2"}, {"_id": "g1"}]}

    def test_query_is_none_when_nothing_is_allowed(self):
        abilities = build(("can", "read", "users", None))
        assert query_for_abilities(abilities, "read", "groups") is None

    def test_query_leaves_rules_untouched(self):
        abilities = build(("can", "read", "groups", {"_id": "g1", "context": "o1"}))
        query_for_abilities(abilities, "read", "groups")
        assert abilities.rules[0].conditions == {"_id": "g1", "context": "o1"}
