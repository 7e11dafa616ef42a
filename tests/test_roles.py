"""Tests for teamauth/features/permissions/roles.py."""

import pytest

from teamauth.features.permissions.roles import Role, role_name, role_of, role_value


class TestRoleConversions:

    @pytest.mark.parametrize("name", ["member", "manager", "owner"])
    def test_name_round_trip(self, name):
        assert role_name(role_value(name)) == name

    def test_roles_are_ordered(self):
        assert role_value("member") < role_value("manager") < role_value("owner")
        assert Role.owner >= Role.manager >= Role.member

    def test_unknown_name_is_rejected(self):
        with pytest.raises(ValueError):
            role_value("admin")

    def test_unknown_value_is_rejected(self):
        with pytest.raises(ValueError):
            role_name(7)

    def test_role_of_tolerates_unknown_permissions(self):
        assert role_of("manager") is Role.manager
        assert role_of(2) is Role.owner
        assert role_of("admin") is None
        assert role_of(None) is None
