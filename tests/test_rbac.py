"""
Tests for role definitions and authorization rules.
"""

from types import SimpleNamespace

import pytest

from rbac import (
    ADMIN_ROLES,
    STAFF_ROLES,
    UserRole,
    can_close_complaint,
    can_modify_user,
    can_post_to_complaint,
    can_view_complaint,
    coerce_role,
    get_role_info,
    is_admin,
    is_owner,
    is_staff,
)


def person(user_id, role):
    return SimpleNamespace(id=user_id, role=role)


def complaint(author_id, assignee_id=None):
    return SimpleNamespace(user_id=author_id, assigned_to_id=assignee_id)


class TestRoles:
    """Tests for role sets and coercion."""

    def test_staff_roles(self):
        assert STAFF_ROLES == {UserRole.OWNER, UserRole.ADMIN, UserRole.MODERATOR, UserRole.SUPPORT}
        assert UserRole.USER not in STAFF_ROLES

    def test_admin_roles(self):
        assert ADMIN_ROLES == {UserRole.OWNER, UserRole.ADMIN}

    def test_coerce_role_accepts_lowercase(self):
        assert coerce_role("moderator") == UserRole.MODERATOR
        assert coerce_role(UserRole.ADMIN) is UserRole.ADMIN

    def test_coerce_role_rejects_unknown(self):
        with pytest.raises(ValueError):
            coerce_role("superuser")

    def test_role_info(self):
        info = get_role_info("owner")
        assert info.is_admin and info.is_staff
        assert not get_role_info(UserRole.USER).is_staff


class TestRolePredicates:
    """Tests for is_owner / is_admin / is_staff."""

    @pytest.mark.parametrize("role,owner,admin,staff", [
        (UserRole.OWNER, True, True, True),
        (UserRole.ADMIN, False, True, True),
        (UserRole.MODERATOR, False, False, True),
        (UserRole.SUPPORT, False, False, True),
        (UserRole.USER, False, False, False),
    ])
    def test_predicates(self, role, owner, admin, staff):
        assert is_owner(role) is owner
        assert is_admin(role) is admin
        assert is_staff(role) is staff

    def test_predicates_accept_users(self):
        assert is_staff(person(1, UserRole.SUPPORT))
        assert not is_staff(person(1, "nonsense"))
        assert not is_admin(None)


class TestCanModifyUser:
    """Tests for the role hierarchy."""

    def test_owner_modifies_everyone(self):
        owner = person(1, UserRole.OWNER)
        for role in UserRole:
            assert can_modify_user(owner, person(2, role))

    def test_admin_cannot_modify_owner(self):
        admin = person(1, UserRole.ADMIN)
        assert not can_modify_user(admin, person(2, UserRole.OWNER))
        assert can_modify_user(admin, person(3, UserRole.ADMIN))
        assert can_modify_user(admin, person(4, UserRole.USER))

    @pytest.mark.parametrize("role", [UserRole.MODERATOR, UserRole.SUPPORT, UserRole.USER])
    def test_non_admins_modify_nobody(self, role):
        assert not can_modify_user(person(1, role), person(2, UserRole.USER))


class TestComplaintRules:
    """Tests for complaint visibility and closing rules."""

    def test_view_rules(self):
        item = complaint(author_id=10, assignee_id=20)
        assert can_view_complaint(person(10, UserRole.USER), item)
        assert can_view_complaint(person(20, UserRole.USER), item)
        assert can_view_complaint(person(30, UserRole.SUPPORT), item)
        assert not can_view_complaint(person(30, UserRole.USER), item)

    def test_post_rules(self):
        item = complaint(author_id=10)
        assert can_post_to_complaint(person(10, UserRole.USER), item)
        assert can_post_to_complaint(person(99, UserRole.MODERATOR), item)
        assert not can_post_to_complaint(person(11, UserRole.USER), item)

    def test_unassigned_closable_by_any_staff(self):
        item = complaint(author_id=10)
        assert can_close_complaint(person(1, UserRole.SUPPORT), item)
        assert not can_close_complaint(person(10, UserRole.USER), item)

    def test_assigned_closable_by_assignee_or_admin(self):
        item = complaint(author_id=10, assignee_id=5)
        assert can_close_complaint(person(5, UserRole.SUPPORT), item)
        assert can_close_complaint(person(6, UserRole.ADMIN), item)
        assert not can_close_complaint(person(7, UserRole.MODERATOR), item)
