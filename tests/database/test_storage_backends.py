"""Tests for the storage backends.

Both backends run the same behaviour tests; SQL specifics follow at the end.
"""

import pytest

from admin_panel.errors import ConflictError, NotFoundError
from admin_panel.support.complaint_models import ComplaintStatus
from database import MemStorage
from database.sql_storage import DatabaseStorage
from rbac import UserRole


@pytest.fixture(params=["memory", "sqlite"])
def backend(request):
    if request.param == "memory":
        store = MemStorage()
    else:
        store = DatabaseStorage("sqlite://")
    yield store
    store.close()


@pytest.fixture
def alice(backend):
    return backend.create_user("alice", "hash-a", display_name="Alice")


@pytest.fixture
def staff(backend):
    return backend.create_user("helper", "hash-s", role=UserRole.SUPPORT)


class TestUsers:
    """User records."""

    def test_create_and_fetch(self, backend, alice):
        assert alice.id is not None
        assert alice.role == UserRole.USER
        assert backend.get_user(alice.id).display_name == "Alice"
        assert backend.get_user_by_username("alice").id == alice.id
        assert backend.get_user_by_username("nobody") is None

    def test_duplicate_username(self, backend, alice):
        with pytest.raises(ConflictError):
            backend.create_user("alice", "hash")

    def test_update_fields(self, backend, alice):
        updated = backend.update_user(alice.id, avatar_url="http://x/a.png", password_hash="new-hash")
        assert updated.avatar_url == "http://x/a.png"
        assert backend.get_user(alice.id).password_hash == "new-hash"

    def test_update_unknown_field(self, backend, alice):
        with pytest.raises(ValueError):
            backend.update_user(alice.id, username="mallory")

    def test_update_missing_user(self, backend):
        with pytest.raises(NotFoundError):
            backend.update_user(404, display_name="x")

    def test_role_and_flags(self, backend, alice):
        backend.update_user_role(alice.id, UserRole.MODERATOR)
        backend.update_user_status(alice.id, is_premium=True, is_blocked=None)
        backend.verify_user(alice.id)

        user = backend.get_user(alice.id)
        assert user.role == UserRole.MODERATOR
        assert user.is_premium and user.is_verified and not user.is_blocked

    def test_staff_listing(self, backend, alice, staff):
        assert [u.username for u in backend.get_staff_users()] == ["helper"]
        assert len(backend.get_all_users()) == 2

    def test_delete(self, backend, alice):
        backend.delete_user(alice.id)
        assert backend.get_user(alice.id) is None

    def test_delete_removes_sessions(self, backend, alice):
        session = backend.create_session(alice.id)
        backend.delete_user(alice.id)

        assert backend.get_session(session.id) is None
        assert backend.get_user_sessions(alice.id) == []

    def test_delete_keeps_complaints(self, backend, alice, staff):
        """Complaints and messages outlive their author, assignee and target."""
        complaint = backend.create_complaint(alice.id, "a", "b")
        complaint.assign(alice.id)
        backend.save_complaint(complaint)
        against = backend.create_complaint(staff.id, "c", "d", target_user_id=alice.id)
        backend.create_complaint_message(complaint.id, alice.id, "hi")

        backend.delete_user(alice.id)

        stored = backend.get_complaint(complaint.id)
        assert stored.user_id is None
        assert stored.assigned_to_id is None
        assert backend.get_complaint(against.id).target_user_id is None
        assert backend.get_complaint_messages(complaint.id)[0].user_id is None

    def test_delete_missing_is_ignored(self, backend):
        backend.delete_user(404)

    def test_returned_copies_are_detached(self, backend, alice):
        fetched = backend.get_user(alice.id)
        fetched.display_name = "changed"
        assert backend.get_user(alice.id).display_name == "Alice"


class TestSessions:
    """Login session records."""

    def test_lifecycle(self, backend, alice):
        first = backend.create_session(alice.id)
        second = backend.create_session(alice.id)
        assert first.is_active

        ended = backend.end_session(first.id)
        assert not ended.is_active
        assert ended.end_time is not None

        assert [s.id for s in backend.get_active_sessions()] == [second.id]
        assert [s.id for s in backend.get_expired_sessions()] == [first.id]
        assert len(backend.get_user_sessions(alice.id)) == 2

    def test_end_user_sessions(self, backend, alice):
        backend.create_session(alice.id)
        backend.create_session(alice.id)
        assert backend.end_user_sessions(alice.id) == 2
        assert backend.end_user_sessions(alice.id) == 0

    def test_end_missing_session(self, backend):
        with pytest.raises(NotFoundError):
            backend.end_session(404)


class TestComplaints:
    """Complaint and message records."""

    def test_create_and_save(self, backend, alice, staff):
        complaint = backend.create_complaint(alice.id, "Spam", "Lots of spam")
        assert complaint.status == ComplaintStatus.PENDING

        complaint.assign(staff.id)
        backend.save_complaint(complaint)

        stored = backend.get_complaint(complaint.id)
        assert stored.status == ComplaintStatus.IN_PROGRESS
        assert stored.assigned_to_id == staff.id

    def test_queries(self, backend, alice, staff):
        own = backend.create_complaint(alice.id, "a", "b")
        assigned = backend.create_complaint(staff.id, "c", "d")
        assigned.assign(alice.id)
        backend.save_complaint(assigned)
        backend.create_complaint(staff.id, "e", "f")

        assert [c.id for c in backend.get_user_complaints(alice.id)] == [own.id, assigned.id]
        assert len(backend.get_all_complaints()) == 3
        assert len(backend.get_pending_complaints()) == 2

    def test_messages_in_order(self, backend, alice):
        complaint = backend.create_complaint(alice.id, "a", "b")
        backend.create_complaint_message(complaint.id, alice.id, "first", is_system_message=True)
        backend.create_complaint_message(complaint.id, alice.id, "second")

        messages = backend.get_complaint_messages(complaint.id)
        assert [m.message for m in messages] == ["first", "second"]
        assert [m.is_system_message for m in messages] == [True, False]


class TestDatabaseStorage:
    """Behaviour specific to the SQL backend."""

    def test_file_database_persists(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'data' / 'admin.db'}"
        store = DatabaseStorage(url)
        store.create_user("alice", "hash")
        store.close()

        reopened = DatabaseStorage(url)
        try:
            assert reopened.get_user_by_username("alice") is not None
        finally:
            reopened.close()
