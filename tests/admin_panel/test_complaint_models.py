"""
Tests for the complaint state machine.
"""

import pytest

from admin_panel.errors import ConflictError
from admin_panel.support.complaint_models import Complaint, ComplaintStatus


def new_complaint(**kwargs):
    return Complaint(id=1, user_id=10, title="Spam", description="Sends spam", **kwargs)


class TestComplaintLifecycle:

    def test_starts_pending(self):
        complaint = new_complaint()
        assert complaint.status == ComplaintStatus.PENDING
        assert complaint.assigned_to_id is None
        assert not complaint.is_closed

    def test_assign_moves_to_in_progress(self):
        complaint = new_complaint()
        complaint.assign(5)
        assert complaint.status == ComplaintStatus.IN_PROGRESS
        assert complaint.assigned_to_id == 5

    def test_reassign_while_in_progress(self):
        complaint = new_complaint()
        complaint.assign(5)
        complaint.assign(6)
        assert complaint.assigned_to_id == 6
        assert complaint.status == ComplaintStatus.IN_PROGRESS

    def test_resolve_requires_in_progress(self):
        complaint = new_complaint()
        with pytest.raises(ConflictError):
            complaint.resolve()

        complaint.assign(5)
        complaint.resolve()
        assert complaint.status == ComplaintStatus.RESOLVED
        assert complaint.resolved_at is not None
        assert complaint.is_closed

    @pytest.mark.parametrize("assign_first", [False, True])
    def test_reject_from_open_states(self, assign_first):
        complaint = new_complaint()
        if assign_first:
            complaint.assign(5)
        complaint.reject()
        assert complaint.status == ComplaintStatus.REJECTED
        assert complaint.resolved_at is not None

    @pytest.mark.parametrize("final", [ComplaintStatus.RESOLVED, ComplaintStatus.REJECTED])
    def test_terminal_states(self, final):
        complaint = new_complaint(status=final)
        for action in (lambda: complaint.assign(5), complaint.resolve, complaint.reject):
            with pytest.raises(ConflictError):
                action()
        assert complaint.status == final

    def test_to_dict(self):
        data = new_complaint(target_user_id=11).to_dict()
        assert data["status"] == "PENDING"
        assert data["target_user_id"] == 11
        assert data["resolved_at"] is None
