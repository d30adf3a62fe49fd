from datetime import date, datetime, timezone

import pytest

import meetings.services as meeting_services
from meetings.models import Assignment, Meeting
from meetings.services import (
    clear_meeting_held,
    confirm_meeting,
    create_meeting,
    deactivate_assignment,
    delete_meeting,
    mark_meeting_held,
    mark_meeting_no_show,
    reset_meeting,
    review_icp,
    set_not_interested,
    unconfirm_meeting,
    upsert_assignment,
)
from performance.classifier import MeetingState, lifecycle_state
from performance.engine import meeting_record

SLOT = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


def _state(meeting):
    meeting.refresh_from_db()
    return lifecycle_state(meeting_record(meeting))


@pytest.fixture
def meeting(agency, client_company, sdr_user):
    return create_meeting(
        agency=agency,
        client=client_company,
        sdr=sdr_user,
        scheduled_at=SLOT,
        contact_full_name="Jane Prospect",
        company="Prospect Inc",
    )


@pytest.mark.django_db
class TestCreateMeeting:
    def test_new_meeting_is_pending(self, meeting):
        assert meeting.status == Meeting.Status.PENDING
        assert meeting.held_at is None
        assert meeting.no_show is False
        assert meeting.booked_at is not None
        assert _state(meeting) is MeetingState.PENDING

    def test_lifecycle_fields_are_ignored(self, agency, client_company, sdr_user):
        meeting = create_meeting(
            agency=agency,
            client=client_company,
            sdr=sdr_user,
            scheduled_at=SLOT,
            status="confirmed",
            held_at=SLOT,
            no_show=True,
        )
        assert _state(meeting) is MeetingState.PENDING

    def test_direct_meeting_without_sdr(self, agency, client_company):
        meeting = create_meeting(agency=agency, client=client_company, scheduled_at=SLOT)
        assert meeting.sdr is None

    def test_client_from_other_agency_rejected(self, other_agency, client_company):
        with pytest.raises(ValueError):
            create_meeting(agency=other_agency, client=client_company, scheduled_at=SLOT)


@pytest.mark.django_db
class TestTransitions:
    def test_confirm_then_unconfirm(self, meeting):
        confirm_meeting(meeting)
        assert _state(meeting) is MeetingState.CONFIRMED
        assert meeting.confirmed_at is not None

        unconfirm_meeting(meeting)
        assert _state(meeting) is MeetingState.PENDING
        assert meeting.confirmed_at is None

    def test_confirm_twice_rejected(self, meeting):
        confirm_meeting(meeting)
        with pytest.raises(ValueError):
            confirm_meeting(meeting)

    def test_held_from_pending_confirms(self, meeting):
        mark_meeting_held(meeting, held_at=SLOT)
        assert _state(meeting) is MeetingState.HELD
        assert meeting.status == Meeting.Status.CONFIRMED
        assert meeting.confirmed_at == SLOT

    def test_clear_held_returns_to_confirmed(self, meeting):
        mark_meeting_held(meeting)
        clear_meeting_held(meeting)
        assert _state(meeting) is MeetingState.CONFIRMED

    def test_clear_held_requires_held(self, meeting):
        with pytest.raises(ValueError):
            clear_meeting_held(meeting)

    def test_no_show_clears_held_at(self, meeting):
        confirm_meeting(meeting)
        mark_meeting_no_show(meeting)
        assert _state(meeting) is MeetingState.NO_SHOW
        assert meeting.held_at is None

    def test_held_meeting_cannot_become_no_show(self, meeting):
        mark_meeting_held(meeting)
        with pytest.raises(ValueError):
            mark_meeting_no_show(meeting)

    def test_no_show_cannot_be_held_without_reset(self, meeting):
        mark_meeting_no_show(meeting)
        with pytest.raises(ValueError):
            mark_meeting_held(meeting)

        reset_meeting(meeting)
        assert _state(meeting) is MeetingState.PENDING
        mark_meeting_held(meeting)
        assert _state(meeting) is MeetingState.HELD

    def test_not_interested_is_orthogonal(self, meeting):
        confirm_meeting(meeting)
        set_not_interested(meeting)
        assert _state(meeting) is MeetingState.CONFIRMED
        assert meeting.no_longer_interested is True

        set_not_interested(meeting, False)
        meeting.refresh_from_db()
        assert meeting.no_longer_interested is False


@pytest.mark.django_db
class TestIcpReview:
    def test_review_records_reviewer(self, meeting, manager_user):
        review_icp(meeting, Meeting.ICPStatus.NOT_QUALIFIED, reviewer=manager_user, notes="Trop petit")
        meeting.refresh_from_db()
        assert meeting.icp_status == "not_qualified"
        assert meeting.icp_checked_by == manager_user
        assert meeting.icp_checked_at is not None

    def test_unknown_status_rejected(self, meeting):
        with pytest.raises(ValueError):
            review_icp(meeting, "maybe")


@pytest.mark.django_db
def test_delete_meeting(meeting):
    pk = meeting.pk
    delete_meeting(meeting)
    assert not Meeting.objects.filter(pk=pk).exists()


@pytest.mark.django_db
class TestAssignments:
    def test_defaults_to_client_targets(self, agency, sdr_user, client_company):
        assignment = upsert_assignment(
            agency=agency, sdr=sdr_user, client=client_company, month=date(2026, 3, 17),
        )
        assert assignment.month == date(2026, 3, 1)
        assert assignment.monthly_set_target == 15
        assert assignment.monthly_hold_target == 10

    def test_latest_write_wins(self, agency, sdr_user, client_company):
        upsert_assignment(agency=agency, sdr=sdr_user, client=client_company, month=date(2026, 3, 1))
        upsert_assignment(
            agency=agency,
            sdr=sdr_user,
            client=client_company,
            month=date(2026, 3, 1),
            monthly_hold_target=4,
        )
        assignment = Assignment.objects.get(sdr=sdr_user, client=client_company)
        assert assignment.monthly_hold_target == 4

    def test_negative_target_rejected(self, agency, sdr_user, client_company):
        with pytest.raises(ValueError):
            upsert_assignment(
                agency=agency,
                sdr=sdr_user,
                client=client_company,
                month=date(2026, 3, 1),
                monthly_set_target=-1,
            )

    def test_deactivate(self, agency, sdr_user, client_company):
        assignment = upsert_assignment(
            agency=agency, sdr=sdr_user, client=client_company, month=date(2026, 3, 1),
        )
        deactivate_assignment(assignment)
        assignment.refresh_from_db()
        assert assignment.is_active is False


@pytest.mark.django_db
class TestServicesRollBack:
    @pytest.fixture
    def failing_log(self, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("log sink down")

        monkeypatch.setattr(meeting_services.logger, "info", fail)

    def test_icp_review_rolled_back(self, meeting, manager_user, failing_log):
        with pytest.raises(RuntimeError):
            review_icp(meeting, Meeting.ICPStatus.REJECTED, reviewer=manager_user)

        stored = Meeting.objects.get(pk=meeting.pk)
        assert stored.icp_status is None
        assert stored.icp_checked_by is None

    def test_not_interested_rolled_back(self, meeting, failing_log):
        with pytest.raises(RuntimeError):
            set_not_interested(meeting)

        assert Meeting.objects.get(pk=meeting.pk).no_longer_interested is False

    def test_delete_rolled_back(self, meeting, failing_log):
        with pytest.raises(RuntimeError):
            delete_meeting(meeting)

        assert Meeting.objects.filter(pk=meeting.pk).exists()

    @pytest.fixture
    def assignment(self, agency, sdr_user, client_company):
        return upsert_assignment(
            agency=agency, sdr=sdr_user, client=client_company, month=date(2026, 3, 1),
        )

    def test_deactivate_rolled_back(self, assignment, failing_log):
        with pytest.raises(RuntimeError):
            deactivate_assignment(assignment)

        assert Assignment.objects.get(pk=assignment.pk).is_active is True
