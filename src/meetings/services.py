"""Business-logic / service functions for the meetings app.

Every lifecycle transition goes through these functions so the stored
``status`` / ``held_at`` / ``no_show`` combination always maps to exactly one
display state.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from django.db import transaction
from django.utils import timezone

from meetings.models import Assignment, Meeting
from performance.classifier import MeetingState, lifecycle_state
from performance.engine import meeting_record

logger = logging.getLogger("sdrtracker")


def _state(meeting: Meeting) -> MeetingState:
    return lifecycle_state(meeting_record(meeting))


# ---------------------------------------------------------------------------
# create_meeting
# ---------------------------------------------------------------------------

def create_meeting(
    *,
    agency,
    client,
    scheduled_at: datetime,
    sdr=None,
    booked_at: datetime | None = None,
    **details,
) -> Meeting:
    """Create a new PENDING meeting.

    Parameters
    ----------
    agency : agencies.Agency
    client : agencies.Client
    scheduled_at : datetime
        The calendar slot of the meeting.
    sdr : accounts.User, optional
        ``None`` for a direct meeting sourced outside the SDR pipeline.
    booked_at : datetime, optional
        Defaults to now.
    **details
        Contact fields (``contact_full_name``, ``company``, ``notes``...).

    Returns
    -------
    Meeting
    """
    if client.agency_id != agency.pk:
        raise ValueError("Le client n'appartient pas a cette agence.")
    if scheduled_at is None:
        raise ValueError("La date du rendez-vous est obligatoire.")

    # Lifecycle fields are never taken from the caller on creation.
    for field in ("status", "held_at", "confirmed_at", "no_show"):
        details.pop(field, None)

    meeting = Meeting.objects.create(
        agency=agency,
        client=client,
        sdr=sdr,
        scheduled_at=scheduled_at,
        booked_at=booked_at or timezone.now(),
        status=Meeting.Status.PENDING,
        held_at=None,
        no_show=False,
        **details,
    )
    logger.info(
        "Meeting %s created (pending) by %s for client %s",
        meeting.pk, sdr, client,
    )
    return meeting


# ---------------------------------------------------------------------------
# Confirmation
# ---------------------------------------------------------------------------

@transaction.atomic
def confirm_meeting(meeting: Meeting, confirmed_at: datetime | None = None) -> Meeting:
    if _state(meeting) is not MeetingState.PENDING:
        raise ValueError("Seul un rendez-vous en attente peut etre confirme.")

    meeting.status = Meeting.Status.CONFIRMED
    meeting.confirmed_at = confirmed_at or timezone.now()
    meeting.save(update_fields=["status", "confirmed_at", "updated_at"])
    logger.info("Meeting %s confirmed", meeting.pk)
    return meeting


@transaction.atomic
def unconfirm_meeting(meeting: Meeting) -> Meeting:
    """Clear ``confirmed_at`` and return the meeting to pending."""
    if _state(meeting) is not MeetingState.CONFIRMED:
        raise ValueError("Ce rendez-vous n'est pas confirme.")

    meeting.status = Meeting.Status.PENDING
    meeting.confirmed_at = None
    meeting.save(update_fields=["status", "confirmed_at", "updated_at"])
    logger.info("Meeting %s confirmation cleared", meeting.pk)
    return meeting


# ---------------------------------------------------------------------------
# Held / no-show
# ---------------------------------------------------------------------------

@transaction.atomic
def mark_meeting_held(meeting: Meeting, held_at: datetime | None = None) -> Meeting:
    """Mark a pending or confirmed meeting as held.

    A held meeting is always confirmed and never a no-show.
    """
    if _state(meeting) not in (MeetingState.PENDING, MeetingState.CONFIRMED):
        raise ValueError(
            "Seul un rendez-vous en attente ou confirme peut etre marque comme tenu."
        )

    now = timezone.now()
    meeting.held_at = held_at or now
    meeting.no_show = False
    meeting.status = Meeting.Status.CONFIRMED
    if meeting.confirmed_at is None:
        meeting.confirmed_at = meeting.held_at
    meeting.save(update_fields=["held_at", "no_show", "status", "confirmed_at", "updated_at"])
    logger.info("Meeting %s marked held at %s", meeting.pk, meeting.held_at)
    return meeting


@transaction.atomic
def clear_meeting_held(meeting: Meeting) -> Meeting:
    """Clear ``held_at``; the meeting falls back to confirmed."""
    if _state(meeting) is not MeetingState.HELD:
        raise ValueError("Ce rendez-vous n'est pas marque comme tenu.")

    meeting.held_at = None
    meeting.save(update_fields=["held_at", "updated_at"])
    logger.info("Meeting %s held date cleared", meeting.pk)
    return meeting


@transaction.atomic
def mark_meeting_no_show(meeting: Meeting) -> Meeting:
    if _state(meeting) not in (MeetingState.PENDING, MeetingState.CONFIRMED):
        raise ValueError(
            "Seul un rendez-vous en attente ou confirme peut etre marque comme absent."
        )

    meeting.no_show = True
    meeting.held_at = None
    meeting.save(update_fields=["no_show", "held_at", "updated_at"])
    logger.info("Meeting %s marked no-show", meeting.pk)
    return meeting


@transaction.atomic
def reset_meeting(meeting: Meeting) -> Meeting:
    """Manual reset from any state back to pending."""
    previous = _state(meeting)

    meeting.status = Meeting.Status.PENDING
    meeting.held_at = None
    meeting.confirmed_at = None
    meeting.no_show = False
    meeting.save(update_fields=["status", "held_at", "confirmed_at", "no_show", "updated_at"])
    logger.info("Meeting %s reset to pending (was %s)", meeting.pk, previous.value)
    return meeting


@transaction.atomic
def set_not_interested(meeting: Meeting, not_interested: bool = True) -> Meeting:
    """Toggle the orthogonal "no longer interested" flag."""
    meeting.no_longer_interested = not_interested
    meeting.save(update_fields=["no_longer_interested", "updated_at"])
    logger.info("Meeting %s no_longer_interested=%s", meeting.pk, not_interested)
    return meeting


@transaction.atomic
def review_icp(meeting: Meeting, status: str, reviewer=None, notes: str = "") -> Meeting:
    """Record the ICP qualification decision for a meeting."""
    if status not in Meeting.ICPStatus.values:
        raise ValueError(f"Statut ICP inconnu: {status}")

    meeting.icp_status = status
    meeting.icp_checked_at = timezone.now()
    meeting.icp_checked_by = reviewer
    meeting.icp_notes = notes
    meeting.save(update_fields=[
        "icp_status",
        "icp_checked_at",
        "icp_checked_by",
        "icp_notes",
        "updated_at",
    ])
    logger.info("Meeting %s ICP review: %s by %s", meeting.pk, status, reviewer)
    return meeting


@transaction.atomic
def delete_meeting(meeting: Meeting) -> None:
    """Permanently delete a meeting; it leaves every aggregate."""
    meeting_id = meeting.pk
    meeting.delete()
    logger.info("Meeting %s deleted", meeting_id)


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

@transaction.atomic
def upsert_assignment(
    *,
    agency,
    sdr,
    client,
    month: date,
    monthly_set_target: int | None = None,
    monthly_hold_target: int | None = None,
    is_active: bool = True,
) -> Assignment:
    """Create or update the (sdr, client, month) assignment; the latest write wins.

    Missing targets default to the client's monthly targets.
    """
    if client.agency_id != agency.pk:
        raise ValueError("Le client n'appartient pas a cette agence.")
    set_target = client.monthly_set_target if monthly_set_target is None else monthly_set_target
    hold_target = client.monthly_hold_target if monthly_hold_target is None else monthly_hold_target
    if set_target < 0 or hold_target < 0:
        raise ValueError("Les objectifs mensuels doivent etre positifs ou nuls.")

    assignment, created = Assignment.objects.update_or_create(
        sdr=sdr,
        client=client,
        month=month.replace(day=1),
        defaults={
            "agency": agency,
            "monthly_set_target": set_target,
            "monthly_hold_target": hold_target,
            "is_active": is_active,
        },
    )
    logger.info(
        "Assignment %s %s: sdr=%s client=%s month=%s set=%d hold=%d",
        assignment.pk,
        "created" if created else "updated",
        sdr, client, assignment.month, set_target, hold_target,
    )
    return assignment


@transaction.atomic
def deactivate_assignment(assignment: Assignment) -> Assignment:
    """Remove an assignment from quota totals while keeping its history."""
    assignment.is_active = False
    assignment.save(update_fields=["is_active", "updated_at"])
    logger.info("Assignment %s deactivated", assignment.pk)
    return assignment
