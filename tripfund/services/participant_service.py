"""
PARTICIPANT SERVICE
===================

Participants are the people expected to pay into a trip.

total_paid and balance are computed on every read from the payment
rows, with the same reducers the trip report uses.
"""

from decimal import Decimal

import structlog
from sqlalchemy.orm import joinedload

from tripfund.extensions import db
from tripfund.models import Participant, Payment, money
from tripfund.services.authorization_service import Action, authorize
from tripfund.services.errors import NotFoundError, TripfundError
from tripfund.services.report_service import group_by, load_participants, sum_amounts
from tripfund.services.validation import (
    optional_id, optional_text, parse_amount, require_name
)

log = structlog.get_logger(__name__)


class ParticipantError(TripfundError):
    """Participant operation failed"""
    status_code = 500
    kind = 'participant_error'


def get_participant_or_404(participant_id):
    participant = db.session.get(Participant, participant_id)
    if not participant:
        raise NotFoundError("Participant not found")
    return participant


def participant_totals(participant, payments):
    """(total_paid, balance) for one participant, as Decimal."""
    total_paid = sum_amounts(payments)
    return total_paid, Decimal(participant.expected_amount) - total_paid


def _shape(participant, payments):
    total_paid, balance = participant_totals(participant, payments)
    data = participant.to_dict()
    data.update({
        'total_paid': money(total_paid),
        'balance': money(balance),
        'created_by_user': participant.created_by_user.to_summary()
        if participant.created_by_user else None,
        'updated_by_user': participant.updated_by_user.to_summary()
        if participant.updated_by_user else None,
    })
    return data


def _validated_fields(data, partial=False):
    fields = {}
    if not partial or 'name' in data:
        fields['name'] = require_name(data.get('name'))
    if not partial or 'phone' in data:
        fields['phone'] = optional_text(data.get('phone'), 'phone', max_length=20)
    if not partial or 'email' in data:
        fields['email'] = optional_text(data.get('email'), 'email', max_length=100)
    if not partial or 'expected_amount' in data:
        fields['expected_amount'] = parse_amount(
            data.get('expected_amount'), 'expected_amount',
            required=partial, default=Decimal('0')
        )
    return fields


# ============================================================
# CREATE
# ============================================================

def create_participant(user_id, data):
    """Add a participant to data['trip_id']. Owner/admin only."""
    trip_id = optional_id(data.get('trip_id'), 'trip_id')
    authorize(user_id, Action.MANAGE_PARTICIPANTS, trip_id=trip_id)

    participant = Participant(
        trip_id=trip_id,
        created_by=user_id,
        updated_by=user_id,
        **_validated_fields(data)
    )

    try:
        db.session.add(participant)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        log.error("participant_create_failed", trip_id=trip_id, exc_info=True)
        raise ParticipantError(f"Failed to create participant: {str(e)}")

    log.info("participant_created", participant_id=participant.id, trip_id=trip_id,
             user_id=user_id)
    return participant.to_dict()


# ============================================================
# READ
# ============================================================

def list_trip_participants(user_id, trip_id):
    """Participants of a trip with total_paid and balance."""
    authorize(user_id, Action.VIEW_PROJECT, trip_id=trip_id)

    participants = load_participants([trip_id])
    payments = Payment.query.filter(
        Payment.participant_id.in_([p.id for p in participants])
    ).all() if participants else []
    payments_by_participant = group_by(payments, 'participant_id')

    return [
        _shape(p, payments_by_participant.get(p.id, []))
        for p in participants
    ]


def get_participant(user_id, participant_id):
    """One participant with its payments (and who collected them)."""
    participant = get_participant_or_404(participant_id)
    authorize(user_id, Action.VIEW_PROJECT, trip_id=participant.trip_id)

    payments = Payment.query.options(
        joinedload(Payment.collector)
    ).filter_by(
        participant_id=participant_id
    ).order_by(Payment.payment_date.asc()).all()

    data = _shape(participant, payments)
    data['payments'] = [
        {**p.to_dict(), 'collector': p.collector.to_summary() if p.collector else None}
        for p in payments
    ]
    return data


# ============================================================
# UPDATE / DELETE
# ============================================================

def update_participant(user_id, participant_id, data):
    participant = get_participant_or_404(participant_id)
    authorize(user_id, Action.MANAGE_PARTICIPANTS, trip_id=participant.trip_id)

    for field, value in _validated_fields(data, partial=True).items():
        setattr(participant, field, value)
    participant.updated_by = user_id

    db.session.commit()
    log.info("participant_updated", participant_id=participant_id, user_id=user_id)
    return participant.to_dict()


def delete_participant(user_id, participant_id):
    """
    Delete a participant and, by cascade, all of its payments.
    No payment row is left pointing at a deleted participant.
    """
    participant = get_participant_or_404(participant_id)
    authorize(user_id, Action.MANAGE_PARTICIPANTS, trip_id=participant.trip_id)

    try:
        db.session.delete(participant)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        log.error("participant_delete_failed", participant_id=participant_id, exc_info=True)
        raise ParticipantError(f"Failed to delete participant: {str(e)}")

    log.info("participant_deleted", participant_id=participant_id, user_id=user_id)
    return True
