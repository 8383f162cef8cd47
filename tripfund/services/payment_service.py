"""
PAYMENT SERVICE
===============

CRITICAL BUSINESS RULES:
1. payment.trip_id is ALWAYS copied from the participant, never from input
2. The collector of a new payment is the caller
3. Only the collector of record or an owner/admin may update/delete
4. Amounts must be positive with at most two decimal places
"""

import structlog
from sqlalchemy.orm import joinedload

from tripfund.extensions import db
from tripfund.models import Payment, money, utcnow
from tripfund.services.authorization_service import (
    Action, authorize, can_modify_payment, require_authorization
)
from tripfund.services.errors import NotFoundError, TripfundError, ValidationError
from tripfund.services.participant_service import get_participant_or_404
from tripfund.services.report_service import sum_amounts
from tripfund.services.validation import (
    optional_text, parse_amount, parse_datetime, require_id
)

log = structlog.get_logger(__name__)


class PaymentError(TripfundError):
    """Payment operation failed"""
    status_code = 500
    kind = 'payment_error'


def shape_payment(payment):
    data = payment.to_dict()
    data['collector'] = payment.collector.to_summary() if payment.collector else None
    data['participant'] = {
        'id': payment.participant.id,
        'name': payment.participant.name,
    } if payment.participant else None
    return data


def _load_payment(payment_id):
    payment = Payment.query.options(
        joinedload(Payment.collector),
        joinedload(Payment.participant),
    ).filter_by(id=payment_id).first()

    if not payment:
        raise NotFoundError("Payment not found")
    return payment


# ============================================================
# RECORD PAYMENT
# ============================================================

def create_payment(user_id, data):
    """
    Record a payment collected by user_id.

    data: participant_id, amount, optional payment_date and notes.
    Any trip_id in data is ignored.
    """
    participant_id = require_id(data.get('participant_id'), 'participant_id')

    participant = get_participant_or_404(participant_id)
    authorize(user_id, Action.RECORD_PAYMENT, trip_id=participant.trip_id)

    amount = parse_amount(data.get('amount'), 'amount', allow_zero=False)
    payment_date = parse_datetime(data.get('payment_date'), 'payment_date') or utcnow()
    notes = optional_text(data.get('notes'), 'notes')

    try:
        payment = Payment(
            participant_id=participant.id,
            trip_id=participant.trip_id,
            collector_id=user_id,
            amount=amount,
            payment_date=payment_date,
            notes=notes
        )
        db.session.add(payment)
        db.session.commit()

    except Exception as e:
        db.session.rollback()
        log.error("payment_create_failed", participant_id=participant_id, exc_info=True)
        raise PaymentError(f"Failed to record payment: {str(e)}")

    log.info("payment_recorded", payment_id=payment.id, participant_id=participant.id,
             trip_id=participant.trip_id, collector_id=user_id, amount=str(amount))
    return payment.to_dict()


# ============================================================
# READ
# ============================================================

def list_trip_payments(user_id, trip_id):
    authorize(user_id, Action.VIEW_PROJECT, trip_id=trip_id)

    payments = Payment.query.options(
        joinedload(Payment.collector),
        joinedload(Payment.participant),
    ).filter_by(trip_id=trip_id).order_by(Payment.payment_date.asc()).all()

    return [shape_payment(p) for p in payments]


def list_participant_payments(user_id, participant_id):
    """Payments of one participant plus their total."""
    participant = get_participant_or_404(participant_id)
    authorize(user_id, Action.VIEW_PROJECT, trip_id=participant.trip_id)

    payments = Payment.query.options(
        joinedload(Payment.collector),
        joinedload(Payment.participant),
    ).filter_by(participant_id=participant_id).order_by(Payment.payment_date.asc()).all()

    return {
        'payments': [shape_payment(p) for p in payments],
        'total': money(sum_amounts(payments)),
    }


def get_payment(user_id, payment_id):
    payment = _load_payment(payment_id)
    authorize(user_id, Action.VIEW_PROJECT, trip_id=payment.trip_id)
    return shape_payment(payment)


# ============================================================
# UPDATE / DELETE
# ============================================================

def update_payment(user_id, payment_id, data):
    payment = _load_payment(payment_id)
    access = authorize(user_id, Action.EDIT_PAYMENT, trip_id=payment.trip_id)
    require_authorization(can_modify_payment, access, payment)

    changes = {}
    if 'amount' in data:
        changes['amount'] = parse_amount(data.get('amount'), 'amount', allow_zero=False)
    if 'payment_date' in data:
        payment_date = parse_datetime(data.get('payment_date'), 'payment_date')
        if payment_date is None:
            raise ValidationError("payment_date cannot be empty")
        changes['payment_date'] = payment_date
    if 'notes' in data:
        changes['notes'] = optional_text(data.get('notes'), 'notes')

    for field, value in changes.items():
        setattr(payment, field, value)

    db.session.commit()
    log.info("payment_updated", payment_id=payment_id, user_id=user_id,
             fields=sorted(changes))
    return shape_payment(payment)


def delete_payment(user_id, payment_id):
    payment = _load_payment(payment_id)
    access = authorize(user_id, Action.EDIT_PAYMENT, trip_id=payment.trip_id)
    require_authorization(can_modify_payment, access, payment)

    try:
        db.session.delete(payment)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        log.error("payment_delete_failed", payment_id=payment_id, exc_info=True)
        raise PaymentError(f"Failed to delete payment: {str(e)}")

    log.info("payment_deleted", payment_id=payment_id, user_id=user_id)
    return True
