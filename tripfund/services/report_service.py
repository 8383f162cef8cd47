"""
REPORT SERVICE
==============

Read-only financial summaries:
- Project summary (per-trip expected / collected / remaining)
- Trip report (per-participant breakdown with payments)
- Collector summary (totals grouped by the user who collected)

Money stays Decimal until the response is shaped; percentages are
floats computed from the unrounded totals. Rows are loaded in batches
(one query per entity type), never per participant.
"""

from decimal import Decimal

import structlog
from sqlalchemy.orm import joinedload

from tripfund.extensions import db
from tripfund.models import Participant, Payment, Project, ProjectMember, Trip, money
from tripfund.services.authorization_service import Action, authorize
from tripfund.services.errors import NotFoundError

log = structlog.get_logger(__name__)

ZERO = Decimal('0')


# ============================================================
# REDUCERS
# ============================================================

def sum_amounts(payments):
    """Total of payment amounts, as Decimal."""
    return sum((Decimal(p.amount) for p in payments), ZERO)


def percent_complete(collected, expected):
    """
    collected / expected * 100.

    Defined as 0 when nothing is expected, so the result is never
    NaN or Infinity.
    """
    if not expected or expected <= 0:
        return 0.0
    return float(Decimal(collected) * 100 / Decimal(expected))


def balance_figures(expected, collected):
    """Shared shape for expected / collected / remaining / percent."""
    return {
        'expected': expected,
        'collected': collected,
        'remaining': expected - collected,
        'percent_complete': percent_complete(collected, expected),
    }


def summarize_collectors(payments):
    """
    Group payments by collector.

    Returns raw grouped data in first-seen order; sorting by total is
    left to the presentation layer.
    """
    groups = {}
    for payment in payments:
        entry = groups.get(payment.collector_id)
        if entry is None:
            entry = groups[payment.collector_id] = {
                'collector_id': payment.collector_id,
                'collector_name': payment.collector.name if payment.collector else None,
                'total': ZERO,
            }
        entry['total'] += Decimal(payment.amount)

    return [
        {**entry, 'total': money(entry['total'])}
        for entry in groups.values()
    ]


def group_by(rows, key):
    grouped = {}
    for row in rows:
        grouped.setdefault(getattr(row, key), []).append(row)
    return grouped


# ============================================================
# BATCH LOADERS
# ============================================================

def load_participants(trip_ids):
    if not trip_ids:
        return []
    return Participant.query.options(
        joinedload(Participant.created_by_user),
        joinedload(Participant.updated_by_user),
    ).filter(
        Participant.trip_id.in_(trip_ids)
    ).order_by(Participant.created_at.asc()).all()


def load_payments(participant_ids):
    if not participant_ids:
        return []
    return Payment.query.options(
        joinedload(Payment.collector)
    ).filter(
        Payment.participant_id.in_(participant_ids)
    ).order_by(Payment.payment_date.asc()).all()


# ============================================================
# PROJECT SUMMARY
# ============================================================

def get_project_summary(user_id, project_id):
    """
    Summarize all trips of a project.

    Caller must be a member of the project.
    """
    authorize(user_id, Action.VIEW_REPORTS, project_id=project_id)

    try:
        project = db.session.get(Project, project_id)

        trips = Trip.query.filter_by(
            project_id=project_id
        ).order_by(Trip.created_at.asc()).all()

        members = ProjectMember.query.options(
            joinedload(ProjectMember.user)
        ).filter_by(project_id=project_id).all()

        participants = load_participants([t.id for t in trips])
        payments = load_payments([p.id for p in participants])

        participants_by_trip = group_by(participants, 'trip_id')
        payments_by_participant = group_by(payments, 'participant_id')

        trip_stats = []
        total_expected = ZERO
        total_collected = ZERO

        for trip in trips:
            trip_participants = participants_by_trip.get(trip.id, [])

            expected = sum((Decimal(p.expected_amount) for p in trip_participants), ZERO)
            collected = sum(
                (sum_amounts(payments_by_participant.get(p.id, [])) for p in trip_participants),
                ZERO
            )
            figures = balance_figures(expected, collected)

            trip_stats.append({
                'id': trip.id,
                'name': trip.name,
                'expected': money(figures['expected']),
                'collected': money(figures['collected']),
                'remaining_amount': money(figures['remaining']),
                'percent_complete': figures['percent_complete'],
            })

            total_expected += expected
            total_collected += collected

        totals = balance_figures(total_expected, total_collected)

        return {
            'project': project.to_dict(),
            'members': [m.to_dict() for m in members],
            'trip_count': len(trips),
            'trips': trip_stats,
            'total_expected': money(totals['expected']),
            'total_collected': money(totals['collected']),
            'total_remaining_amount': money(totals['remaining']),
            'percent_complete': totals['percent_complete'],
            'collector_summary': summarize_collectors(payments),
        }

    except Exception:
        log.error("project_summary_failed", project_id=project_id, exc_info=True)
        raise


# ============================================================
# TRIP REPORT
# ============================================================

def shape_report_payment(payment):
    data = payment.to_dict()
    data['collector'] = payment.collector.to_summary() if payment.collector else None
    return data


def get_trip_report(user_id, trip_id):
    """
    Per-participant breakdown of a trip.

    Caller must be a member of the trip's project.
    """
    trip = db.session.get(Trip, trip_id)
    if not trip:
        raise NotFoundError("Trip not found")

    authorize(user_id, Action.VIEW_REPORTS, project_id=trip.project_id)

    try:
        participants = load_participants([trip.id])
        payments = load_payments([p.id for p in participants])
        payments_by_participant = group_by(payments, 'participant_id')

        participant_details = []
        total_expected = ZERO
        total_collected = ZERO

        for participant in participants:
            own_payments = payments_by_participant.get(participant.id, [])
            expected = Decimal(participant.expected_amount)
            paid = sum_amounts(own_payments)
            figures = balance_figures(expected, paid)

            participant_details.append({
                'id': participant.id,
                'name': participant.name,
                'phone': participant.phone,
                'email': participant.email,
                'expected_amount': money(figures['expected']),
                'paid_amount': money(figures['collected']),
                'remaining_amount': money(figures['remaining']),
                'percent_complete': figures['percent_complete'],
                'payments': [shape_report_payment(p) for p in own_payments],
                'created_by_user': participant.created_by_user.to_summary()
                if participant.created_by_user else None,
                'updated_by_user': participant.updated_by_user.to_summary()
                if participant.updated_by_user else None,
            })

            total_expected += expected
            total_collected += paid

        totals = balance_figures(total_expected, total_collected)

        return {
            'trip': trip.to_dict(),
            'participants': participant_details,
            'total_expected': money(totals['expected']),
            'total_collected': money(totals['collected']),
            'total_remaining_amount': money(totals['remaining']),
            'percent_complete': totals['percent_complete'],
            'collector_summary': summarize_collectors(payments),
        }

    except Exception:
        log.error("trip_report_failed", trip_id=trip_id, exc_info=True)
        raise
