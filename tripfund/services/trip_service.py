"""
TRIP SERVICE
============

Trips belong to one project. Only owner/admin can create, update or
delete them; every member can read them. Deleting a trip removes its
participants and payments.
"""

import structlog

from tripfund.extensions import db
from tripfund.models import Trip
from tripfund.services.authorization_service import Action, authorize
from tripfund.services.errors import NotFoundError, TripfundError
from tripfund.services.validation import (
    check_date_range, optional_id, optional_text, parse_amount, parse_date, require_name
)

log = structlog.get_logger(__name__)


class TripError(TripfundError):
    """Trip operation failed"""
    status_code = 500
    kind = 'trip_error'


def get_trip_or_404(trip_id):
    trip = db.session.get(Trip, trip_id)
    if not trip:
        raise NotFoundError("Trip not found")
    return trip


def create_trip(user_id, data):
    """Create a trip in data['project_id']. Owner/admin only."""
    project_id = optional_id(data.get('project_id'), 'project_id')
    authorize(user_id, Action.MANAGE_TRIPS, project_id=project_id)

    start_date = parse_date(data.get('start_date'), 'start_date')
    end_date = parse_date(data.get('end_date'), 'end_date')
    check_date_range(start_date, end_date)

    trip = Trip(
        project_id=project_id,
        name=require_name(data.get('name')),
        description=optional_text(data.get('description'), 'description'),
        start_date=start_date,
        end_date=end_date,
        total_cost=parse_amount(data.get('total_cost'), 'total_cost',
                                required=False, default=0),
        expected_amount_per_person=parse_amount(
            data.get('expected_amount_per_person'), 'expected_amount_per_person',
            required=False, default=0
        ),
    )

    try:
        db.session.add(trip)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        log.error("trip_create_failed", project_id=project_id, exc_info=True)
        raise TripError(f"Failed to create trip: {str(e)}")

    log.info("trip_created", trip_id=trip.id, project_id=trip.project_id, user_id=user_id)
    return trip.to_dict()


def list_project_trips(user_id, project_id):
    authorize(user_id, Action.VIEW_PROJECT, project_id=project_id)

    trips = Trip.query.filter_by(
        project_id=project_id
    ).order_by(Trip.created_at.asc()).all()

    return [t.to_dict() for t in trips]


def get_trip(user_id, trip_id):
    trip = get_trip_or_404(trip_id)
    access = authorize(user_id, Action.VIEW_PROJECT, project_id=trip.project_id)
    return {'trip': trip.to_dict(), 'user_role': access.role.value}


def update_trip(user_id, trip_id, data):
    """
    Partial update. Owner/admin only.
    description and the dates can be cleared by sending null.
    """
    trip = get_trip_or_404(trip_id)
    authorize(user_id, Action.MANAGE_TRIPS, project_id=trip.project_id)

    changes = {}
    if 'name' in data:
        changes['name'] = require_name(data.get('name'))
    if 'description' in data:
        changes['description'] = optional_text(data.get('description'), 'description')
    if 'start_date' in data:
        changes['start_date'] = parse_date(data.get('start_date'), 'start_date')
    if 'end_date' in data:
        changes['end_date'] = parse_date(data.get('end_date'), 'end_date')
    for field in ('total_cost', 'expected_amount_per_person'):
        if field in data:
            changes[field] = parse_amount(data.get(field), field)

    check_date_range(
        changes.get('start_date', trip.start_date),
        changes.get('end_date', trip.end_date)
    )

    for field, value in changes.items():
        setattr(trip, field, value)

    db.session.commit()
    log.info("trip_updated", trip_id=trip_id, user_id=user_id)
    return trip.to_dict()


def delete_trip(user_id, trip_id):
    """Owner/admin only. Cascades to participants and payments."""
    trip = get_trip_or_404(trip_id)
    authorize(user_id, Action.MANAGE_TRIPS, project_id=trip.project_id)

    try:
        db.session.delete(trip)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        log.error("trip_delete_failed", trip_id=trip_id, exc_info=True)
        raise TripError(f"Failed to delete trip: {str(e)}")

    log.info("trip_deleted", trip_id=trip_id, user_id=user_id)
    return True
