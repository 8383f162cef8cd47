import pytest

from tripfund.extensions import db
from tripfund.models import Participant, Payment, Trip
from tripfund.services import trip_service
from tripfund.services.errors import (
    InsufficientRoleError, NotFoundError, NotMemberError, ProjectUnresolvedError,
    ValidationError
)

pytestmark = pytest.mark.usefixtures('ctx')


def test_admin_creates_trip_with_money_fields(team):
    trip = trip_service.create_trip(team.admin, {
        'project_id': team.project_id,
        'name': 'Ski Weekend',
        'total_cost': '1200.50',
        'expected_amount_per_person': 300,
    })
    assert trip['total_cost'] == '1200.50'
    assert trip['expected_amount_per_person'] == '300.00'
    assert trip['start_date'] is None


def test_money_fields_default_to_zero(team):
    trip = trip_service.create_trip(team.owner, {'project_id': team.project_id, 'name': 'Picnic'})
    assert trip['total_cost'] == '0.00'


def test_collector_cannot_create_trip(team):
    with pytest.raises(InsufficientRoleError):
        trip_service.create_trip(team.collector, {'project_id': team.project_id, 'name': 'X'})


@pytest.mark.parametrize('call', [
    lambda team: trip_service.update_trip(team.collector, team.trip_id, {'name': 'Mine'}),
    lambda team: trip_service.delete_trip(team.collector, team.trip_id),
])
def test_collector_cannot_change_trip(team, call):
    with pytest.raises(InsufficientRoleError):
        call(team)

    trip = db.session.get(Trip, team.trip_id)
    assert trip is not None
    assert trip.name == 'Lake Trip'


def test_project_id_is_required(team):
    with pytest.raises(ProjectUnresolvedError):
        trip_service.create_trip(team.owner, {'name': 'Nowhere'})


@pytest.mark.parametrize('data', [
    {'start_date': '07/01/2026'},
    {'start_date': '2026-07-05', 'end_date': '2026-07-01'},
    {'total_cost': '-1'},
    {'total_cost': 'lots'},
])
def test_invalid_trip_input(team, data):
    with pytest.raises(ValidationError):
        trip_service.create_trip(team.owner, {'project_id': team.project_id, 'name': 'Bad', **data})


def test_update_checks_range_against_stored_dates(team):
    with pytest.raises(ValidationError):
        trip_service.update_trip(team.owner, team.trip_id, {'end_date': '2026-06-01'})

    trip = db.session.get(Trip, team.trip_id)
    assert trip.end_date.isoformat() == '2026-07-05'


def test_update_trip(team):
    trip = trip_service.update_trip(team.admin, team.trip_id, {
        'name': 'Lake Trip (extended)',
        'end_date': '2026-07-09',
    })
    assert trip['name'] == 'Lake Trip (extended)'
    assert trip['end_date'] == '2026-07-09'


def test_members_can_read_trips(team):
    assert [t['id'] for t in trip_service.list_project_trips(team.collector, team.project_id)] \
        == [team.trip_id]
    assert trip_service.get_trip(team.collector, team.trip_id)['user_role'] == 'collector'


def test_outsider_cannot_read_trip(team):
    with pytest.raises(NotMemberError):
        trip_service.get_trip(team.outsider, team.trip_id)


def test_missing_trip(team):
    with pytest.raises(NotFoundError):
        trip_service.get_trip(team.owner, 'missing')


def test_delete_trip_removes_participants_and_payments(team, add_participant, pay):
    participant_id = add_participant()
    pay(team.collector, participant_id, '25')

    trip_service.delete_trip(team.admin, team.trip_id)
    db.session.expire_all()

    assert db.session.get(Trip, team.trip_id) is None
    assert Participant.query.count() == 0
    assert Payment.query.count() == 0
