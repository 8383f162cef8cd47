"""
Shared fixtures.

Every test gets a fresh application on an in-memory SQLite database.
Services are exercised inside an app context (``ctx``); HTTP tests use
a test client per logged-in user.
"""

import itertools
from contextlib import nullcontext
from types import SimpleNamespace

import pytest
from flask import has_app_context

from tripfund import create_app
from tripfund.extensions import db
from tripfund.models import MemberRole, ProjectMember, User
from tripfund.services import participant_service, payment_service, project_service, trip_service

PASSWORD = 'password123'

_ids = itertools.count(1)


def _context(app):
    return nullcontext() if has_app_context() else app.app_context()


@pytest.fixture
def app():
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Create a user and return its id. Verified unless told otherwise."""
    def _make(name=None, email=None, password=PASSWORD, verified=True, system_admin=False):
        n = next(_ids)
        with _context(app):
            user = User(
                name=name or f'User {n}',
                email=email or f'user{n}@example.com',
                email_verified=verified,
                is_system_admin=system_admin
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture
def login(app):
    """Return a test client logged in as the given email."""
    def _login(email, password=PASSWORD):
        client = app.test_client()
        response = client.post('/api/auth/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return client
    return _login


@pytest.fixture
def team(app, make_user):
    """
    A project with an owner, an admin and a collector, one trip,
    and a user who belongs to nothing.
    """
    n = next(_ids)
    emails = {
        'owner': f'owner{n}@example.com',
        'admin': f'admin{n}@example.com',
        'collector': f'collector{n}@example.com',
        'outsider': f'outsider{n}@example.com',
    }
    owner = make_user(name='Olivia Owner', email=emails['owner'])
    admin = make_user(name='Adam Admin', email=emails['admin'])
    collector = make_user(name='Cora Collector', email=emails['collector'])
    outsider = make_user(name='Oscar Outsider', email=emails['outsider'])

    with _context(app):
        project = project_service.create_project(owner, {'name': 'Summer Camp'})
        db.session.add(ProjectMember(project_id=project['id'], user_id=admin,
                                     role=MemberRole.ADMIN))
        db.session.add(ProjectMember(project_id=project['id'], user_id=collector,
                                     role=MemberRole.COLLECTOR))
        db.session.commit()

        trip = trip_service.create_trip(owner, {
            'project_id': project['id'],
            'name': 'Lake Trip',
            'start_date': '2026-07-01',
            'end_date': '2026-07-05',
        })

    return SimpleNamespace(
        owner=owner, admin=admin, collector=collector, outsider=outsider,
        emails=emails, project_id=project['id'], trip_id=trip['id']
    )


@pytest.fixture
def add_participant(app, team):
    def _add(name='Ali', expected_amount='100', trip_id=None):
        with _context(app):
            participant = participant_service.create_participant(team.owner, {
                'trip_id': trip_id or team.trip_id,
                'name': name,
                'expected_amount': expected_amount,
            })
        return participant['id']
    return _add


@pytest.fixture
def pay(app):
    """Record a payment as the given user; returns the payment id."""
    def _pay(user_id, participant_id, amount):
        with _context(app):
            payment = payment_service.create_payment(user_id, {
                'participant_id': participant_id,
                'amount': amount,
            })
        return payment['id']
    return _pay
