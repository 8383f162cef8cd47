"""Signup, verification, login and password reset."""

from datetime import timedelta

import pytest

from tripfund.extensions import db
from tripfund.models import User, utcnow
from tripfund.services import auth_service
from tripfund.services.errors import ConflictError, UnauthenticatedError, ValidationError


@pytest.mark.usefixtures('ctx')
class TestSignupAndVerify:

    def test_signup_creates_unverified_user(self):
        user, token = auth_service.signup('Ali', 'Ali@Example.COM', 'longenough')

        assert user.email == 'ali@example.com'
        assert not user.email_verified
        assert len(token) == 64
        # only the digest is stored
        assert user.verification_token == auth_service.hash_token(token)
        assert user.verification_token != token

    def test_token_expires_after_a_day(self):
        user, _ = auth_service.signup('Ali', 'ali@example.com', 'longenough')
        remaining = user.verification_token_expires - utcnow()
        assert timedelta(hours=23) < remaining <= timedelta(hours=24)

    def test_duplicate_email(self, make_user):
        make_user(email='ali@example.com')
        with pytest.raises(ConflictError):
            auth_service.signup('Ali', 'ALI@example.com', 'longenough')

    @pytest.mark.parametrize('name,email,password', [
        ('', 'ali@example.com', 'longenough'),
        ('Ali', 'not-an-email', 'longenough'),
        ('Ali', 'ali@example.com', 'short'),
        ('Ali', 'ali@example.com', None),
    ])
    def test_signup_validation(self, name, email, password):
        with pytest.raises(ValidationError):
            auth_service.signup(name, email, password)

    def test_unverified_user_cannot_log_in(self):
        auth_service.signup('Ali', 'ali@example.com', 'longenough')
        with pytest.raises(UnauthenticatedError) as exc:
            auth_service.authenticate('ali@example.com', 'longenough')
        assert exc.value.extra['requires_verification'] is True

    def test_verify_then_log_in(self):
        _, token = auth_service.signup('Ali', 'ali@example.com', 'longenough')
        user = auth_service.verify_email(token)

        assert user.email_verified
        assert user.verification_token is None
        assert auth_service.authenticate('ALI@example.com', 'longenough').id == user.id

    def test_token_is_single_use(self):
        _, token = auth_service.signup('Ali', 'ali@example.com', 'longenough')
        auth_service.verify_email(token)
        with pytest.raises(ValidationError):
            auth_service.verify_email(token)

    def test_expired_token(self):
        user, token = auth_service.signup('Ali', 'ali@example.com', 'longenough')
        user.verification_token_expires = utcnow() - timedelta(minutes=1)
        db.session.commit()

        with pytest.raises(ValidationError):
            auth_service.verify_email(token)

    def test_resend_replaces_token(self):
        _, first = auth_service.signup('Ali', 'ali@example.com', 'longenough')
        user, second = auth_service.resend_verification('ali@example.com')

        assert second != first
        with pytest.raises(ValidationError):
            auth_service.verify_email(first)
        assert auth_service.verify_email(second).id == user.id

    def test_resend_is_silent_for_unknown_or_verified(self, make_user):
        make_user(email='done@example.com')
        assert auth_service.resend_verification('ghost@example.com') == (None, None)
        assert auth_service.resend_verification('done@example.com') == (None, None)


@pytest.mark.usefixtures('ctx')
class TestLoginAndReset:

    def test_wrong_password(self, make_user):
        make_user(email='ali@example.com')
        with pytest.raises(UnauthenticatedError) as exc:
            auth_service.authenticate('ali@example.com', 'wrong-password')
        assert 'requires_verification' not in exc.value.extra

    def test_reset_password_flow(self, make_user):
        user_id = make_user(email='ali@example.com')
        user, token = auth_service.request_password_reset('ali@example.com')
        assert user.id == user_id
        assert user.password_reset_expires - utcnow() <= timedelta(hours=1)

        auth_service.reset_password(token, 'brand-new-password')

        assert auth_service.authenticate('ali@example.com', 'brand-new-password').id == user_id
        with pytest.raises(UnauthenticatedError):
            auth_service.authenticate('ali@example.com', 'password123')
        assert db.session.get(User, user_id).password_reset_token is None

    def test_reset_requires_valid_password(self, make_user):
        make_user(email='ali@example.com')
        _, token = auth_service.request_password_reset('ali@example.com')
        with pytest.raises(ValidationError):
            auth_service.reset_password(token, 'short')

    def test_reset_with_unknown_token(self):
        with pytest.raises(ValidationError):
            auth_service.reset_password('0' * 64, 'brand-new-password')

    def test_forgot_password_is_silent_for_unknown_email(self):
        assert auth_service.request_password_reset('ghost@example.com') == (None, None)


class TestAuthRoutes:

    def test_signup_route(self, client):
        response = client.post('/api/auth/signup', json={
            'name': 'Ali', 'email': 'ali@example.com', 'password': 'longenough'})
        body = response.get_json()

        assert response.status_code == 201
        assert body['status'] == 'success'
        assert body['data']['user']['email_verified'] is False
        assert 'password_hash' not in body['data']['user']

    def test_login_requires_verification(self, client):
        client.post('/api/auth/signup', json={
            'name': 'Ali', 'email': 'ali@example.com', 'password': 'longenough'})
        response = client.post('/api/auth/login', json={
            'email': 'ali@example.com', 'password': 'longenough'})
        body = response.get_json()

        assert response.status_code == 401
        assert body['kind'] == 'unauthenticated'
        assert body['requires_verification'] is True

    def test_login_me_logout(self, make_user, login):
        make_user(name='Ali', email='ali@example.com')
        client = login('ali@example.com')

        me = client.get('/api/auth/me').get_json()
        assert me['data']['user']['name'] == 'Ali'

        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_me_requires_login(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert response.get_json() == {
            'status': 'error',
            'kind': 'unauthenticated',
            'message': 'You are not logged in. Please log in to get access.',
        }

    def test_forgot_password_does_not_reveal_accounts(self, client, make_user):
        make_user(email='ali@example.com')
        known = client.post('/api/auth/forgot-password', json={'email': 'ali@example.com'})
        unknown = client.post('/api/auth/forgot-password', json={'email': 'ghost@example.com'})

        assert known.status_code == unknown.status_code == 200
        assert known.get_json() == unknown.get_json()

    def test_verify_email_route(self, app, client):
        with app.app_context():
            _, token = auth_service.signup('Ali', 'ali@example.com', 'longenough')

        response = client.get(f'/api/auth/verify-email/{token}')
        assert response.status_code == 200
        assert response.get_json()['data']['user']['email_verified'] is True

        bad = client.get('/api/auth/verify-email/not-a-token')
        assert bad.status_code == 400
        assert bad.get_json()['kind'] == 'validation_error'

    @pytest.mark.parametrize('credentials', [
        {'password': 12345678},
        {'password': ['password123']},
        {'email': 42},
    ])
    def test_login_with_non_string_credentials(self, make_user, client, credentials):
        make_user(email='ali@example.com')
        response = client.post('/api/auth/login', json={
            'email': 'ali@example.com', 'password': 'password123', **credentials})

        assert response.status_code == 400
        assert response.get_json()['kind'] == 'validation_error'

    def test_signup_survives_broken_link_builder(self, client, monkeypatch):
        def broken(raw_token):
            raise KeyError('FRONTEND_URL')

        monkeypatch.setattr(auth_service, 'verification_link', broken)
        response = client.post('/api/auth/signup', json={
            'name': 'Ali', 'email': 'ali@example.com', 'password': 'longenough'})

        assert response.status_code == 201
