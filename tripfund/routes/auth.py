"""
AUTHENTICATION ROUTES
=====================
"""

import structlog
from flask import Blueprint
from flask_login import current_user, login_required, login_user, logout_user

from tripfund.routes.responses import json_body, success
from tripfund.services import auth_service

log = structlog.get_logger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _send_link(kind, user, build_link, raw_token):
    # No mail transport: the link goes to the log ("outbox").
    # A failure here never fails the request.
    try:
        link = build_link(raw_token)
    except Exception:
        log.warning("outbox_failed", kind=kind, user_id=user.id, exc_info=True)
        return
    log.info("outbox", kind=kind, to=user.email, link=link)


@auth_bp.route('/signup', methods=['POST'])
def signup():
    data = json_body()
    user, raw_token = auth_service.signup(
        data.get('name'), data.get('email'), data.get('password')
    )
    _send_link('verify_email', user, auth_service.verification_link, raw_token)

    return success(
        {'user': user.to_dict()}, 201,
        message='Account created. Please check your email to verify your account.'
    )


@auth_bp.route('/verify-email/<token>', methods=['GET'])
def verify_email(token):
    user = auth_service.verify_email(token)
    return success({'user': user.to_dict()}, message='Email verified. You can now log in.')


@auth_bp.route('/resend-verification', methods=['POST'])
def resend_verification():
    user, raw_token = auth_service.resend_verification(json_body().get('email'))
    if user:
        _send_link('verify_email', user, auth_service.verification_link, raw_token)

    return success(message='If the account exists and is unverified, a new link has been sent.')


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    user = auth_service.authenticate(data.get('email'), data.get('password'))
    login_user(user, remember=bool(data.get('remember')))

    log.info("user_logged_in", user_id=user.id)
    return success({'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return success(message='Logged out')


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    return success({'user': current_user.to_dict()})


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    user, raw_token = auth_service.request_password_reset(json_body().get('email'))
    if user:
        _send_link('reset_password', user, auth_service.reset_link, raw_token)

    return success(message='If the account exists, a reset link has been sent.')


@auth_bp.route('/reset-password/<token>', methods=['POST'])
def reset_password(token):
    auth_service.reset_password(token, json_body().get('password'))
    return success(message='Password updated. You can now log in.')
