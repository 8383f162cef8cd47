"""
AUTH SERVICE
============

Handles:
- Signup (unverified account + email verification token)
- Email verification / resending the verification token
- Credential check for login
- Forgot / reset password

Tokens are random hex strings handed to the user once; only their
sha256 digest is stored. Delivering the link (email) is not done here:
callers receive the raw token and pass it on.
"""

import hashlib
import secrets
from datetime import timedelta

import structlog
from flask import current_app

from tripfund.extensions import db
from tripfund.models import User, utcnow
from tripfund.services.errors import (
    ConflictError, UnauthenticatedError, ValidationError
)
from tripfund.services.validation import require_name

log = structlog.get_logger(__name__)

PASSWORD_MIN_LENGTH = 8


def generate_token():
    """Return (raw_token, digest)."""
    raw = secrets.token_hex(32)
    return raw, hash_token(raw)


def hash_token(raw):
    return hashlib.sha256(raw.encode('utf-8')).hexdigest()


def normalize_email(email):
    if not email or not isinstance(email, str) or '@' not in email:
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def validate_password(password):
    if not password or not isinstance(password, str):
        raise ValidationError("password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )


def _issue_verification_token(user):
    raw, digest = generate_token()
    user.verification_token = digest
    user.verification_token_expires = utcnow() + timedelta(
        hours=current_app.config['VERIFICATION_TOKEN_HOURS']
    )
    return raw


def verification_link(raw_token):
    return f"{current_app.config['FRONTEND_URL']}/verify-email/{raw_token}"


def reset_link(raw_token):
    return f"{current_app.config['FRONTEND_URL']}/reset-password/{raw_token}"


# ============================================================
# SIGNUP / VERIFY
# ============================================================

def signup(name, email, password):
    """
    Create an unverified user.

    Returns (user, raw_verification_token).
    """
    name = require_name(name)
    email = normalize_email(email)
    validate_password(password)

    if User.query.filter_by(email=email).first():
        raise ConflictError("Email already in use")

    try:
        user = User(name=name, email=email, email_verified=False)
        user.set_password(password)
        raw_token = _issue_verification_token(user)

        db.session.add(user)
        db.session.commit()

    except Exception:
        db.session.rollback()
        log.error("signup_failed", email=email, exc_info=True)
        raise

    log.info("user_signed_up", user_id=user.id)
    return user, raw_token


def verify_email(raw_token):
    user = User.query.filter_by(verification_token=hash_token(raw_token or '')).first()

    if not user or not user.verification_token_expires \
            or user.verification_token_expires <= utcnow():
        raise ValidationError("Token is invalid or has expired")

    user.email_verified = True
    user.verification_token = None
    user.verification_token_expires = None
    db.session.commit()

    log.info("email_verified", user_id=user.id)
    return user


def resend_verification(email):
    """
    Issue a fresh verification token.
    Returns (user, raw_token), or (None, None) when there is nothing to send.
    """
    email = normalize_email(email)
    user = User.query.filter_by(email=email).first()

    if not user or user.email_verified:
        return None, None

    raw_token = _issue_verification_token(user)
    db.session.commit()
    return user, raw_token


# ============================================================
# LOGIN
# ============================================================

def authenticate(email, password):
    """Return the user for valid credentials of a verified account."""
    if not isinstance(email, str) or not isinstance(password, str) \
            or not email or not password:
        raise ValidationError("Please provide email and password")

    user = User.query.filter_by(email=email.strip().lower()).first()

    if not user or not user.check_password(password):
        raise UnauthenticatedError("Incorrect email or password")

    if not user.email_verified:
        raise UnauthenticatedError(
            "Please verify your email before logging in",
            requires_verification=True,
            email=user.email
        )

    return user


# ============================================================
# PASSWORD RESET
# ============================================================

def request_password_reset(email):
    """
    Issue a reset token.
    Returns (user, raw_token), or (None, None) for unknown emails.
    """
    email = normalize_email(email)
    user = User.query.filter_by(email=email).first()
    if not user:
        return None, None

    raw, digest = generate_token()
    user.password_reset_token = digest
    user.password_reset_expires = utcnow() + timedelta(
        hours=current_app.config['RESET_TOKEN_HOURS']
    )
    db.session.commit()

    log.info("password_reset_requested", user_id=user.id)
    return user, raw


def reset_password(raw_token, password):
    validate_password(password)

    user = User.query.filter_by(password_reset_token=hash_token(raw_token or '')).first()
    if not user or not user.password_reset_expires \
            or user.password_reset_expires <= utcnow():
        raise ValidationError("Token is invalid or has expired")

    user.set_password(password)
    user.password_reset_token = None
    user.password_reset_expires = None
    db.session.commit()

    log.info("password_reset", user_id=user.id)
    return user
