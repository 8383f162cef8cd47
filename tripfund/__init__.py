"""
tripfund - Application Factory
"""
import os

import click
import structlog
from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from tripfund.config import config
from tripfund.extensions import db, login_manager
from tripfund.log import configure_logging

log = structlog.get_logger(__name__)


def create_app(config_name=None):
    """Application Factory."""
    load_dotenv()

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))

    configure_logging(app.config['LOG_LEVEL'], json_output=app.config['LOG_JSON'])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    register_user_loader()
    register_error_handlers(app)

    # Register blueprints
    from tripfund.routes import register_blueprints
    register_blueprints(app)

    # CLI Commands
    register_cli_commands(app)

    os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        db.create_all()

    log.info("app_created", config=config_name)
    return app


def register_user_loader():
    from tripfund.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, user_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({
            'status': 'error',
            'kind': 'unauthenticated',
            'message': 'You are not logged in. Please log in to get access.'
        }), 401


def register_error_handlers(app):
    from tripfund.services.errors import TripfundError

    @app.errorhandler(TripfundError)
    def handle_domain_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            'status': 'error',
            'kind': error.name.lower().replace(' ', '_'),
            'message': error.description,
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        log.error("unhandled_error", exc_info=error)
        return jsonify({
            'status': 'error',
            'kind': 'internal_error',
            'message': 'Something went wrong',
        }), 500


def register_cli_commands(app):
    """Register CLI commands."""

    @app.cli.command("init-db")
    def init_db_command():
        """Creates database tables."""
        db.create_all()
        click.echo("Initialized the database.")

    @app.cli.command("create-admin")
    @click.option('--name', prompt=True)
    @click.option('--email', prompt=True)
    @click.password_option()
    def create_admin_command(name, email, password):
        """Creates a verified system administrator."""
        from tripfund.models import User
        from tripfund.services.auth_service import normalize_email, validate_password

        email = normalize_email(email)
        validate_password(password)

        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(name=name, email=email)
            db.session.add(user)

        user.set_password(password)
        user.email_verified = True
        user.is_system_admin = True
        db.session.commit()

        click.echo(f"System administrator ready: {email}")
