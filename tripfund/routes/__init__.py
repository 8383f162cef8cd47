"""Routes package - Blueprint registration."""
from tripfund.routes.auth import auth_bp
from tripfund.routes.projects import projects_bp
from tripfund.routes.trips import trips_bp
from tripfund.routes.participants import participants_bp
from tripfund.routes.payments import payments_bp
from tripfund.routes.reports import reports_bp
from tripfund.routes.admin import admin_bp


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(auth_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(trips_bp)
    app.register_blueprint(participants_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(admin_bp)
