"""
REPORT ROUTES
=============
"""

from flask import Blueprint
from flask_login import current_user, login_required

from tripfund.routes.responses import success
from tripfund.services.report_service import get_project_summary, get_trip_report

reports_bp = Blueprint('reports', __name__, url_prefix='/api/reports')


@reports_bp.route('/project/<project_id>', methods=['GET'])
@login_required
def project_summary(project_id):
    return success(get_project_summary(current_user.id, project_id))


@reports_bp.route('/trip/<trip_id>', methods=['GET'])
@login_required
def trip_report(trip_id):
    return success(get_trip_report(current_user.id, trip_id))
