"""
TRIP ROUTES
===========
"""

from flask import Blueprint
from flask_login import current_user, login_required

from tripfund.routes.responses import json_body, success
from tripfund.services import trip_service

trips_bp = Blueprint('trips', __name__, url_prefix='/api/trips')


@trips_bp.route('', methods=['POST'])
@login_required
def create_trip():
    trip = trip_service.create_trip(current_user.id, json_body())
    return success({'trip': trip}, 201)


@trips_bp.route('/project/<project_id>', methods=['GET'])
@login_required
def list_project_trips(project_id):
    return success(trip_service.list_project_trips(current_user.id, project_id))


@trips_bp.route('/<trip_id>', methods=['GET'])
@login_required
def get_trip(trip_id):
    return success(trip_service.get_trip(current_user.id, trip_id))


@trips_bp.route('/<trip_id>', methods=['PATCH'])
@login_required
def update_trip(trip_id):
    trip = trip_service.update_trip(current_user.id, trip_id, json_body())
    return success({'trip': trip})


@trips_bp.route('/<trip_id>', methods=['DELETE'])
@login_required
def delete_trip(trip_id):
    trip_service.delete_trip(current_user.id, trip_id)
    return success(None)
