"""
PARTICIPANT ROUTES
==================
"""

from flask import Blueprint
from flask_login import current_user, login_required

from tripfund.routes.responses import json_body, success
from tripfund.services import participant_service

participants_bp = Blueprint('participants', __name__, url_prefix='/api/participants')


@participants_bp.route('', methods=['POST'])
@login_required
def create_participant():
    participant = participant_service.create_participant(current_user.id, json_body())
    return success({'participant': participant}, 201)


@participants_bp.route('/trip/<trip_id>', methods=['GET'])
@login_required
def list_trip_participants(trip_id):
    return success(participant_service.list_trip_participants(current_user.id, trip_id))


@participants_bp.route('/<participant_id>', methods=['GET'])
@login_required
def get_participant(participant_id):
    participant = participant_service.get_participant(current_user.id, participant_id)
    return success({'participant': participant})


@participants_bp.route('/<participant_id>', methods=['PATCH'])
@login_required
def update_participant(participant_id):
    participant = participant_service.update_participant(
        current_user.id, participant_id, json_body()
    )
    return success({'participant': participant})


@participants_bp.route('/<participant_id>', methods=['DELETE'])
@login_required
def delete_participant(participant_id):
    participant_service.delete_participant(current_user.id, participant_id)
    return success(None)
