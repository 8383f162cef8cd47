"""
PAYMENT ROUTES
==============
"""

from flask import Blueprint
from flask_login import current_user, login_required

from tripfund.routes.responses import json_body, success
from tripfund.services import payment_service

payments_bp = Blueprint('payments', __name__, url_prefix='/api/payments')


@payments_bp.route('', methods=['POST'])
@login_required
def create_payment():
    payment = payment_service.create_payment(current_user.id, json_body())
    return success({'payment': payment}, 201)


@payments_bp.route('/trip/<trip_id>', methods=['GET'])
@login_required
def list_trip_payments(trip_id):
    return success(payment_service.list_trip_payments(current_user.id, trip_id))


@payments_bp.route('/participant/<participant_id>', methods=['GET'])
@login_required
def list_participant_payments(participant_id):
    result = payment_service.list_participant_payments(current_user.id, participant_id)
    return success(result['payments'], total=result['total'])


@payments_bp.route('/<payment_id>', methods=['GET'])
@login_required
def get_payment(payment_id):
    return success({'payment': payment_service.get_payment(current_user.id, payment_id)})


@payments_bp.route('/<payment_id>', methods=['PATCH'])
@login_required
def update_payment(payment_id):
    payment = payment_service.update_payment(current_user.id, payment_id, json_body())
    return success({'payment': payment})


@payments_bp.route('/<payment_id>', methods=['DELETE'])
@login_required
def delete_payment(payment_id):
    payment_service.delete_payment(current_user.id, payment_id)
    return success(None)
