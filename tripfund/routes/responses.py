"""JSON response helpers shared by the blueprints."""

from flask import jsonify, request

from tripfund.services.errors import ValidationError


def success(data=None, status_code=200, **extra):
    body = {'status': 'success'}
    if isinstance(data, list):
        body['results'] = len(data)
    body['data'] = data
    body.update(extra)
    return jsonify(body), status_code


def json_body():
    """Request JSON as a dict; anything else is a validation error."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
