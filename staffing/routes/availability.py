from flask import Blueprint, request, jsonify
from staffing.extensions import db
from staffing.models import Consultant
from staffing.routes.params import json_body
from staffing.services import AvailabilityStore, NotFoundError, ValidationError
from staffing.utils.intervals import interval, parse_moment
from staffing.utils.validators import validate_required_fields

availability_bp = Blueprint('availability', __name__)

store = AvailabilityStore()

@availability_bp.route('/api/availability', methods=['POST'])
def create_availability():
    """Declare a typed window (available, vacation, training, ...) for a consultant"""
    window = store.create(json_body(request))
    return jsonify(window.to_dict()), 201

@availability_bp.route('/api/availability/<int:availability_id>', methods=['GET'])
def get_availability(availability_id):
    return jsonify(store.get(availability_id).to_dict())

@availability_bp.route('/api/availability/<int:availability_id>', methods=['PATCH'])
def update_availability(availability_id):
    window = store.update(availability_id, json_body(request))
    return jsonify(window.to_dict())

@availability_bp.route('/api/availability/<int:availability_id>', methods=['DELETE'])
def delete_availability(availability_id):
    store.delete(availability_id)
    return jsonify({'message': 'Availability deleted', 'id': availability_id})

@availability_bp.route('/api/availability/check', methods=['POST'])
def check_availability():
    """Explain whether a consultant is available for a period, without booking anything"""
    data = json_body(request)

    is_valid, error = validate_required_fields(data, ['consultant_id', 'start_at', 'end_at'])
    if not is_valid:
        raise ValidationError(error)

    if db.session.get(Consultant, data['consultant_id']) is None:
        raise NotFoundError('Consultant not found', entity_id=data['consultant_id'])

    try:
        target = interval(parse_moment(data['start_at']), parse_moment(data['end_at']))
    except (TypeError, ValueError):
        raise ValidationError('Invalid date format. Use YYYY-MM-DD or ISO-8601') from None
    if target.start >= target.end:
        raise ValidationError('start_at must be before end_at')

    return jsonify(store.check(data['consultant_id'], target).to_dict())
