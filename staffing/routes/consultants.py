from flask import Blueprint, request, jsonify
from staffing.extensions import db
from staffing.models import Consultant
from staffing.routes.params import json_body, list_params
from staffing.services import AvailabilityStore, NotFoundError, ValidationError
from staffing.services.queries import consultant_schedule
from staffing.services.transaction import atomic
from staffing.utils.validators import validate_email_format, validate_required_fields

consultants_bp = Blueprint('consultants', __name__)

availability = AvailabilityStore()

@consultants_bp.route('/api/consultants', methods=['POST'])
def create_consultant():
    """Create a new consultant"""
    data = json_body(request)

    is_valid, error = validate_required_fields(data, ['name', 'email'])
    if not is_valid:
        raise ValidationError(error)

    is_valid, error = validate_email_format(data['email'])
    if not is_valid:
        raise ValidationError(error)

    skills = data.get('skills', [])
    if not isinstance(skills, list):
        raise ValidationError('skills must be a list')

    # Check if consultant already exists
    existing = Consultant.query.filter_by(email=data['email']).first()
    if existing:
        raise ValidationError('Consultant with this email already exists', entity_id=existing.id)

    consultant = Consultant(
        name=data['name'],
        email=data['email'],
        specialty=data.get('specialty'),
        skills=skills,
        rating=data.get('rating')
    )

    with atomic():
        db.session.add(consultant)
    return jsonify(consultant.to_dict()), 201

@consultants_bp.route('/api/consultants', methods=['GET'])
def get_consultants():
    """Get all consultants"""
    consultants = Consultant.query.order_by(Consultant.name).all()
    return jsonify([c.to_dict() for c in consultants])

@consultants_bp.route('/api/consultants/<int:consultant_id>/schedule', methods=['GET'])
def get_consultant_schedule(consultant_id):
    """Get a consultant's assignments across all schedules and projects"""
    params = list_params(request.args, ['status', 'date_from', 'date_to'])
    page = consultant_schedule(consultant_id, **params)
    return jsonify(page.to_dict())

@consultants_bp.route('/api/consultants/<int:consultant_id>/availability', methods=['GET'])
def get_consultant_availability(consultant_id):
    """Get the availability windows a consultant declared"""
    if db.session.get(Consultant, consultant_id) is None:
        raise NotFoundError('Consultant not found', entity_id=consultant_id)

    params = list_params(request.args, ['date_from', 'date_to'])
    windows = availability.list_for(consultant_id, params.get('date_from'), params.get('date_to'))
    return jsonify([w.to_dict() for w in windows])
