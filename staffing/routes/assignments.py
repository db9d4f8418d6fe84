from flask import Blueprint, request, jsonify
from staffing.routes.params import json_body, list_params, pop_version
from staffing.services import AssignmentAllocator, ValidationError
from staffing.services.queries import search_assignments
from staffing.utils.validators import validate_required_fields

assignments_bp = Blueprint('assignments', __name__)

allocator = AssignmentAllocator()

def _allocation_response(allocation):
    body = allocation.assignment.to_dict()
    body['warnings'] = allocation.warnings
    return body

@assignments_bp.route('/api/assignments', methods=['POST'])
def create_assignment():
    """Assign a consultant to a schedule after conflict checks"""
    data = json_body(request)

    required_fields = ['schedule_id', 'consultant_id', 'role', 'start_at', 'end_at', 'hourly_rate']
    is_valid, error = validate_required_fields(data, required_fields)
    if not is_valid:
        raise ValidationError(error)

    allocation = allocator.propose(
        schedule_id=data['schedule_id'],
        consultant_id=data['consultant_id'],
        start=data['start_at'],
        end=data['end_at'],
        role=data['role'],
        hourly_rate=data['hourly_rate'],
        notes=data.get('notes'),
        status=data.get('status'),
        availability_policy=data.get('availability_policy')
    )
    return jsonify(_allocation_response(allocation)), 201

@assignments_bp.route('/api/assignments', methods=['GET'])
def get_assignments():
    """Search assignments (status, role, schedule, consultant, project, dates, text, specialty)"""
    params = list_params(request.args, ['status', 'role', 'schedule_id', 'consultant_id', 'project_id',
                                        'date_from', 'date_to', 'search', 'specialty'])
    return jsonify(search_assignments(**params).to_dict())

@assignments_bp.route('/api/assignments/<int:assignment_id>', methods=['GET'])
def get_assignment(assignment_id):
    return jsonify(allocator.get(assignment_id).to_dict())

@assignments_bp.route('/api/assignments/<int:assignment_id>', methods=['PATCH'])
def update_assignment(assignment_id):
    """Edit dates, role, rate or notes. Date, role and rate changes are re-checked for conflicts."""
    data = dict(json_body(request))
    version = pop_version(data)
    policy = data.pop('availability_policy', None)
    allocation = allocator.update(assignment_id, data, expected_version=version, availability_policy=policy)
    return jsonify(_allocation_response(allocation))

@assignments_bp.route('/api/assignments/<int:assignment_id>', methods=['DELETE'])
def delete_assignment(assignment_id):
    allocator.delete(assignment_id)
    return jsonify({'message': 'Assignment deleted', 'id': assignment_id})

@assignments_bp.route('/api/assignments/<int:assignment_id>/status', methods=['POST'])
def update_assignment_status(assignment_id):
    data = dict(json_body(request))
    if not data.get('status'):
        raise ValidationError('status is required')
    assignment = allocator.transition(assignment_id, data['status'], expected_version=pop_version(data))
    return jsonify(assignment.to_dict())

@assignments_bp.route('/api/assignments/bulk-delete', methods=['POST'])
def bulk_delete_assignments():
    """Delete several assignments; each one succeeds or fails on its own"""
    data = json_body(request)
    result = allocator.bulk_delete(data.get('ids'))
    return jsonify(result.to_dict())

@assignments_bp.route('/api/assignments/bulk-status', methods=['POST'])
def bulk_update_assignment_status():
    data = json_body(request)
    if not data.get('status'):
        raise ValidationError('status is required')
    result = allocator.bulk_update_status(data.get('ids'), data['status'])
    return jsonify(result.to_dict())
