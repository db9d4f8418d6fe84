from flask import Blueprint, request, jsonify
from staffing.routes.params import json_body, list_params, pop_version
from staffing.services import CandidateMatcher, ScheduleManager, ValidationError
from staffing.services.queries import search_assignments, search_schedules

schedules_bp = Blueprint('schedules', __name__)

manager = ScheduleManager()
matcher = CandidateMatcher()

@schedules_bp.route('/api/schedules', methods=['POST'])
def create_schedule():
    """Create a draft schedule for a project"""
    schedule = manager.create(json_body(request))
    return jsonify(schedule.to_dict()), 201

@schedules_bp.route('/api/schedules', methods=['GET'])
def get_schedules():
    """Search schedules (status, project, date range, free text)"""
    params = list_params(request.args, ['status', 'project_id', 'date_from', 'date_to', 'search'])
    return jsonify(search_schedules(**params).to_dict())

@schedules_bp.route('/api/schedules/<int:schedule_id>', methods=['GET'])
def get_schedule(schedule_id):
    return jsonify(manager.get(schedule_id).to_dict())

@schedules_bp.route('/api/schedules/<int:schedule_id>', methods=['PATCH'])
def update_schedule(schedule_id):
    """Edit schedule fields. Send the last seen version to detect concurrent edits."""
    data = dict(json_body(request))
    version = pop_version(data)
    schedule = manager.update(schedule_id, data, expected_version=version)
    return jsonify(schedule.to_dict())

@schedules_bp.route('/api/schedules/<int:schedule_id>', methods=['DELETE'])
def delete_schedule(schedule_id):
    manager.delete(schedule_id)
    return jsonify({'message': 'Schedule deleted', 'id': schedule_id})

@schedules_bp.route('/api/schedules/<int:schedule_id>/transition', methods=['POST'])
def transition_schedule(schedule_id):
    """Move a schedule through draft -> active -> completed, or cancel it"""
    data = dict(json_body(request))
    if not data.get('status'):
        raise ValidationError('status is required')

    cascade = data.get('cascade', False)
    if not isinstance(cascade, bool):
        raise ValidationError('cascade must be a boolean')

    schedule = manager.transition(
        schedule_id, data['status'], cascade=cascade, expected_version=pop_version(data)
    )
    return jsonify(schedule.to_dict())

@schedules_bp.route('/api/schedules/<int:schedule_id>/assignments', methods=['GET'])
def get_schedule_assignments(schedule_id):
    """Assignments of one schedule, filterable like /api/assignments"""
    manager.get(schedule_id)
    params = list_params(request.args, ['status', 'role', 'consultant_id', 'date_from', 'date_to',
                                        'search', 'specialty'])
    return jsonify(search_assignments(schedule_id=schedule_id, **params).to_dict())

@schedules_bp.route('/api/schedules/<int:schedule_id>/candidates', methods=['POST'])
def suggest_candidates(schedule_id):
    """Rank consultants who could cover a period of this schedule"""
    data = json_body(request)
    for field in ('start_at', 'end_at'):
        if not data.get(field):
            raise ValidationError(f'{field} is required')

    result = matcher.suggest_candidates(
        schedule_id,
        data['start_at'],
        data['end_at'],
        skills=data.get('skills'),
        min_rating=data.get('min_rating'),
        include_ineligible=data.get('include_ineligible', True),
        limit=data.get('limit')
    )
    return jsonify(result.to_dict())
