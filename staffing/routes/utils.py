from flask import Blueprint, current_app, jsonify
from staffing.models import ShiftType, ScheduleStatus, AssignmentStatus, AvailabilityType
from staffing.services.status_coordinator import ASSIGNMENT_TRANSITIONS, SCHEDULE_TRANSITIONS

utils_bp = Blueprint('utils', __name__)

@utils_bp.route('/api/enums', methods=['GET'])
def get_enums():
    """Get all available enum values and status transitions for frontend"""
    return jsonify({
        'shift_types': [e.value for e in ShiftType],
        'schedule_statuses': [e.value for e in ScheduleStatus],
        'assignment_statuses': [e.value for e in AssignmentStatus],
        'availability_types': [e.value for e in AvailabilityType],
        'schedule_transitions': {
            status.value: sorted(t.value for t in targets) for status, targets in SCHEDULE_TRANSITIONS.items()
        },
        'assignment_transitions': {
            status.value: sorted(t.value for t in targets) for status, targets in ASSIGNMENT_TRANSITIONS.items()
        }
    })

@utils_bp.route('/api/capabilities', methods=['GET'])
def get_capabilities():
    """Filters and sorts the UI should offer, and the active engine policies"""
    config = current_app.config
    return jsonify({
        'query': config['QUERY_CAPABILITIES'],
        'policies': {
            'availability_default': config['AVAILABILITY_DEFAULT'],
            'availability_conflict': config['AVAILABILITY_CONFLICT_POLICY'],
            'schedule_delete': config['SCHEDULE_DELETE_POLICY']
        },
        'pagination': {
            'default_page_size': config['DEFAULT_PAGE_SIZE'],
            'max_page_size': config['MAX_PAGE_SIZE']
        },
        'candidate_weights': config['CANDIDATE_SCORING_WEIGHTS']
    })
