from flask import Blueprint, request, jsonify
from staffing.extensions import db
from staffing.models import Project
from staffing.routes.params import json_body
from staffing.services import ValidationError
from staffing.services.transaction import atomic
from staffing.utils.validators import validate_required_fields

projects_bp = Blueprint('projects', __name__)

@projects_bp.route('/api/projects', methods=['POST'])
def create_project():
    """Create a new project"""
    data = json_body(request)

    is_valid, error = validate_required_fields(data, ['name'])
    if not is_valid:
        raise ValidationError(error)

    project = Project(
        name=data['name'],
        client_company=data.get('client_company')
    )

    with atomic():
        db.session.add(project)
    return jsonify(project.to_dict()), 201

@projects_bp.route('/api/projects', methods=['GET'])
def get_projects():
    """Get all active projects"""
    projects = Project.query.filter_by(is_active=True).order_by(Project.name).all()
    return jsonify([p.to_dict() for p in projects])
