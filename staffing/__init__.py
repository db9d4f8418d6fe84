import logging

from flask import Flask, jsonify, request
from config import config
from staffing.extensions import db, cors
from staffing.services.errors import EngineError, InternalError

def create_app(config_name='default', overrides=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)
    config[config_name].init_app(app)

    # Initialize extensions
    db.init_app(app)
    cors.init_app(app, resources={r'/api/*': {'origins': '*'}})

    # Import models to ensure they're registered with SQLAlchemy
    from staffing.models import Consultant, Project, Schedule, Assignment, Availability  # noqa: F401

    # Register blueprints
    from staffing.routes import (
        consultants_bp, projects_bp, schedules_bp,
        assignments_bp, availability_bp, utils_bp
    )

    app.register_blueprint(consultants_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(schedules_bp)
    app.register_blueprint(assignments_bp)
    app.register_blueprint(availability_bp)
    app.register_blueprint(utils_bp)

    register_error_handlers(app)
    configure_logging(app)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app

def register_error_handlers(app):
    """Map engine errors and HTTP errors to JSON bodies"""

    @app.errorhandler(EngineError)
    def engine_error(error):
        if isinstance(error, InternalError):
            db.session.rollback()
        return jsonify({'error': error.to_dict()}), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': {'kind': 'not_found', 'message': 'Resource not found',
                                  'entity_id': None, 'details': {}}}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': {'kind': 'method_not_allowed', 'message': 'Method not allowed',
                                  'entity_id': None, 'details': {}}}), 405

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error('500 Internal Server Error: %s', type(error).__name__, exc_info=True)
        return jsonify({'error': InternalError().to_dict()}), 500

def configure_logging(app):
    """Request log line and log level. Tests keep Flask's defaults."""
    if app.testing:
        return

    @app.after_request
    def log_request(response):
        app.logger.info('%s %s %s', request.method, request.path, response.status_code)
        return response

    if app.debug:
        app.logger.setLevel(logging.DEBUG)
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        handler.setLevel(logging.INFO)
        app.logger.handlers.clear()
        app.logger.addHandler(handler)
        app.logger.setLevel(logging.INFO)
    app.logger.info('Scheduling engine startup (%s)', 'debug' if app.debug else 'production')
