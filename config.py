import os
from pathlib import Path

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent

class Config:
    """Base configuration class"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'your-secret-key-here'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Scheduling engine policies
    # 'permissive': no declared availability means available, 'strict': unavailable
    AVAILABILITY_DEFAULT = os.environ.get('AVAILABILITY_DEFAULT', 'permissive')
    # 'warn': availability gaps are reported on the allocation, 'block': rejected
    AVAILABILITY_CONFLICT_POLICY = os.environ.get('AVAILABILITY_CONFLICT_POLICY', 'warn')
    # 'block': schedules with assignments cannot be deleted, 'cascade': assignments go too
    SCHEDULE_DELETE_POLICY = os.environ.get('SCHEDULE_DELETE_POLICY', 'block')

    # Pagination
    DEFAULT_PAGE_SIZE = int(os.environ.get('DEFAULT_PAGE_SIZE', 20))
    MAX_PAGE_SIZE = int(os.environ.get('MAX_PAGE_SIZE', 100))

    # Candidate ranking: weight of each 0-100 sub-score in the total
    CANDIDATE_SCORING_WEIGHTS = {
        'skills': 0.60,
        'availability': 0.25,
        'performance': 0.15,
    }

    # Filters and sorts the UI may expose. The engine accepts all of them regardless.
    QUERY_CAPABILITIES = {
        'schedules': {
            'filters': ['status', 'project_id', 'date_from', 'date_to', 'search'],
            'sorts': ['name', 'date'],
        },
        'assignments': {
            'filters': ['status', 'role', 'schedule_id', 'consultant_id', 'project_id',
                        'date_from', 'date_to', 'search', 'specialty'],
            'sorts': ['name', 'date', 'rating'],
        },
        'consultant_schedule': {
            'filters': ['status', 'date_from', 'date_to'],
            'sorts': ['date'],
        },
    }

    @staticmethod
    def init_app(app):
        pass

class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{BASE_DIR / "scheduling.db"}'

class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{BASE_DIR / "scheduling.db"}'

class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    AVAILABILITY_DEFAULT = 'permissive'
    AVAILABILITY_CONFLICT_POLICY = 'warn'
    SCHEDULE_DELETE_POLICY = 'block'

# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
